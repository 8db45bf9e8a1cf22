'''
Abstract class for the emission models.
'''


class Emission(object):

    def init_features(self, features, N):
        pass

    def update_features(self, Et):
        pass

    def read_lnRho(self, start, stop):
        pass

    def lowerbound_terms(self):
        pass
