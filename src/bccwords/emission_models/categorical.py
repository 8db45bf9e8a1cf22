'''
Emission model for Categorical Distribution
(used for NLP case - text features)
'''
import numpy as np
from scipy.special import psi

from bccwords.annotator_models.annotator_model import log_dirichlet_pdf, EPS
from bccwords.data.ragged import RaggedArray
from bccwords.emission_models.emission_model import Emission


class Categorical(Emission):
    '''
    Each class c has a distribution rho_c over the V vocabulary terms with a symmetric Dirichlet(nu0) prior. Each word
    occurrence in a task is drawn from rho_c of the task's true class c.
    '''

    def __init__(self, L, V, nu0=1):
        self.L = L  # number of classes
        self.V = V  # vocabulary size
        self.nu0 = nu0  # prior hyperparameter (scalar)

        self.features_mat = None  # N x V word counts
        self.nu = np.zeros((L, V)) + nu0
        self.ElnRho = psi(self.nu) - psi(np.sum(self.nu, 1))[:, None]

    def init_features(self, features, N):
        '''
        :param features: RaggedArray (or list of lists) with the vocabulary indices of the words in each task.
        '''
        features = RaggedArray.from_lists(features)
        # sparse matrix of word counts, ntasks x nwords
        self.features_mat = features.to_csr(self.V)

        self.nu = np.zeros((self.L, self.V)) + self.nu0
        self.ElnRho = psi(self.nu) - psi(np.sum(self.nu, 1))[:, None]

    def update_features(self, Et):
        self.nu = self.nu0 + self.features_mat.T.dot(Et).T  # nclasses x nfeatures
        self.nu = np.maximum(self.nu, EPS)

        # update the expected log word likelihoods
        self.ElnRho = psi(self.nu) - psi(np.sum(self.nu, 1))[:, None]

    def read_lnRho(self, start, stop):
        '''
        :return: (stop - start) x L expected log likelihood of all the words in each task under each class.
        '''
        return self.features_mat[start:stop].dot(self.ElnRho.T)

    def expected_rho(self):
        return self.nu / np.sum(self.nu, 1)[:, None]

    def lowerbound_terms(self):
        nu0 = np.zeros((self.L, self.V)) + self.nu0
        lnpRho = log_dirichlet_pdf(nu0, self.ElnRho, 1)
        lnqRho = log_dirichlet_pdf(self.nu, self.ElnRho, 1)
        return lnpRho, lnqRho
