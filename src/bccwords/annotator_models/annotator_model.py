'''
Abstract class for the annotator models.
'''
import numpy as np
from scipy.special import gammaln

# lower limit for Dirichlet parameters, stops psi() and gammaln() from diverging
EPS = 1e-10


class Annotator(object):

    def expand_alpha0(self, K):
        pass

    def init_lnPi(self):
        pass

    def update_alpha(self, E_t, C_by_worker, parallel, chunks):
        pass

    def read_lnPi(self, C_by_task, start, stop):
        pass

    def q_pi(self):
        self.lnPi = self._calc_q_pi(self.alpha)

    def _calc_q_pi(self, alpha):
        pass

    def lowerbound_terms(self):
        pass

    def annotator_accuracy(self):
        '''
        Expected probability that each annotator gives the correct label, averaged over the true classes.
        '''
        annotator_acc = self.alpha[np.arange(self.L), np.arange(self.L), :] / np.sum(self.alpha, axis=1)
        return np.mean(annotator_acc, axis=0)


def log_dirichlet_pdf(alpha, lnPi, sum_dim):
    '''
    Expected log density of a set of Dirichlet distributions with parameters alpha, where lnPi holds the expected log
    probabilities under the current variational posterior. sum_dim is the axis over which the values are parameters
    of a single Dirichlet.
    '''
    x = (alpha - 1) * lnPi
    gammaln_alpha = gammaln(alpha)
    invalid_alphas = np.isinf(gammaln_alpha) | np.isinf(x) | np.isnan(x)
    gammaln_alpha[invalid_alphas] = 0  # these possibilities should be excluded
    x[invalid_alphas] = 0
    x = np.sum(x, axis=sum_dim)
    z = gammaln(np.sum(alpha, sum_dim)) - np.sum(gammaln_alpha, sum_dim)
    if not np.isscalar(z):
        z[np.isinf(z)] = 0
    return np.sum(x + z)
