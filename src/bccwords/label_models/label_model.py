import numpy as np
from scipy.special import psi, logsumexp

from bccwords.annotator_models.annotator_model import log_dirichlet_pdf, EPS
from bccwords.parallel_utils import run_chunks


class IndependentLabelModel(object):
    '''
    True labels drawn independently for each task from the background label probabilities, kappa ~ Dirichlet(beta0).
    Tasks with a clamped label keep a point mass at that label.
    '''

    def __init__(self, beta0, L, verbose=False):
        self.L = L
        self.verbose = verbose

        self.beta0 = beta0

    def init_t(self, C_by_task, gold=None):
        '''
        Initialise q(t) using the fraction of votes for each label, smoothed by the prior.

        :param C_by_task: list of L sparse N x K matrices of worker labels.
        :param gold: array of clamped labels, -1 where the label is inferred.
        '''
        self.C_by_task = C_by_task
        self.N = C_by_task[0].shape[0]
        self.gold = gold

        self.beta = np.copy(self.beta0)
        self.lnB = psi(self.beta) - psi(np.sum(self.beta))

        self.Et = np.zeros((self.N, self.L)) + self.beta0
        for l in range(self.L):
            self.Et[:, l] += np.asarray(C_by_task[l].sum(axis=1)).flatten()
        self.Et /= np.sum(self.Et, axis=1)[:, None]

        self._clamp(self.Et)
        self.lnp_Ct = np.zeros((self.N, self.L))

        return self.Et

    def _clamp(self, Et):
        if self.gold is not None:
            goldidxs = self.gold != -1
            Et[goldidxs, :] = 0
            Et[goldidxs, self.gold[goldidxs]] = 1.0

    def update_B(self):
        '''
        Update the background label probabilities from the expected label counts.
        '''
        self.beta = np.maximum(self.beta0 + np.sum(self.Et, 0), EPS)
        self.lnB = psi(self.beta) - psi(np.sum(self.beta, -1))

    def log_joint(self, A, E, parallel, chunks):
        '''
        Unnormalised log posterior of each task's label: E[ln kappa] plus the expected log likelihoods of the worker
        labels and the words, for every class. Tasks are split into chunks writing to disjoint rows.
        '''
        lnp_Ct = np.zeros((self.N, self.L))

        def update_chunk(start, stop):
            lnp = self.lnB[None, :] + A.read_lnPi(self.C_by_task, start, stop)
            if E is not None:
                lnp = lnp + E.read_lnRho(start, stop)
            lnp_Ct[start:stop] = lnp

        run_chunks(parallel, update_chunk, chunks)
        return lnp_Ct

    def update_t(self, A, E, parallel, chunks):
        self.lnp_Ct = self.log_joint(A, E, parallel, chunks)

        self.Et = np.exp(self.lnp_Ct - logsumexp(self.lnp_Ct, axis=1)[:, None])
        self._clamp(self.Et)

        return self.Et

    def lowerbound_terms(self, lnp_Ct):
        '''
        :param lnp_Ct: unnormalised log posteriors computed with the current parameters.
        '''
        lnpt = np.sum(lnp_Ct * self.Et)

        lnqt = np.log(self.Et, where=self.Et > 0, out=np.zeros_like(self.Et))
        lnqt *= self.Et
        lnqt = np.sum(lnqt)

        lnpB = log_dirichlet_pdf(self.beta0, self.lnB, 0)
        lnqB = log_dirichlet_pdf(self.beta, self.lnB, 0)

        return lnpt + lnpB, lnqt + lnqB
