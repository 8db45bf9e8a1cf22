import numpy as np
from scipy.special import psi

from bccwords.annotator_models.annotator_model import Annotator, log_dirichlet_pdf, EPS
from bccwords.parallel_utils import run_chunks


class ConfusionMatrixAnnotator(Annotator):
    # Worker model: Bayesianized Dawid and Skene confusion matrix ----------------------------------------------------------
    # Parameter arrays have dims: true label, observed label, worker.

    def __init__(self, initial_worker_belief, L):
        '''
        :param initial_worker_belief: prior belief b in (0, 1) that a worker gives the correct label. Each row of the
        prior has pseudo-count (b / (1 - b)) * (L - 1) on the diagonal and 1 elsewhere, so the prior mean of the
        diagonal entries equals b.
        :param L: number of classes.
        '''
        if not 0 < initial_worker_belief < 1:
            raise ValueError('initial_worker_belief must be in (0, 1), got %s' % initial_worker_belief)

        self.L = L
        self.initial_worker_belief = initial_worker_belief

        diag = (initial_worker_belief / (1.0 - initial_worker_belief)) * (L - 1)
        self.alpha0 = np.ones((L, L))
        self.alpha0[np.arange(L), np.arange(L)] = diag

        self.alpha = None
        self.lnPi = None

    def expand_alpha0(self, K):
        '''
        Tile the prior for one worker across K workers.
        '''
        if self.alpha0.ndim == 2:
            self.alpha0 = np.tile(self.alpha0[:, :, None], (1, 1, K))
        elif self.alpha0.shape[2] != K:
            self.alpha0 = np.tile(self.alpha0[:, :, :1], (1, 1, K))
        self.K = K

    def init_lnPi(self):
        # init to prior
        self.alpha = np.copy(self.alpha0)
        self.q_pi()

    def _calc_q_pi(self, alpha):
        '''
        Expected log confusion matrices, E[ln pi] = psi(alpha) - psi(sum of the row).
        '''
        psi_alpha_sum = psi(np.sum(alpha, 1))[:, None, :]
        return psi(alpha) - psi_alpha_sum

    def update_alpha(self, E_t, C_by_worker, parallel, chunks):  # Posterior Hyperparameters
        '''
        Update alpha by adding the expected counts of each observed label for each true class. Workers are split into
        chunks that write to disjoint slices of alpha.

        :param E_t: N x L expected true labels.
        :param C_by_worker: list of L sparse K x N matrices; entry (k, n) of matrix l counts how often worker k gave
        label l to task n.
        '''
        alpha = np.copy(self.alpha0)

        def update_chunk(start, stop):
            for l in range(self.L):
                alpha[:, l, start:stop] += C_by_worker[l][start:stop].dot(E_t).T

        run_chunks(parallel, update_chunk, chunks)

        self.alpha = np.maximum(alpha, EPS)

    def read_lnPi(self, C_by_task, start, stop):
        '''
        :param C_by_task: list of L sparse N x K matrices, the transposes of C_by_worker.
        :return: (stop - start) x L array with the summed expected log likelihood of each task's labels under each
        true class.
        '''
        result = 0
        for l in range(self.L):
            result += C_by_task[l][start:stop].dot(self.lnPi[:, l, :].T)
        return result

    def expected_pi(self):
        return self.alpha / np.sum(self.alpha, axis=1)[:, None, :]

    def lowerbound_terms(self):
        # the dimension over which to sum, i.e. over which the values are parameters of a single Dirichlet
        sum_dim = 1

        lnpPi = log_dirichlet_pdf(self.alpha0, self.lnPi, sum_dim)
        lnqPi = log_dirichlet_pdf(self.alpha, self.lnPi, sum_dim)

        return lnpPi, lnqPi
