'''
Bayesian classifier combination with words, variational Bayes implementation.
'''
import logging
import warnings

import numpy as np
from joblib import Parallel, cpu_count, effective_n_jobs
from scipy.sparse import coo_matrix

from bccwords.annotator_models.cm import ConfusionMatrixAnnotator
from bccwords.data.ragged import RaggedArray
from bccwords.data.validator import label_distribution_warnings
from bccwords.emission_models.categorical import Categorical
from bccwords.errors import DataIntegrityError, NumericalError, DegenerateDataWarning
from bccwords.label_models.label_model import IndependentLabelModel
from bccwords.parallel_utils import n_jobs, row_chunks
from bccwords.posteriors import Bernoulli, BCCWordsPosteriors, Dirichlet, Discrete

DEFAULT_ITERATIONS = 35


class BC(object):

    def __init__(self, initial_worker_belief=0.6, beta0_factor=1.0, nu0=1.0, discrete_feature_likelihoods=True,
                 verbose=False, njobs=None):
        """
        Aggregation method for combining labels from multiple annotators using variational Bayes. The annotators are
        modelled with confusion matrices, the true label of each task is drawn from a shared background distribution,
        and, when discrete_feature_likelihoods is True, the words of each task are drawn from a distribution that
        depends on the task's true label (BCCWords).

        :param initial_worker_belief: prior probability that a worker gives the correct label. Sets the diagonal of the
        confusion matrix prior to (b / (1 - b)) * (L - 1), with 1 elsewhere.
        :param beta0_factor: pseudo-count of each class in the Dirichlet prior over the background label probabilities.
        :param nu0: pseudo-count of each word in the symmetric Dirichlet prior over the word probabilities.
        :param discrete_feature_likelihoods: if False, the words are ignored and the model reduces to IBCC.
        :param verbose: turns on some additional progress messages.
        :param njobs: number of threads for the per-task and per-worker updates. Defaults to half the available cores.
        """
        self.verbose = verbose

        self.initial_worker_belief = initial_worker_belief
        self.beta0_factor = beta0_factor
        self.nu0 = nu0  # prior hyperparameter for word features

        # Do we model word distributions as independent features?
        self.no_features = not discrete_feature_likelihoods

        self.n_jobs = n_jobs if njobs is None else njobs

        self.L = 0
        self.N = 0
        self.V = 0

        if self.verbose:
            logging.info('Parallel can run %i jobs simultaneously, with %i cores' % (effective_n_jobs(), cpu_count()))

    @property
    def label_count(self):
        return self.L

    @property
    def task_count(self):
        return self.N

    def create_model(self, num_tasks, num_classes, vocab_size=0):
        '''
        Allocates the priors and parameter shapes for a new run. No inference happens here.
        '''
        if num_tasks < 1:
            raise DataIntegrityError('The model needs at least one task, got %i' % num_tasks)
        if num_classes < 2:
            raise DataIntegrityError('The model needs at least two classes, got %i' % num_classes)
        if vocab_size < 0:
            raise DataIntegrityError('The vocabulary size cannot be negative, got %i' % vocab_size)

        self.N = num_tasks
        self.L = num_classes
        self.V = vocab_size

        self.A = ConfusionMatrixAnnotator(self.initial_worker_belief, self.L)
        self.LM = IndependentLabelModel(np.ones(self.L) * self.beta0_factor, self.L, self.verbose)
        if self.no_features or self.V == 0:
            self.E = None
        else:
            self.E = Categorical(self.L, self.V, self.nu0)

    def get_confusion_matrix_prior(self):
        '''
        :return: the Dirichlet prior over each row of one worker's confusion matrix.
        '''
        alpha0 = self.A.alpha0 if self.A.alpha0.ndim == 2 else self.A.alpha0[:, :, 0]
        return [Dirichlet(row) for row in alpha0]

    def infer_posteriors(self, labels_per_worker, task_indices_per_worker, word_indices_per_task=None,
                         word_counts_per_task=None, true_labels=None, num_iterations=DEFAULT_ITERATIONS):
        """
        Runs variational Bayes for exactly num_iterations sweeps. Each sweep first updates the true labels of all
        tasks, then the worker confusion matrices, the word distributions and the background label probabilities,
        using the true labels from the same sweep.

        :param labels_per_worker: ragged array; row k holds the labels given by worker k.
        :param task_indices_per_worker: ragged array; row k holds the task indices labelled by worker k, in the same
        order as labels_per_worker.
        :param word_indices_per_task: ragged array; row n holds the vocabulary indices of the words in task n.
        :param word_counts_per_task: number of words in each task.
        :param true_labels: optional array of labels to clamp, with -1 for tasks whose labels should be inferred.
        :param num_iterations: number of sweeps.
        :return: BCCWordsPosteriors
        """
        if self.N == 0:
            raise DataIntegrityError('create_model() must be called before infer_posteriors()')
        if num_iterations < 1:
            raise ValueError('num_iterations must be at least 1, got %i' % num_iterations)

        # Check and observe the data before paying for any inference --------------------------------------------------
        labels_per_worker = RaggedArray.from_lists(labels_per_worker)
        task_indices_per_worker = RaggedArray.from_lists(task_indices_per_worker)
        self._check_crowd_labels(labels_per_worker, task_indices_per_worker)

        if self.E is not None:
            if word_indices_per_task is None:
                raise DataIntegrityError('The word model needs the word indices of each task')
            word_indices_per_task = RaggedArray.from_lists(word_indices_per_task)
            self._check_words(word_indices_per_task, word_counts_per_task)

        self.gold = self._check_true_labels(true_labels)

        self._warn_degenerate(labels_per_worker, word_indices_per_task)

        self.K = len(labels_per_worker)
        self._observe_crowd_labels(labels_per_worker, task_indices_per_worker)
        if self.E is not None:
            self.E.init_features(word_indices_per_task, self.N)

        self.A.expand_alpha0(self.K)
        self.A.init_lnPi()

        task_chunks = row_chunks(self.N, self.n_jobs)
        worker_chunks = row_chunks(self.K, self.n_jobs)

        self.lower_bounds = []

        # Variational Bayes inference loop -----------------------------------------------------------------------------
        with Parallel(n_jobs=self.n_jobs, backend='threading') as parallel:

            for self.iter in range(num_iterations):
                if self.verbose:
                    logging.debug('BCCWords iteration %i in progress' % self.iter)

                # Update true labels
                if self.iter > 0:
                    self.Et = self.LM.update_t(self.A, self.E, parallel, task_chunks)
                else:
                    self.Et = self.LM.init_t(self.C_by_task, self.gold)
                self._check_finite(self.Et, 'true label probabilities')

                # Update word feature distributions
                if self.E is not None:
                    self.E.update_features(self.Et)
                    self._check_finite(self.E.ElnRho, 'word probabilities')

                # Update annotator models
                self.A.update_alpha(self.Et, self.C_by_worker, parallel, worker_chunks)
                self.A.q_pi()
                self._check_finite(self.A.lnPi, 'confusion matrices')

                # Update label model
                self.LM.update_B()
                self._check_finite(self.LM.lnB, 'background label probabilities')

                lb = self.lowerbound(parallel, task_chunks)
                self._check_finite(lb, 'lower bound')
                self.lower_bounds.append(lb)

                if self.verbose:
                    logging.info('Iteration %i:\tlower bound = %.4f, first task: %s' % (
                        self.iter + 1, lb, np.array2string(self.Et[0], precision=4)))

        return self._posteriors()

    def lowerbound(self, parallel, chunks):
        '''
        Compute the variational lower bound (ELBO) on the log marginal likelihood.
        '''
        lnp_Ct = self.LM.log_joint(self.A, self.E, parallel, chunks)

        lnpCtB, lnqtB = self.LM.lowerbound_terms(lnp_Ct)

        lnpPi, lnqPi = self.A.lowerbound_terms()

        if self.E is None:
            lnpRho = 0
            lnqRho = 0
        else:
            lnpRho, lnqRho = self.E.lowerbound_terms()

        lb = lnpCtB - lnqtB + lnpPi - lnqPi + lnpRho - lnqRho
        if self.verbose:
            logging.debug('Computing LB=%.4f: label model and labels=%.4f, annotator model=%.4f, features=%.4f' % (
                lb, lnpCtB - lnqtB, lnpPi - lnqPi, lnpRho - lnqRho))

        return lb

    def _posteriors(self):
        true_label = [Discrete(p) for p in self.Et]

        worker_confusion_matrix = [[Dirichlet(self.A.alpha[c, :, k]) for c in range(self.L)] for k in range(self.K)]

        background_label_prob = Dirichlet(self.LM.beta)

        if self.E is None:
            prob_word_posterior = []
        else:
            prob_word_posterior = [Dirichlet(self.E.nu[c]) for c in range(self.L)]

        return BCCWordsPosteriors(true_label, worker_confusion_matrix, background_label_prob,
                                  Bernoulli(self.lower_bounds[-1]), prob_word_posterior, self.lower_bounds)

    def _observe_crowd_labels(self, labels_per_worker, task_indices_per_worker):
        '''
        Builds one sparse count matrix per label value, in both worker-major (K x N) and task-major (N x K) layouts.
        '''
        workers = labels_per_worker.row_ids()
        labels = labels_per_worker.values
        tasks = task_indices_per_worker.values

        self.C_by_worker = []
        self.C_by_task = []
        for l in range(self.L):
            lidxs = labels == l
            Cl = coo_matrix((np.ones(np.sum(lidxs)), (workers[lidxs], tasks[lidxs])), shape=(self.K, self.N))
            self.C_by_worker.append(Cl.tocsr())
            self.C_by_task.append(Cl.T.tocsr())

    def _check_crowd_labels(self, labels_per_worker, task_indices_per_worker):
        if len(labels_per_worker) == 0:
            raise DataIntegrityError('No workers: the labels per worker array is empty')
        if len(labels_per_worker) != len(task_indices_per_worker):
            raise DataIntegrityError('Labels are given for %i workers but task indices for %i workers' % (
                len(labels_per_worker), len(task_indices_per_worker)))

        mismatched = np.flatnonzero(labels_per_worker.lengths() != task_indices_per_worker.lengths())
        if len(mismatched):
            k = mismatched[0]
            raise DataIntegrityError('Worker %i has %i labels but %i task indices' % (
                k, len(labels_per_worker[k]), len(task_indices_per_worker[k])))

        bad = (labels_per_worker.values < 0) | (labels_per_worker.values >= self.L)
        if np.any(bad):
            raise DataIntegrityError('Worker label %i is out of range [0, %i)' % (
                labels_per_worker.values[bad][0], self.L))

        bad = (task_indices_per_worker.values < 0) | (task_indices_per_worker.values >= self.N)
        if np.any(bad):
            raise DataIntegrityError('Task index %i is out of range [0, %i)' % (
                task_indices_per_worker.values[bad][0], self.N))

    def _check_words(self, word_indices_per_task, word_counts_per_task):
        if len(word_indices_per_task) != self.N:
            raise DataIntegrityError('Word indices are given for %i tasks but the model has %i tasks' % (
                len(word_indices_per_task), self.N))

        if word_counts_per_task is not None:
            word_counts_per_task = np.asarray(word_counts_per_task, dtype=int)
            if word_counts_per_task.shape != (self.N,):
                raise DataIntegrityError('Word counts are given for %i tasks but the model has %i tasks' % (
                    word_counts_per_task.size, self.N))
            mismatched = np.flatnonzero(word_counts_per_task != word_indices_per_task.lengths())
            if len(mismatched):
                n = mismatched[0]
                raise DataIntegrityError('Task %i has a word count of %i but %i word indices' % (
                    n, word_counts_per_task[n], len(word_indices_per_task[n])))

        bad = (word_indices_per_task.values < 0) | (word_indices_per_task.values >= self.V)
        if np.any(bad):
            raise DataIntegrityError('Word index %i is out of range [0, %i)' % (word_indices_per_task.values[bad][0],
                                                                               self.V))

    def _check_true_labels(self, true_labels):
        if true_labels is None:
            return None

        gold = np.asarray(true_labels, dtype=int).flatten()
        if gold.shape != (self.N,):
            raise DataIntegrityError('True labels are given for %i tasks but the model has %i tasks' % (gold.size,
                                                                                                    self.N))
        bad = (gold < -1) | (gold >= self.L)
        if np.any(bad):
            raise DataIntegrityError('True label %i is out of range [0, %i)' % (gold[bad][0], self.L))

        return gold

    def _warn_degenerate(self, labels_per_worker, word_indices_per_task):
        messages = []
        if len(labels_per_worker) == 1:
            messages.append('Only one worker. Worker reliability modeling may not be meaningful.')
        if self.N == 1:
            messages.append('Only one task. The model requires multiple tasks for training.')

        messages.extend(label_distribution_warnings(labels_per_worker.values.tolist()))

        if word_indices_per_task is not None and self.E is not None:
            empty = int(np.sum(word_indices_per_task.lengths() == 0))
            if empty > 0:
                messages.append('%i out of %i tasks have no words. Their labels depend on the worker labels only.' % (
                    empty, self.N))

        for message in messages:
            warnings.warn(message, DegenerateDataWarning)

    @staticmethod
    def _check_finite(values, name):
        if not np.all(np.isfinite(values)):
            raise NumericalError('Non-finite values found in the %s' % name)
