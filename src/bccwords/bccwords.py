'''
Wrapper classes for the two variants of Bayesian classifier combination built on the shared inference engine: BCC,
which only sees the crowd labels, and BCCWords, which also models the words of each task.
'''
from bccwords.bayesian_combination import BC, DEFAULT_ITERATIONS


class BCC(BC):
    def __init__(self, initial_worker_belief=0.6, beta0_factor=1.0, verbose=False, njobs=None):

        super().__init__(initial_worker_belief, beta0_factor=beta0_factor, discrete_feature_likelihoods=False,
                         verbose=verbose, njobs=njobs)

    def infer_posteriors(self, labels_per_worker, task_indices_per_worker, word_indices_per_task=None,
                         word_counts_per_task=None, true_labels=None, num_iterations=DEFAULT_ITERATIONS):
        # any words passed in are ignored
        return super().infer_posteriors(labels_per_worker, task_indices_per_worker, None, None, true_labels,
                                        num_iterations)


class BCCWords(BC):
    def __init__(self, initial_worker_belief=0.6, beta0_factor=1.0, nu0=1.0, verbose=False, njobs=None):

        super().__init__(initial_worker_belief, beta0_factor=beta0_factor, nu0=nu0, discrete_feature_likelihoods=True,
                         verbose=verbose, njobs=njobs)
