'''
Read-only posterior distributions returned by BCCWords inference.
'''
import numpy as np
from scipy.special import expit, psi


def _frozen(values):
    values = np.array(values, dtype=float)
    values.setflags(write=False)
    return values


class Discrete(object):
    '''
    Categorical distribution over the label classes.
    '''

    def __init__(self, probs):
        self.probs = _frozen(probs)

    def get_probs(self):
        return self.probs

    def get_mode(self):
        return int(np.argmax(self.probs))

    def __getitem__(self, c):
        return self.probs[c]

    def __len__(self):
        return len(self.probs)

    def __repr__(self):
        return 'Discrete(%s)' % np.array2string(self.probs, precision=4)


class Dirichlet(object):

    def __init__(self, pseudo_count):
        self.pseudo_count = _frozen(pseudo_count)

    @classmethod
    def uniform(cls, dimension):
        return cls(np.ones(dimension))

    @classmethod
    def symmetric(cls, dimension, value):
        return cls(np.zeros(dimension) + value)

    @property
    def total_count(self):
        return float(np.sum(self.pseudo_count))

    def get_mean(self):
        return self.pseudo_count / self.total_count

    def get_mean_log(self):
        '''
        E[ln p_i] = psi(alpha_i) - psi(sum(alpha)).
        '''
        return psi(self.pseudo_count) - psi(self.total_count)

    def __len__(self):
        return len(self.pseudo_count)

    def __repr__(self):
        return 'Dirichlet(%s)' % np.array2string(self.pseudo_count, precision=4)


class Bernoulli(object):
    '''
    Posterior of the model-evidence switch. Its log-odds equal the log evidence of the model against a prior
    probability of 0.5, which we approximate with the variational lower bound.
    '''

    def __init__(self, log_odds):
        self.log_odds = float(log_odds)

    def get_log_prob_true(self):
        return -np.logaddexp(0, -self.log_odds)

    def get_prob_true(self):
        return float(expit(self.log_odds))

    def __repr__(self):
        return 'Bernoulli(log_odds=%.4f)' % self.log_odds


class BCCPosteriors(object):

    def __init__(self, true_label, worker_confusion_matrix, background_label_prob, evidence, lower_bounds=()):
        '''
        :param true_label: list of Discrete, one per task.
        :param worker_confusion_matrix: list with one entry per worker, each a list of L Dirichlet rows.
        :param background_label_prob: Dirichlet over the classes.
        :param evidence: Bernoulli whose log-odds is the final lower bound.
        :param lower_bounds: the lower bound after each sweep.
        '''
        self.true_label = tuple(true_label)
        self.worker_confusion_matrix = tuple(tuple(rows) for rows in worker_confusion_matrix)
        self.background_label_prob = background_label_prob
        self.evidence = evidence
        self.lower_bounds = tuple(lower_bounds)

    def true_label_probs(self):
        '''
        :return: N x L array of label probabilities.
        '''
        return np.array([d.get_probs() for d in self.true_label])

    def predicted_labels(self):
        return np.array([d.get_mode() for d in self.true_label], dtype=int)


class BCCWordsPosteriors(BCCPosteriors):

    def __init__(self, true_label, worker_confusion_matrix, background_label_prob, evidence, prob_word_posterior,
                 lower_bounds=()):
        super().__init__(true_label, worker_confusion_matrix, background_label_prob, evidence, lower_bounds)
        self.prob_word_posterior = tuple(prob_word_posterior)
