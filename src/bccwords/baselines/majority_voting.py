'''
Majority voting and random-label baselines. Both are also used to produce fixed labels for clamping the true labels
in BCCWords.

The annotations are given as two ragged arrays, row k holding the labels of worker k and the task indices they were
given to. A worker that labels the same task twice casts two votes.
'''

import numpy as np
from scipy.sparse import coo_matrix

from bccwords.data.ragged import RaggedArray


def count_labels(labels_per_worker, task_indices_per_worker, num_tasks, num_labels):
    '''
    :return: list of num_labels sparse N x K matrices, entry (n, k) of matrix l counting the times worker k gave
    label l to task n.
    '''
    labels_per_worker = RaggedArray.from_lists(labels_per_worker)
    task_indices_per_worker = RaggedArray.from_lists(task_indices_per_worker)

    workers = labels_per_worker.row_ids()
    labels = labels_per_worker.values
    tasks = task_indices_per_worker.values
    num_workers = len(labels_per_worker)

    counts = []
    for l in range(num_labels):
        lidxs = labels == l
        counts.append(coo_matrix((np.ones(np.sum(lidxs)), (tasks[lidxs], workers[lidxs])),
                                 shape=(num_tasks, num_workers)).tocsr())
    return counts


class MajorityVoting(object):
    '''
    Takes the most popular label for each task.
    '''
    majority = None
    counts = None

    votes = None

    num_labels = None
    num_annotators = None
    num_tasks = None

    def __init__(self, labels_per_worker, task_indices_per_worker, num_tasks, num_labels):
        self.counts = count_labels(labels_per_worker, task_indices_per_worker, num_tasks, num_labels)
        self.num_tasks = num_tasks
        self.num_annotators = self.counts[0].shape[1]
        self.num_labels = num_labels
        self.accuracies = np.ones(self.num_annotators)
        self.probabilities = np.zeros((self.num_tasks, self.num_labels))

    def vote(self, weighted=False):
        '''
        :param weighted: if True, each vote is scaled by the annotator's accuracy from update_accuracies().
        :return: majority label of each task (ties go to the lowest label index), vote fractions (N x L)
        '''
        votes = np.zeros((self.num_tasks, self.num_labels))

        weights = self.accuracies if weighted else np.ones(self.num_annotators)
        for l in range(self.num_labels):
            votes[:, l] = self.counts[l].dot(weights)

        self.votes = votes
        self.majority = np.argmax(votes, axis=1)

        totals = np.sum(votes, axis=1)
        self.probabilities = np.zeros_like(votes) + 1.0 / self.num_labels  # unlabelled tasks stay uniform
        labelled = totals > 0
        self.probabilities[labelled] = votes[labelled] / totals[labelled, None]

        return self.majority, self.probabilities

    def update_accuracies(self):
        correct = np.zeros(self.num_annotators)
        given = np.zeros(self.num_annotators)
        for l in range(self.num_labels):
            correct += self.counts[l].T.dot((self.majority == l).astype(float))
            given += np.asarray(self.counts[l].sum(axis=0)).flatten()

        labelled = given > 0
        self.accuracies[labelled] = correct[labelled] / given[labelled]

        return self.accuracies

    def run(self, max_iter=100):
        '''
        Alternates between weighted voting and re-estimating the annotators' accuracies.
        '''
        accuracies_old = np.ones(self.accuracies.shape) * -np.inf

        iteration = 0
        self.vote()
        while (np.linalg.norm(self.accuracies - accuracies_old) >= 0.01) & (iteration < max_iter):
            iteration += 1

            accuracies_old = np.copy(self.accuracies)
            self.update_accuracies()
            self.vote(weighted=True)

        return self.majority, self.probabilities


def random_labels(labels_per_worker, task_indices_per_worker, num_tasks, seed=None):
    '''
    Picks one of the labels given to each task at random. Tasks with no labels get -1.
    '''
    labels = RaggedArray.from_lists(labels_per_worker).values
    tasks = RaggedArray.from_lists(task_indices_per_worker).values
    rng = np.random.RandomState(seed)

    # group the labels by task, keeping worker order within each task
    order = np.argsort(tasks, kind='stable')
    labels = labels[order]
    offsets = np.searchsorted(tasks[order], np.arange(num_tasks + 1))

    result = np.zeros(num_tasks, dtype=int) - 1
    for n in range(num_tasks):
        given = labels[offsets[n]:offsets[n + 1]]
        if len(given):
            result[n] = rng.choice(given)

    return result
