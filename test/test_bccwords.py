'''
Tests for variational inference in BCC and BCCWords.
'''
import unittest
import warnings

import numpy as np

from bccwords.bayesian_combination import DEFAULT_ITERATIONS
from bccwords.bccwords import BCC, BCCWords
from bccwords.errors import DataIntegrityError, DegenerateDataWarning
from bccwords.posteriors import BCCWordsPosteriors


def _word_data():
    '''
    Three workers label eight tasks. Tasks 0-3 contain word 0 and were labelled 0, tasks 4-7 contain word 1 and were
    labelled 1, except that worker 2 flips task 3. Task 8 has no crowd labels, only words.
    '''
    labels = [[0, 0, 0, 0, 1, 1, 1, 1],
              [0, 0, 0, 0, 1, 1, 1, 1],
              [0, 0, 0, 1, 1, 1, 1, 1]]
    tasks = [list(range(8))] * 3
    words = [[0, 0, 0]] * 4 + [[1, 1, 1]] * 4 + [[1, 1, 1]]
    counts = [len(w) for w in words]
    return labels, tasks, words, counts


class Test(unittest.TestCase):

    def _run_bccwords(self, **kwargs):
        labels, tasks, words, counts = _word_data()
        model = BCCWords(0.7, njobs=2)
        model.create_model(9, 2, 2)
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', DegenerateDataWarning)
            posteriors = model.infer_posteriors(labels, tasks, words, counts, **kwargs)
        return model, posteriors

    def test_posteriors_are_distributions(self):
        _, posteriors = self._run_bccwords()

        assert isinstance(posteriors, BCCWordsPosteriors)
        assert len(posteriors.true_label) == 9
        assert np.allclose(np.sum(posteriors.true_label_probs(), 1), 1, atol=1e-6)

        assert len(posteriors.worker_confusion_matrix) == 3
        for rows in posteriors.worker_confusion_matrix:
            assert len(rows) == 2
            for row in rows:
                assert np.isclose(np.sum(row.get_mean()), 1, atol=1e-6)

        assert len(posteriors.prob_word_posterior) == 2
        for rho in posteriors.prob_word_posterior:
            assert np.isclose(np.sum(rho.get_mean()), 1, atol=1e-6)

        assert np.isclose(np.sum(posteriors.background_label_prob.get_mean()), 1)

    def test_posteriors_read_only(self):
        _, posteriors = self._run_bccwords()
        with self.assertRaises(ValueError):
            posteriors.true_label[0].probs[0] = 0.5

    def test_predictions(self):
        _, posteriors = self._run_bccwords()
        pred = posteriors.predicted_labels()

        assert np.array_equal(pred[:3], [0, 0, 0])
        assert np.array_equal(pred[4:8], [1, 1, 1, 1])
        # no crowd labels, but its words match the class 1 tasks
        assert pred[8] == 1

        rho = posteriors.prob_word_posterior
        assert rho[0].get_mean()[0] > rho[0].get_mean()[1]
        assert rho[1].get_mean()[1] > rho[1].get_mean()[0]

    def test_lower_bound_increases(self):
        model, posteriors = self._run_bccwords(num_iterations=20)

        lb = np.array(posteriors.lower_bounds)
        assert len(lb) == 20
        assert np.all(np.isfinite(lb))
        assert np.all(np.diff(lb) >= -1e-6 * np.abs(lb[1:]))

        assert posteriors.evidence.log_odds == lb[-1]
        assert model.lower_bounds == list(posteriors.lower_bounds)

    def test_single_sweep(self):
        _, posteriors = self._run_bccwords(num_iterations=1)
        assert len(posteriors.lower_bounds) == 1
        assert np.allclose(np.sum(posteriors.true_label_probs(), 1), 1)

    def test_posteriors_normalised_after_every_sweep(self):
        true_labels = -np.ones(9, dtype=int)
        true_labels[2] = 1
        for num_iterations in range(1, 5):
            _, posteriors = self._run_bccwords(num_iterations=num_iterations, true_labels=true_labels)
            probs = posteriors.true_label_probs()

            assert len(posteriors.lower_bounds) == num_iterations
            assert np.all(probs >= 0)
            assert np.allclose(np.sum(probs, 1), 1, atol=1e-6)
            assert np.allclose(probs[2], [0, 1])

    def test_task_without_words(self):
        labels, tasks, words, counts = _word_data()
        words[5] = []
        counts[5] = 0

        model = BCCWords(njobs=1)
        model.create_model(9, 2, 2)
        with self.assertWarns(DegenerateDataWarning):
            posteriors = model.infer_posteriors(labels, tasks, words, counts)

        probs = posteriors.true_label[5].get_probs()
        assert np.isclose(np.sum(probs), 1)
        assert posteriors.true_label[5].get_mode() == 1

    def test_clamped_labels(self):
        true_labels = -np.ones(9, dtype=int)
        true_labels[4] = 0

        _, posteriors = self._run_bccwords(true_labels=true_labels)
        probs = posteriors.true_label_probs()

        assert np.allclose(probs[4], [1, 0])
        assert np.allclose(np.sum(probs, 1), 1)

    def test_agreement_more_confident_than_split(self):
        # task 0: all three workers say 1. task 1: two say 1, one says 0.
        labels = [[1, 1], [1, 1], [1, 0]]
        tasks = [[0, 1], [0, 1], [0, 1]]

        model = BCC(njobs=1)
        model.create_model(2, 2)
        posteriors = model.infer_posteriors(labels, tasks)

        task_a = posteriors.true_label[0]
        task_b = posteriors.true_label[1]
        assert task_a.get_mode() == 1
        assert task_a[1] > task_b[1]

    def test_single_worker_confusion_matrix(self):
        labels = [[0, 1, 0, 1, 0, 1, 0, 1, 0, 1]]
        tasks = [list(range(10))]

        model = BCC(0.9, njobs=1)
        model.create_model(10, 2)
        with self.assertWarns(DegenerateDataWarning):
            posteriors = model.infer_posteriors(labels, tasks)

        assert np.array_equal(posteriors.predicted_labels(), labels[0])
        rows = posteriors.worker_confusion_matrix[0]
        for c in range(2):
            mean = rows[c].get_mean()
            assert mean[c] > 0.8
            assert mean[c] > mean[1 - c]

    def test_identical_labels(self):
        labels = [[0] * 6, [0] * 6, [0] * 6]
        tasks = [list(range(6))] * 3

        model = BCC(njobs=1)
        model.create_model(6, 2)
        with self.assertWarns(DegenerateDataWarning) as cm:
            posteriors = model.infer_posteriors(labels, tasks)
        assert 'same label' in str(cm.warning)

        background = posteriors.background_label_prob.get_mean()
        assert np.argmax(background) == 0
        assert background[0] > 0.8
        assert np.all(posteriors.predicted_labels() == 0)

    def test_bcc_and_bccwords_evidence(self):
        labels, tasks, words, counts = _word_data()

        bcc = BCC(0.7, njobs=1)
        bcc.create_model(9, 2, 2)
        bcc_posteriors = bcc.infer_posteriors(labels, tasks, words, counts)

        _, words_posteriors = self._run_bccwords()

        assert bcc_posteriors.prob_word_posterior == ()
        assert np.isfinite(bcc_posteriors.evidence.log_odds)
        assert np.isfinite(words_posteriors.evidence.log_odds)
        assert 0 <= bcc_posteriors.evidence.get_prob_true() <= 1

        # without words, task 8 has nothing but the background distribution
        assert np.allclose(bcc_posteriors.true_label[8].get_probs(),
                           bcc_posteriors.background_label_prob.get_mean(), atol=0.05)

    def test_default_iterations(self):
        labels = [[1, 1], [1, 1], [1, 0]]
        tasks = [[0, 1], [0, 1], [0, 1]]

        for model in (BCC(njobs=1), BCCWords(njobs=1)):
            model.create_model(2, 2)
            posteriors = model.infer_posteriors(labels, tasks)
            assert len(posteriors.lower_bounds) == DEFAULT_ITERATIONS

    def test_confusion_matrix_prior(self):
        model = BCC(0.6)
        model.create_model(4, 5)
        prior = model.get_confusion_matrix_prior()

        assert len(prior) == 5
        assert np.allclose(prior[0].pseudo_count, [6, 1, 1, 1, 1])
        assert np.isclose(prior[2].total_count, 10)

    def test_invalid_data(self):
        labels, tasks, words, counts = _word_data()
        model = BCCWords(njobs=1)

        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors(labels, tasks, words, counts)

        model.create_model(9, 2, 2)

        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors(labels, tasks[:2], words, counts)
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors([[0, 1]], [[0, 1, 2]], words, counts)
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors([[0, 2]], [[0, 1]], words, counts)
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors([[0, 1]], [[0, 9]], words, counts)
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors(labels, tasks, words[:8], counts)
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors(labels, tasks, words, [2] * 9)
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors(labels, tasks, [[2]] * 9, None)
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors(labels, tasks, words, counts, true_labels=[0, 2, -1, -1, -1, -1, -1, -1, -1])
        with self.assertRaises(DataIntegrityError):
            model.infer_posteriors(labels, tasks, words, counts, true_labels=[0, 1])
        with self.assertRaises(DataIntegrityError):
            model.create_model(0, 2)

    def test_rerun_resets_model(self):
        model, first = self._run_bccwords()
        labels, tasks, words, counts = _word_data()

        model.create_model(9, 2, 2)
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', DegenerateDataWarning)
            second = model.infer_posteriors(labels, tasks, words, counts)

        assert np.allclose(first.true_label_probs(), second.true_label_probs())
        assert np.allclose(first.lower_bounds, second.lower_bounds)


if __name__ == '__main__':
    unittest.main()
