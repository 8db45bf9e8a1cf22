'''
Results of a BCCWords run, keyed by the external worker and task ids, and the report printed at the end of a run.
'''
import logging
import sys
import time

import numpy as np
import pandas as pd

from bccwords.config import Settings
from bccwords.data.mapping import DataMappingWords
from bccwords.evaluation import metrics
from bccwords.posteriors import Bernoulli, Dirichlet
from bccwords.text.tfidf import TFIDFProcessor

# number of records used to build the vocabulary
VOCABULARY_RECORDS = 20000


def build_vocabulary_on_subdata(data, processor=None, settings=None, max_records=VOCABULARY_RECORDS):
    '''
    Builds the vocabulary from the distinct texts of the first max_records records.
    '''
    processor = processor if processor is not None else TFIDFProcessor()
    settings = settings if settings is not None else Settings()

    logging.info('Building vocabulary')
    start = time.time()

    corpus = [d.body_text for d in data[:max_records]]
    vocabulary = processor.build_vocabulary(corpus, settings.vocabulary_threshold, settings.tfidf_threshold,
                                            settings.vocabulary_size)

    logging.info('Built a vocabulary of %i terms in %.2f seconds' % (len(vocabulary), time.time() - start))
    return vocabulary


class ResultsWords(object):

    def __init__(self, data, vocabulary=None, settings=None, processor=None, num_classes=None):
        '''
        :param data: list of Datum records.
        :param vocabulary: list of terms. Built from the data if None.
        :param settings: Settings for the vocabulary and the report.
        :param processor: TFIDFProcessor used to find the words of each task.
        :param num_classes: number of classes, inferred from the labels if None.
        '''
        self.settings = settings if settings is not None else Settings()
        processor = processor if processor is not None else TFIDFProcessor()
        if num_classes is None:
            num_classes = self.settings.num_classes

        if vocabulary is None:
            vocabulary = build_vocabulary_on_subdata(data, processor, self.settings)

        self.vocabulary = list(vocabulary)
        self.mapping = DataMappingWords(data, self.vocabulary, processor, num_classes)
        self.gold_labels = self.mapping.get_gold_labels_per_task_id()
        self.worker_ids = self.mapping.worker_index_to_id

        self.label_names = self.settings.get_label_names(self.mapping.label_count)

        self.clear_results()

    def clear_results(self):
        self.background_label_prob = Dirichlet.uniform(self.mapping.label_count)
        self.worker_confusion_matrix = {}
        self.true_label = {}
        self.predicted_label = {}
        self.prob_words = None
        self.model_evidence = Bernoulli(0.0)
        self.lower_bounds = ()

        self.accuracy = np.nan
        self.avg_recall = np.nan

    def run_bccwords(self, model, data=None, calculate_accuracy=True, use_majority_vote=False,
                     use_random_label=False, num_iterations=None, seed=None):
        '''
        Runs inference and stores the posteriors.

        :param model: a BC instance (BCCWords or BCC).
        :param data: the records to run on. Defaults to the records used to build the mapping.
        :param use_majority_vote: clamp each task to its majority vote and replace the crowd labels with them.
        :param use_random_label: replace the crowd labels with one label picked at random from each task's labels.
        '''
        data = self.mapping.data if data is None else list(data)
        num_iterations = self.settings.num_iterations if num_iterations is None else num_iterations

        true_labels = None
        if use_majority_vote:
            majority_label = self.mapping.get_majority_votes_per_task_id(data)
            rng = np.random.RandomState(seed)
            true_labels = np.array([
                majority_label[task_id] if task_id in majority_label else
                rng.randint(self.mapping.label_min, self.mapping.label_max + 1)
                for task_id in self.mapping.task_index_to_id])
            data = self.mapping.build_data_from_assigned_labels(majority_label, data)

        if use_random_label:
            random_label = self.mapping.get_random_label_per_task_id(data, seed)
            data = self.mapping.build_data_from_assigned_labels(random_label, data)

        labels_per_worker = self.mapping.get_labels_per_worker_index(data)
        task_indices_per_worker = self.mapping.get_task_indices_per_worker_index(data)

        self.clear_results()
        model.create_model(self.mapping.task_count, self.mapping.label_count, self.mapping.word_count)

        self.worker_ids = self.mapping.get_worker_ids(data)
        posteriors = model.infer_posteriors(labels_per_worker, task_indices_per_worker,
                                            self.mapping.word_indices_per_task_index,
                                            self.mapping.word_counts_per_task_index, true_labels, num_iterations)

        self.update_results(posteriors)

        if calculate_accuracy:
            self.update_accuracy()

        return posteriors

    def update_results(self, posteriors):
        self.background_label_prob = posteriors.background_label_prob
        self.model_evidence = posteriors.evidence
        self.lower_bounds = posteriors.lower_bounds

        for n, task_id in enumerate(self.mapping.task_index_to_id):
            self.true_label[task_id] = posteriors.true_label[n]
            self.predicted_label[task_id] = posteriors.true_label[n].get_mode()

        for worker_id, rows in zip(self.worker_ids, posteriors.worker_confusion_matrix):
            self.worker_confusion_matrix[worker_id] = rows

        prob_words = getattr(posteriors, 'prob_word_posterior', ())
        self.prob_words = prob_words if len(prob_words) else None

    def update_accuracy(self):
        '''
        Compares the predicted labels with the gold labels of the tasks that have one.
        '''
        task_ids = [task_id for task_id in self.gold_labels if task_id in self.predicted_label]
        if len(task_ids) == 0:
            logging.info('No gold labels, skipping the accuracy')
            return

        gold = [self.gold_labels[task_id] for task_id in task_ids]
        pred = [self.predicted_label[task_id] for task_id in task_ids]

        self.accuracy = metrics.accuracy(gold, pred)
        self.avg_recall = metrics.avg_recall(gold, pred, self.mapping.label_count)

        logging.info('Accuracy = %.4f, average recall = %.4f on %i gold labels' % (self.accuracy, self.avg_recall,
                                                                                    len(task_ids)))

    def top_words(self, c, top_words=None):
        '''
        :return: list of (term, log posterior mean probability) for the most probable words of class c, in descending
        order.
        '''
        if self.prob_words is None:
            return []
        top_words = self.settings.top_words if top_words is None else top_words

        log_probs = np.log(self.prob_words[c].get_mean())
        order = np.argsort(-log_probs, kind='stable')[:top_words]
        return [(self.vocabulary[w], log_probs[w]) for w in order]

    def write_results(self, writer=None, write_worker_parameters=False, write_prob_words=True, top_words=None,
                      write_predictions=False):
        writer = sys.stdout if writer is None else writer

        writer.write('Model evidence (lower bound): %.4f\n' % self.model_evidence.log_odds)
        if not np.isnan(self.accuracy):
            writer.write('Accuracy: %.4f\n' % self.accuracy)
            writer.write('Average recall: %.4f\n' % self.avg_recall)

        writer.write('Background label probabilities:\n')
        for c, p in enumerate(self.background_label_prob.get_mean()):
            writer.write('\t%s: \t%.3f\n' % (self.label_names[c], p))

        if write_worker_parameters:
            for worker_id, rows in self.worker_confusion_matrix.items():
                writer.write('Worker %s\n' % worker_id)
                for c, row in enumerate(rows):
                    writer.write('\t%s: \t%s\n' % (self.label_names[c],
                                                   ' '.join('%.3f' % p for p in row.get_mean())))

        if write_predictions:
            writer.write('Predicted labels:\n')
            for task_id, label in self.predicted_label.items():
                writer.write('\t%s: \t%s \t%.3f\n' % (task_id, self.label_names[label],
                                                      self.true_label[task_id][label]))

        if write_prob_words and self.prob_words is not None:
            for c in range(len(self.prob_words)):
                writer.write('Class %s\n' % self.label_names[c])
                for term, log_prob in self.top_words(c, top_words):
                    writer.write('\t%s: \t%.3f\n' % (term, log_prob))

    def to_dataframe(self):
        '''
        :return: pandas DataFrame with one row per task: the predicted label, its name, the gold label (if any) and
        the posterior probability of each class.
        '''
        task_ids = list(self.predicted_label)
        probs = np.array([self.true_label[task_id].get_probs() for task_id in task_ids]).reshape(
            len(task_ids), self.mapping.label_count)

        df = pd.DataFrame({
            'task_id': task_ids,
            'predicted_label': [self.predicted_label[task_id] for task_id in task_ids],
            'predicted_name': [self.label_names[self.predicted_label[task_id]] for task_id in task_ids],
            'gold_label': [self.gold_labels.get(task_id, -1) for task_id in task_ids],
        })
        for c in range(self.mapping.label_count):
            df['prob_%s' % self.label_names[c]] = probs[:, c]

        return df
