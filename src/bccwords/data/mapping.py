'''
Maps the raw records onto dense worker, task, label and word indices, and builds the ragged per-worker and per-task
arrays that the inference engine consumes.
'''
from types import MappingProxyType

import numpy as np

from bccwords.baselines.majority_voting import MajorityVoting, random_labels
from bccwords.data.datum import Datum, check_label_range
from bccwords.data.ragged import RaggedArray
from bccwords.text.tfidf import TFIDFProcessor

ASSIGNED_WORKER_ID = 'assigned'


def _index_ids(ids, sort_ids):
    unique_ids = list(dict.fromkeys(ids))  # first-seen order
    if sort_ids:
        unique_ids = sorted(unique_ids)
    return tuple(unique_ids), MappingProxyType({id_: i for i, id_ in enumerate(unique_ids)})


class DataMapping(object):

    def __init__(self, data, num_classes=None, sort_ids=False):
        '''
        :param data: list of Datum records.
        :param num_classes: number of label classes. If None, it is one more than the largest worker or gold label.
        :param sort_ids: if True, worker and task indices follow the sorted ids rather than the order first seen.
        '''
        self.data = list(data)

        self.worker_index_to_id, self.worker_id_to_index = _index_ids([d.worker_id for d in self.data], sort_ids)
        self.task_index_to_id, self.task_id_to_index = _index_ids([d.task_id for d in self.data], sort_ids)

        labels = [d.worker_label for d in self.data] + [d.gold_label for d in self.data if d.gold_label is not None]
        self.label_min = min(labels) if labels else 0
        self.label_max = max(labels) if labels else -1

        if num_classes is None:
            num_classes = max(self.label_max + 1, 2)
        self.label_count = num_classes
        check_label_range(self.data, self.label_count)

    @property
    def worker_count(self):
        return len(self.worker_index_to_id)

    @property
    def task_count(self):
        return len(self.task_index_to_id)

    def get_worker_ids(self, data=None):
        '''
        :return: the worker id of each row of the per-worker arrays built from data. For the mapping's own data this
        is worker_index_to_id. For other data, the known workers that appear in it keep their relative order and any
        new workers, such as the pseudo-worker of build_data_from_assigned_labels(), follow in first-seen order.
        '''
        if data is None or data is self.data:
            return self.worker_index_to_id

        present = set(d.worker_id for d in data)
        known = [worker_id for worker_id in self.worker_index_to_id if worker_id in present]
        new = [worker_id for worker_id in dict.fromkeys(d.worker_id for d in data)
               if worker_id not in self.worker_id_to_index]
        return tuple(known + new)

    def _rows_per_worker(self, data, value_fn):
        worker_ids = self.get_worker_ids(data)
        data = self.data if data is None else data

        row_index = {worker_id: k for k, worker_id in enumerate(worker_ids)}
        rows = [[] for _ in worker_ids]
        for datum in data:
            rows[row_index[datum.worker_id]].append(value_fn(datum))
        return RaggedArray.from_lists(rows)

    def get_labels_per_worker_index(self, data=None):
        '''
        :return: RaggedArray whose row k lists the labels given by worker k, paired position by position with
        get_task_indices_per_worker_index().
        '''
        return self._rows_per_worker(self.data if data is None else data, lambda d: d.worker_label)

    def get_task_indices_per_worker_index(self, data=None):
        return self._rows_per_worker(self.data if data is None else data, lambda d: self.task_id_to_index[d.task_id])

    def get_gold_labels_per_task_index(self):
        '''
        :return: array of gold labels with -1 for tasks that have none.
        '''
        gold = np.zeros(self.task_count, dtype=int) - 1
        for datum in self.data:
            n = self.task_id_to_index[datum.task_id]
            if datum.gold_label is not None and gold[n] == -1:
                gold[n] = datum.gold_label
        return gold

    def get_gold_labels_per_task_id(self):
        gold = self.get_gold_labels_per_task_index()
        return {self.task_index_to_id[n]: int(label) for n, label in enumerate(gold) if label != -1}

    def get_majority_votes_per_task_id(self, data=None):
        '''
        :return: dictionary from task id to the most frequent worker label for that task. Ties go to the lowest label.
        '''
        data = self.data if data is None else data
        mv = MajorityVoting(self.get_labels_per_worker_index(data), self.get_task_indices_per_worker_index(data),
                            self.task_count, self.label_count)
        majority, _ = mv.vote()

        labelled = {datum.task_id for datum in data}
        return {task_id: int(majority[n]) for n, task_id in enumerate(self.task_index_to_id) if task_id in labelled}

    def get_random_label_per_task_id(self, data=None, seed=None):
        '''
        :return: dictionary from task id to a label picked uniformly from the worker labels for that task.
        '''
        data = self.data if data is None else data
        labels = random_labels(self.get_labels_per_worker_index(data), self.get_task_indices_per_worker_index(data),
                               self.task_count, seed)

        labelled = {datum.task_id for datum in data}
        return {task_id: int(labels[n]) for n, task_id in enumerate(self.task_index_to_id) if task_id in labelled}

    def build_data_from_assigned_labels(self, labels_per_task_id, data=None):
        '''
        Replaces the crowd labels with a single pseudo-worker that gives each task its assigned label. Text and gold
        labels are taken from the first record of each task.
        '''
        data = self.data if data is None else data

        first_records = {}
        for datum in data:
            first_records.setdefault(datum.task_id, datum)

        return [Datum(ASSIGNED_WORKER_ID, task_id, label, first_records[task_id].body_text,
                      first_records[task_id].gold_label)
                for task_id, label in labels_per_task_id.items() if task_id in first_records]


class DataMappingWords(DataMapping):
    '''
    Data mapping for text tasks. Adds the vocabulary and the word indices of each task.
    '''

    def __init__(self, data, vocabulary, processor=None, num_classes=None, sort_ids=False):
        super().__init__(data, num_classes, sort_ids)

        self.vocabulary = tuple(vocabulary)
        self.word_index_to_term = MappingProxyType(dict(enumerate(self.vocabulary)))
        self.processor = processor if processor is not None else TFIDFProcessor()

        corpus = [None] * self.task_count
        for datum in self.data:
            n = self.task_id_to_index[datum.task_id]
            if corpus[n] is None:
                corpus[n] = datum.body_text
        self.corpus = corpus

        self.word_indices_per_task_index = self.processor.word_indices(corpus, self.vocabulary)
        self.word_counts_per_task_index = self.word_indices_per_task_index.lengths()

    @property
    def word_count(self):
        return len(self.vocabulary)

    def get_processed_texts(self):
        '''
        :return: dictionary from task id to the list of vocabulary terms found in its text.
        '''
        return {task_id: [self.vocabulary[w] for w in self.word_indices_per_task_index[n]]
                for n, task_id in enumerate(self.task_index_to_id)}
