'''
Loading crowdsourced text labels from a tab-separated file with the fields

WorkerId    TaskId    WorkerLabel    BodyText    [GoldLabel]

Fields after GoldLabel are ignored.
'''
import csv
from collections import namedtuple

import pandas as pd

from bccwords.errors import DataFormatError

COLUMNS = ['worker_id', 'task_id', 'worker_label', 'body_text', 'gold_label']

Datum = namedtuple('Datum', COLUMNS)
Datum.__new__.__defaults__ = (None,)  # gold_label is optional


def _is_missing(value):
    return value is None or (isinstance(value, float) and pd.isna(value))


def _parse_int(value, field, line_number, line):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise DataFormatError('Line %i: Failed to parse numeric value for %s. WorkerLabel and GoldLabel must be '
                              'integers. Line content: \'%s\'' % (line_number, field, line))


def _range_error(field, value, num_classes):
    '''
    :return: a description of the problem if value is not a valid label, otherwise None.
    '''
    if value is None:
        return None
    if value < 0:
        return '%s %i is negative; labels are class indices starting at 0' % (field, value)
    if num_classes is not None and value >= num_classes:
        return '%s %i is out of range [0, %i)' % (field, value, num_classes)
    return None


def load_data(filename, max_length=None, num_classes=None):
    '''
    Loads the data file. Blank lines are skipped; any malformed line fails the whole load.

    :param filename: path to the TSV file.
    :param max_length: optional maximum number of records to read.
    :param num_classes: if given, worker and gold labels must lie in [0, num_classes). Negative labels are always
    rejected.
    :return: list of Datum records in file order.
    '''
    try:
        # index_col=False stops pandas from taking the first field as the index when line 1 has extra fields
        table = pd.read_csv(filename, sep='\t', header=None, names=COLUMNS, index_col=False, dtype=str,
                            quoting=csv.QUOTE_NONE, keep_default_na=False, skip_blank_lines=False, engine='python',
                            on_bad_lines=lambda fields: fields[:len(COLUMNS)])
    except pd.errors.EmptyDataError:
        return []

    data = []
    for row_idx, row in enumerate(table.itertuples(index=False)):
        if max_length is not None and len(data) >= max_length:
            break

        line_number = row_idx + 1
        fields = [value for value in row if not _is_missing(value)]
        line = '\t'.join(fields)

        if len(fields) == 0 or (len(fields) == 1 and fields[0].strip() == ''):
            continue

        if len(fields) < 4:
            raise DataFormatError('Line %i: Invalid format. Expected at least 4 tab-separated fields (WorkerId, '
                                  'TaskId, WorkerLabel, BodyText), but found %i. Line content: \'%s\'' % (
                                      line_number, len(fields), line))

        worker_label = _parse_int(row.worker_label, 'WorkerLabel', line_number, line)

        if _is_missing(row.gold_label) or row.gold_label.strip() == '':
            gold_label = None
        else:
            gold_label = _parse_int(row.gold_label, 'GoldLabel', line_number, line)

        for field, value in (('WorkerLabel', worker_label), ('GoldLabel', gold_label)):
            error = _range_error(field, value, num_classes)
            if error is not None:
                raise DataFormatError('Line %i: %s. Line content: \'%s\'' % (line_number, error, line))

        data.append(Datum(row.worker_id, row.task_id, worker_label, row.body_text, gold_label))

    return data


def check_label_range(data, num_classes):
    '''
    Raises a DataFormatError naming the first record whose worker or gold label is outside [0, num_classes). Records
    loaded with load_data(..., num_classes) have already been checked against their file lines.
    '''
    for i, datum in enumerate(data):
        for field, value in (('WorkerLabel', datum.worker_label), ('GoldLabel', datum.gold_label)):
            error = _range_error(field, value, num_classes)
            if error is not None:
                raise DataFormatError('Record %i: %s' % (i + 1, error))
