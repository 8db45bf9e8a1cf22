'''
Checks the quality of the loaded records before any inference is run. Problems that make the data unusable are
reported as errors; pathologies that still allow inference (one worker, one label value, empty texts, ...) are
reported as warnings so that the caller can decide whether to continue.
'''
import logging
import re
from collections import Counter

_ALPHA = re.compile(r'[^a-zA-Z\s]')

MAX_TEXT_LENGTH = 10000
MAX_CLASS_PROPORTION = 0.95


class ValidationResult(object):

    def __init__(self, total_records=0):
        self.errors = []
        self.warnings = []
        self.valid_records = 0
        self.total_records = total_records

    @property
    def is_valid(self):
        return len(self.errors) == 0

    def merge(self, other):
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)


def validate_data(data, label_values=None, min_text_length=1):
    '''
    :param data: list of Datum records.
    :param label_values: the valid label values. Defaults to {0, 1}.
    :param min_text_length: texts with fewer alphabetic characters than this produce a warning.
    :return: ValidationResult
    '''
    if label_values is None:
        label_values = {0, 1}
    expected = ', '.join(str(v) for v in sorted(label_values))

    result = ValidationResult(len(data))

    if len(data) == 0:
        result.errors.append('No data records found in file.')
        return result

    worker_ids = set()
    records_per_task = Counter()

    for i, datum in enumerate(data):
        line_number = i + 1
        n_errors = len(result.errors)

        if datum.worker_id is None or datum.worker_id.strip() == '':
            result.errors.append('Line %i: WorkerId is empty or whitespace.' % line_number)
        else:
            worker_ids.add(datum.worker_id)

        if datum.task_id is None or datum.task_id.strip() == '':
            result.errors.append('Line %i: TaskId is empty or whitespace.' % line_number)
        else:
            records_per_task[datum.task_id] += 1

        if datum.worker_label not in label_values:
            result.errors.append('Line %i: WorkerLabel \'%s\' is not a valid label. Expected one of: %s' % (
                line_number, datum.worker_label, expected))

        if datum.gold_label is not None and datum.gold_label not in label_values:
            result.errors.append('Line %i: GoldLabel \'%s\' is not a valid label. Expected one of: %s' % (
                line_number, datum.gold_label, expected))

        if datum.body_text is None or datum.body_text.strip() == '':
            result.errors.append('Line %i: BodyText is empty or whitespace.' % line_number)
        else:
            clean_text = _ALPHA.sub('', datum.body_text).strip()
            if clean_text == '':
                result.warnings.append('Line %i: BodyText contains no alphabetic characters (only punctuation/numbers). '
                                       'This may result in empty text after preprocessing.' % line_number)
            elif len(clean_text) < min_text_length:
                result.warnings.append('Line %i: BodyText is very short (%i characters after cleaning). This may not '
                                       'provide enough information for classification.' % (line_number,
                                                                                           len(clean_text)))

            if len(datum.body_text) > MAX_TEXT_LENGTH:
                result.warnings.append('Line %i: BodyText is very long (%i characters). This might be a data '
                                       'formatting error.' % (line_number, len(datum.body_text)))

        if len(result.errors) == n_errors:
            result.valid_records += 1

    if len(worker_ids) == 0:
        result.errors.append('No valid workers found in dataset.')
    elif len(worker_ids) == 1:
        result.warnings.append('Only one unique worker found. BCCWords is designed for multiple workers. Worker '
                               'reliability modeling may not be meaningful.')

    if len(records_per_task) == 0:
        result.errors.append('No valid tasks found in dataset.')
    elif len(records_per_task) == 1:
        result.warnings.append('Only one unique task found. The model requires multiple tasks for training.')

    single = sum(1 for count in records_per_task.values() if count == 1)
    if single > 0:
        result.warnings.append('%i task(s) have only one annotation. BCCWords works best with multiple annotations '
                               'per task to assess worker reliability.' % single)

    result.warnings.extend(label_distribution_warnings([datum.worker_label for datum in data]))

    return result


def label_distribution_warnings(labels):
    '''
    :return: warnings about a lack of label diversity or severe class imbalance among the worker labels.
    '''
    label_counts = Counter(labels)
    if len(label_counts) == 0:
        return []

    if len(label_counts) == 1:
        return ['All annotations have the same label (%s). The model may not learn meaningful patterns.' %
                next(iter(label_counts))]

    label, max_count = label_counts.most_common(1)[0]
    max_proportion = max_count / float(len(labels))
    if max_proportion > MAX_CLASS_PROPORTION:
        return ['Severe class imbalance detected: %.1f%% of annotations are class %s. This may affect model '
                'performance.' % (max_proportion * 100, label)]
    return []


def validate_processed_texts(processed_texts):
    '''
    :param processed_texts: dictionary from task id to the list of terms left after preprocessing.
    :return: ValidationResult with warnings for empty and one-term texts.
    '''
    result = ValidationResult(len(processed_texts))

    empty_texts = 0
    short_texts = 0
    for task_id, terms in processed_texts.items():
        if terms is None or len(terms) == 0:
            empty_texts += 1
            result.warnings.append('Task %s: Text is empty after preprocessing (stop word removal, stemming). This task '
                                   'will have no word features.' % task_id)
        elif len(terms) == 1:
            short_texts += 1
            result.warnings.append('Task %s: Only one term remains after preprocessing. Consider reviewing stop word '
                                   'list or text quality.' % task_id)
        else:
            result.valid_records += 1

    if empty_texts > 0:
        result.warnings.append('%i out of %i texts are empty after preprocessing. These texts will have no word '
                               'features for classification.' % (empty_texts, len(processed_texts)))
    if short_texts > 0:
        result.warnings.append('%i text(s) have only 1 term after preprocessing. Limited features may affect '
                               'classification quality.' % short_texts)

    return result


def print_validation_results(result, max_errors=20, max_warnings=10):
    print('\n--- Data Validation Results ---')
    print('Total Records: %i' % result.total_records)
    print('Valid Records: %i' % result.valid_records)

    if result.errors:
        print('\nERRORS (%i):' % len(result.errors))
        for error in result.errors[:max_errors]:
            print('  * %s' % error)
        if len(result.errors) > max_errors:
            print('  ... and %i more errors.' % (len(result.errors) - max_errors))

    if result.warnings:
        print('\nWARNINGS (%i):' % len(result.warnings))
        for warning in result.warnings[:max_warnings]:
            print('  * %s' % warning)
        if len(result.warnings) > max_warnings:
            print('  ... and %i more warnings.' % (len(result.warnings) - max_warnings))

    if result.is_valid and not result.warnings:
        print('All validation checks passed!')
    elif result.is_valid:
        print('\nData is valid, but please review warnings above.')
    else:
        print('\nData validation FAILED. Please fix errors before proceeding.')
        logging.error('Data validation failed with %i errors' % len(result.errors))

    print('-------------------------------\n')
