'''
Settings for a BCCWords run. Defaults are class attributes; values can be overridden from an INI file of the form:

[model]
num_classes = 5
initial_worker_belief = 0.6
num_iterations = 35

[vocabulary]
vocabulary_size = 1000
vocabulary_threshold = 0
tfidf_threshold = 0.8
stop_words_file = stopwords.txt

[output]
top_words = 30
label_names = weather
'''
import configparser
import logging
from types import MappingProxyType


# Names of the label classes used by the two datasets the model was first applied to. Built once and read-only.
LABEL_NAMES = MappingProxyType({
    'weather': ('negative', 'positive', 'neutral', 'not related', 'unknown'),
    'spam': ('ham', 'spam'),
})


def _strip_comment(value):
    return value.split('#')[0].strip()


class Settings(object):

    # model
    num_classes = None  # inferred from the data when None
    initial_worker_belief = 0.6
    num_iterations = 35

    # vocabulary
    vocabulary_size = 1000  # 0 means no cap
    vocabulary_threshold = 0  # minimum number of repeat occurrences of a term in the corpus
    tfidf_threshold = None
    stop_words_file = None

    # output
    top_words = 30
    label_names = None

    def __init__(self, config_file=None, **overrides):
        if config_file is not None:
            self._read_config_file(config_file)

        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(Settings, key):
                raise AttributeError('Unknown setting %s' % key)
            setattr(self, key, value)

    def _read_config_file(self, config_file):
        logging.info('Reading config file %s' % config_file)

        parser = configparser.ConfigParser()
        if not parser.read(config_file):
            raise FileNotFoundError('Could not read config file %s' % config_file)

        if parser.has_section('model'):
            parameters = dict(parser.items('model'))
            if 'num_classes' in parameters:
                self.num_classes = int(_strip_comment(parameters['num_classes']))
            if 'initial_worker_belief' in parameters:
                self.initial_worker_belief = float(_strip_comment(parameters['initial_worker_belief']))
            if 'num_iterations' in parameters:
                self.num_iterations = int(_strip_comment(parameters['num_iterations']))

        if parser.has_section('vocabulary'):
            parameters = dict(parser.items('vocabulary'))
            if 'vocabulary_size' in parameters:
                self.vocabulary_size = int(_strip_comment(parameters['vocabulary_size']))
            if 'vocabulary_threshold' in parameters:
                self.vocabulary_threshold = int(_strip_comment(parameters['vocabulary_threshold']))
            if 'tfidf_threshold' in parameters:
                self.tfidf_threshold = float(_strip_comment(parameters['tfidf_threshold']))
            if 'stop_words_file' in parameters:
                self.stop_words_file = _strip_comment(parameters['stop_words_file'])

        if parser.has_section('output'):
            parameters = dict(parser.items('output'))
            if 'top_words' in parameters:
                self.top_words = int(_strip_comment(parameters['top_words']))
            if 'label_names' in parameters:
                self.label_names = _strip_comment(parameters['label_names'])

    def get_label_names(self, num_classes):
        '''
        :return: a tuple with a name for each class. Falls back to the class indices if no table was chosen or the
        chosen table does not match the number of classes.
        '''
        if self.label_names is not None:
            if self.label_names not in LABEL_NAMES:
                raise ValueError('Unknown label names %s, expected one of %s' % (self.label_names,
                                                                                 ', '.join(LABEL_NAMES)))
            names = LABEL_NAMES[self.label_names]
            if len(names) == num_classes:
                return names
            logging.warning('Label names %s have %i entries but the data has %i classes' % (
                self.label_names, len(names), num_classes))

        return tuple(str(c) for c in range(num_classes))
