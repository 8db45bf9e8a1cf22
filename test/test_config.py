'''
Tests for the run settings.
'''
import os
import shutil
import tempfile
import unittest

from bccwords.config import Settings, LABEL_NAMES


class Test(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_defaults(self):
        settings = Settings()

        assert settings.num_classes is None
        assert settings.initial_worker_belief == 0.6
        assert settings.num_iterations == 35
        assert settings.vocabulary_size == 1000
        assert settings.top_words == 30

    def test_overrides(self):
        settings = Settings(num_iterations=5, vocabulary_size=None)

        assert settings.num_iterations == 5
        assert settings.vocabulary_size == 1000  # None keeps the default
        assert Settings.num_iterations == 35

        with self.assertRaises(AttributeError):
            Settings(num_sweeps=3)

    def test_config_file(self):
        path = os.path.join(self.tmpdir, 'config.ini')
        with open(path, 'w') as f:
            f.write('[model]\n'
                    'num_classes = 5\n'
                    'initial_worker_belief = 0.8 # prior accuracy\n'
                    '[vocabulary]\n'
                    'vocabulary_size = 50\n'
                    'tfidf_threshold = 0.8\n'
                    '[output]\n'
                    'label_names = weather\n')

        settings = Settings(path, num_classes=3)

        assert settings.num_classes == 3  # command line values win
        assert settings.initial_worker_belief == 0.8
        assert settings.vocabulary_size == 50
        assert settings.tfidf_threshold == 0.8
        assert settings.label_names == 'weather'
        assert settings.num_iterations == 35

    def test_missing_config_file(self):
        with self.assertRaises(FileNotFoundError):
            Settings(os.path.join(self.tmpdir, 'missing.ini'))

    def test_label_names(self):
        settings = Settings(label_names='weather')
        assert settings.get_label_names(5) == LABEL_NAMES['weather']
        assert settings.get_label_names(2) == ('0', '1')

        assert Settings().get_label_names(3) == ('0', '1', '2')

        with self.assertRaises(ValueError):
            Settings(label_names='sports').get_label_names(2)

    def test_label_names_read_only(self):
        with self.assertRaises(TypeError):
            LABEL_NAMES['other'] = ('a', 'b')


if __name__ == '__main__':
    unittest.main()
