'''
Tests for the text preprocessing and vocabulary building.
'''
import os
import tempfile
import unittest

import numpy as np

from bccwords.text.tfidf import TFIDFProcessor, tokenize, load_stop_words


class Test(unittest.TestCase):

    def test_tokenize_placeholders(self):
        tokens = tokenize('Visit http://x.com or mail me@y.org, costs $5 @bob <b>NOW</b>')

        assert 'httpaddr' in tokens
        assert 'emailaddr' in tokens
        assert 'dollarnumber' in tokens
        assert 'username' in tokens
        assert 'now' in tokens
        assert 'b' not in tokens
        assert '' not in tokens

    def test_stem_document(self):
        processor = TFIDFProcessor()

        assert processor.stem_document(None) == []
        assert processor.stem_document('The rain is cold') == ['rain', 'cold']
        assert processor.stem_document('storms!') == ['storm']

    def test_stop_words_file(self):
        fd, path = tempfile.mkstemp(suffix='.txt')
        try:
            with os.fdopen(fd, 'w') as f:
                f.write('rain\n\nCold\n')
            assert load_stop_words(path) == frozenset(['rain', 'cold'])

            processor = TFIDFProcessor(path)
            stems = processor.stem_document('the rain is cold wind')
            assert 'rain' not in stems
            assert 'cold' not in stems
            assert 'wind' in stems
        finally:
            os.remove(path)

    def test_normalize(self):
        v = TFIDFProcessor.normalize([1, 4])
        assert np.allclose(v, [1 / np.sqrt(17), 4 / np.sqrt(17)])

        m = TFIDFProcessor.normalize([[3, 4], [0, 0]])
        assert np.allclose(m, [[0.6, 0.8], [0, 0]])

    def test_transform(self):
        processor = TFIDFProcessor()
        tfidf, vocabulary = processor.transform(['rain cold', 'rain wind'], 0)

        assert vocabulary == ['rain', 'cold', 'wind']
        assert np.allclose(tfidf, [[np.log(2 / 3.0), 0, 0], [np.log(2 / 3.0), 0, 0]])

        # the IDF table is reused by later calls
        tfidf, vocabulary = processor.transform(['wind rain rain'])
        assert vocabulary == ['rain', 'cold', 'wind']
        assert np.allclose(tfidf, [[2 * np.log(2 / 3.0), 0, 0]])

    def test_build_vocabulary(self):
        corpus = ['rain cold', 'rain wind', 'storm rain', 'cold storm', 'rain cold']
        processor = TFIDFProcessor()

        assert processor.build_vocabulary(corpus) == ['rain', 'cold', 'wind', 'storm']
        assert processor.build_vocabulary(corpus, vocabulary_threshold=1) == ['rain', 'cold', 'storm']
        assert processor.build_vocabulary(corpus, vocabulary_size=2) == ['rain', 'cold']
        assert processor.build_vocabulary(corpus, vocabulary_size=0) == ['rain', 'cold', 'wind', 'storm']
        assert processor.build_vocabulary([]) == []

    def test_build_vocabulary_deterministic(self):
        corpus = ['the wind and the rain', 'a cold wind', 'storm warning', 'rain again']
        first = TFIDFProcessor().build_vocabulary(corpus)
        second = TFIDFProcessor().build_vocabulary(corpus)

        assert first == second

    def test_word_indices(self):
        processor = TFIDFProcessor()
        vocabulary = ['rain', 'cold']

        indices = processor.word_indices(['rain rain cold', 'sunshine', None], vocabulary)
        assert indices.tolist() == [[0, 0, 1], [], []]

        indices = processor.word_indices(['rain rain cold'], vocabulary, distinct=True)
        assert indices.tolist() == [[0, 1]]


if __name__ == '__main__':
    unittest.main()
