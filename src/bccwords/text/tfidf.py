'''
Text preprocessing for BCCWords: tokenisation, stop-word removal, stemming, TF-IDF vectors and the vocabulary of word
features used by the word model.
'''
import logging
import re
from collections import Counter

import numpy as np
from nltk.stem.snowball import SnowballStemmer
from scipy.sparse import csr_matrix
from sklearn.feature_extraction.text import CountVectorizer, ENGLISH_STOP_WORDS
from sklearn.preprocessing import normalize as sk_normalize

from bccwords.data.ragged import RaggedArray

_HTML = re.compile(r'<[^<>]+>')
_NUMBER = re.compile(r'[0-9]+')
_URL = re.compile(r'(http|https)://[^\s]*')
_EMAIL = re.compile(r'[^\s]+@[^\s]+')
_DOLLAR = re.compile(r'[$]+')
_USERNAME = re.compile(r'@[^\s]+')
_SEPARATORS = re.compile(r'[\s@$/#.\-:&*+=\[\]?!(){},\'"<>_;%\\]+')
_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]')


def tokenize(text):
    '''
    Lower-cases the text, replaces numbers, URLs, email addresses, dollar signs and user names with placeholder
    words, strips HTML tags, and splits on whitespace and punctuation.
    '''
    text = text.lower()
    text = _HTML.sub('', text)
    text = _NUMBER.sub('number', text)
    text = _URL.sub('httpaddr', text)
    text = _EMAIL.sub('emailaddr', text)
    text = _DOLLAR.sub('dollar', text)
    text = _USERNAME.sub('username', text)
    return [token for token in _SEPARATORS.split(text) if token]


def load_stop_words(filename):
    with open(filename, 'r', encoding='utf-8') as stop_file:
        return frozenset(line.strip().lower() for line in stop_file if line.strip())


class TFIDFProcessor(object):
    '''
    Converts raw documents into stemmed terms and TF-IDF vectors. The IDF table is computed by the first call to
    transform() and kept on this instance, so later calls reuse it.
    '''

    def __init__(self, stop_words=None, language='english'):
        if stop_words is None:
            stop_words = ENGLISH_STOP_WORDS
        elif isinstance(stop_words, str):
            stop_words = load_stop_words(stop_words)
        self.stop_words = frozenset(stop_words)

        self.stemmer = SnowballStemmer(language)
        self.vocabulary_idf = None

    def stem_document(self, doc):
        '''
        :return: the list of stems in the document, in order, with stop words and empty tokens removed.
        '''
        stems = []
        if doc is None:
            return stems

        for token in tokenize(doc):
            stripped = _NON_ALNUM.sub('', token)
            if stripped == '' or stripped in self.stop_words:
                continue
            stem = self.stemmer.stem(stripped)
            if len(stem) > 0:
                stems.append(stem)
        return stems

    def get_vocabulary(self, docs, vocabulary_threshold=0):
        '''
        Stems the documents and lists the terms that reoccur more than vocabulary_threshold times across the corpus,
        in the order they were first seen.

        :return: vocabulary, list of stemmed documents
        '''
        stemmed_docs = []
        word_counts = Counter()

        for doc_idx, doc in enumerate(docs):
            if (doc_idx + 1) % 10000 == 0:
                logging.info('Processing %i/%i' % (doc_idx + 1, len(docs)))

            stemmed_doc = self.stem_document(doc)
            word_counts.update(stemmed_doc)
            stemmed_docs.append(stemmed_doc)

        # Counter keeps first-seen order. The first occurrence of a term does not count towards the threshold.
        vocabulary = [term for term, count in word_counts.items() if count - 1 >= vocabulary_threshold]

        return vocabulary, stemmed_docs

    def _count_matrix(self, docs, vocabulary):
        if len(vocabulary) == 0:
            return csr_matrix((len(docs), 0))
        vectorizer = CountVectorizer(analyzer=self.stem_document, vocabulary=vocabulary)
        return vectorizer.transform(docs)

    def transform(self, documents, vocabulary_threshold=3):
        '''
        Transforms a list of documents into TF*IDF vectors, where TF is the count of a term in the document and
        IDF = log(ndocs / (1 + number of documents containing the term)).

        :return: ndocs x nterms array of TF-IDF values, vocabulary
        '''
        if self.vocabulary_idf is None:
            vocabulary, _ = self.get_vocabulary(documents, vocabulary_threshold)
            counts = self._count_matrix(documents, vocabulary)
            doc_freq = np.asarray((counts > 0).sum(axis=0)).flatten()
            idf = np.log(len(documents) / (1.0 + doc_freq))
            self.vocabulary_idf = dict(zip(vocabulary, idf))
        else:
            counts = self._count_matrix(documents, list(self.vocabulary_idf))

        vocabulary = list(self.vocabulary_idf)
        idf = np.array([self.vocabulary_idf[term] for term in vocabulary])

        return counts.toarray() * idf[None, :], vocabulary

    @staticmethod
    def normalize(vectors):
        '''
        Scales each vector to unit L2 norm. Accepts a single vector or a 2D array with one vector per row.
        All-zero vectors are left unchanged.
        '''
        vectors = np.asarray(vectors, dtype=float)
        if vectors.ndim == 1:
            return sk_normalize(vectors[None, :], norm='l2')[0]
        return sk_normalize(vectors, norm='l2')

    def build_vocabulary(self, corpus, vocabulary_threshold=0, tfidf_threshold=None, vocabulary_size=None):
        '''
        Selects the word features for the word model.

        :param corpus: raw documents; duplicates are removed before computing the TF-IDF values.
        :param vocabulary_threshold: minimum number of repeat occurrences of a term.
        :param tfidf_threshold: if set, a term is kept only if its normalised TF-IDF value exceeds the threshold in at
        least one document.
        :param vocabulary_size: if set and greater than zero, keep at most this many of the most frequent terms.
        :return: list of terms in first-seen order.
        '''
        corpus = list(dict.fromkeys(doc for doc in corpus if doc is not None))
        if len(corpus) == 0:
            return []

        self.vocabulary_idf = None
        tfidf, vocabulary = self.transform(corpus, vocabulary_threshold)
        if len(vocabulary) == 0:
            return []

        keep = np.ones(len(vocabulary), dtype=bool)
        if tfidf_threshold is not None:
            tfidf = self.normalize(tfidf)
            keep = np.any(tfidf > tfidf_threshold, axis=0)

        if vocabulary_size and np.sum(keep) > vocabulary_size:
            counts = np.asarray(self._count_matrix(corpus, vocabulary).sum(axis=0)).flatten().astype(float)
            counts[~keep] = -np.inf
            # stable sort so that ties keep first-seen order
            top = np.argsort(-counts, kind='stable')[:vocabulary_size]
            keep = np.zeros(len(vocabulary), dtype=bool)
            keep[top] = True

        return [term for term, kept in zip(vocabulary, keep) if kept]

    def word_indices(self, corpus, vocabulary, distinct=False):
        '''
        Maps each document to the list of vocabulary indices of its stemmed terms. Terms outside the vocabulary are
        dropped, so a document can end up with no words.

        :param distinct: if True, each term is listed at most once per document.
        :return: RaggedArray with one row per document.
        '''
        term_to_index = {term: i for i, term in enumerate(vocabulary)}

        rows = []
        for doc in corpus:
            indices = [term_to_index[stem] for stem in self.stem_document(doc) if stem in term_to_index]
            if distinct:
                indices = list(dict.fromkeys(indices))
            rows.append(indices)

        return RaggedArray.from_lists(rows)
