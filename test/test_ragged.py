'''
Tests for the flat buffer + offsets ragged arrays.
'''
import unittest

import numpy as np

from bccwords.data.ragged import RaggedArray


class Test(unittest.TestCase):

    def test_from_lists(self):
        r = RaggedArray.from_lists([[1, 2], [], [3, 4, 5]])

        assert len(r) == 3
        assert np.array_equal(r.offsets, [0, 2, 2, 5])
        assert np.array_equal(r.values, [1, 2, 3, 4, 5])
        assert r[1].size == 0
        assert r[-1].tolist() == [3, 4, 5]
        assert r.tolist() == [[1, 2], [], [3, 4, 5]]

    def test_empty(self):
        r = RaggedArray.from_lists([[], []])
        assert len(r) == 2
        assert r.values.size == 0
        assert np.array_equal(r.lengths(), [0, 0])

    def test_row_ids(self):
        r = RaggedArray.from_lists([[7], [], [8, 9]])
        assert np.array_equal(r.row_ids(), [0, 2, 2])

    def test_invalid_offsets(self):
        with self.assertRaises(ValueError):
            RaggedArray([1, 2, 3], [0, 2])
        with self.assertRaises(ValueError):
            RaggedArray([1, 2], [1, 2])
        with self.assertRaises(ValueError):
            RaggedArray([1, 2], [0, 2, 1, 2])

    def test_index_error(self):
        r = RaggedArray.from_lists([[1]])
        with self.assertRaises(IndexError):
            r[1]

    def test_to_csr_sums_duplicates(self):
        r = RaggedArray.from_lists([[0, 2, 2], [], [1]])
        mat = r.to_csr(3).toarray()

        assert np.array_equal(mat, [[1, 0, 2], [0, 0, 0], [0, 1, 0]])

    def test_from_lists_passes_ragged_through(self):
        r = RaggedArray.from_lists([[1], [2, 3]])
        assert RaggedArray.from_lists(r) is r
        assert r == RaggedArray([1, 2, 3], [0, 1, 3])


if __name__ == '__main__':
    unittest.main()
