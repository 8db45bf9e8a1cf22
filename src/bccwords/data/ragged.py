'''
Ragged arrays stored as one flat buffer plus a table of row offsets.
'''
import numpy as np
from scipy.sparse import csr_matrix


class RaggedArray(object):
    '''
    A sequence of variable-length integer rows. Row i is values[offsets[i]:offsets[i+1]].

    The offsets table has the same layout as the indptr of a CSR matrix, so rows can be turned into a sparse matrix
    without copying the index buffer.
    '''

    def __init__(self, values, offsets):
        self.values = np.asarray(values, dtype=int)
        self.offsets = np.asarray(offsets, dtype=int)

        if self.offsets.ndim != 1 or len(self.offsets) == 0 or self.offsets[0] != 0:
            raise ValueError('offsets must be a 1D array starting at 0')
        if self.offsets[-1] != len(self.values):
            raise ValueError('the last offset (%i) must equal the number of values (%i)' % (self.offsets[-1],
                                                                                         len(self.values)))
        if np.any(np.diff(self.offsets) < 0):
            raise ValueError('offsets must be non-decreasing')

    @classmethod
    def from_lists(cls, rows):
        if isinstance(rows, RaggedArray):
            return rows

        lengths = np.array([len(row) for row in rows], dtype=int)
        offsets = np.zeros(len(lengths) + 1, dtype=int)
        np.cumsum(lengths, out=offsets[1:])

        if offsets[-1] > 0:
            values = np.concatenate([np.asarray(row, dtype=int).reshape(-1) for row in rows])
        else:
            values = np.zeros(0, dtype=int)

        return cls(values, offsets)

    def __len__(self):
        return len(self.offsets) - 1

    def __getitem__(self, i):
        if i < 0:
            i += len(self)
        if not 0 <= i < len(self):
            raise IndexError('row %i is out of range for a ragged array with %i rows' % (i, len(self)))
        return self.values[self.offsets[i]:self.offsets[i + 1]]

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def lengths(self):
        return np.diff(self.offsets)

    def row_ids(self):
        '''
        :return: the row index of every entry in the flat buffer.
        '''
        return np.repeat(np.arange(len(self)), self.lengths())

    def tolist(self):
        return [row.tolist() for row in self]

    def to_csr(self, ncols, data=None):
        '''
        Count matrix with one row per ragged row and ncols columns. Repeated values within a row are summed.
        '''
        if data is None:
            data = np.ones(len(self.values))
        mat = csr_matrix((data, self.values, self.offsets), shape=(len(self), ncols))
        mat.sum_duplicates()
        return mat

    def __eq__(self, other):
        if not isinstance(other, RaggedArray):
            return NotImplemented
        return np.array_equal(self.offsets, other.offsets) and np.array_equal(self.values, other.values)

    def __repr__(self):
        return 'RaggedArray(%s)' % self.tolist()
