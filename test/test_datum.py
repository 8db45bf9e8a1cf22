'''
Tests for loading the TSV records.
'''
import os
import shutil
import tempfile
import unittest

from bccwords.data.datum import Datum, load_data, check_label_range
from bccwords.errors import DataFormatError


class Test(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def _write(self, content):
        path = os.path.join(self.tmpdir, 'data.tsv')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def test_load_data(self):
        path = self._write('w1\tt1\t1\tthe weather is lovely\t1\n'
                           'w2\tt1\t0\tthe weather is lovely\n'
                           'w1\tt2\t0\train all day\t0\n')
        data = load_data(path)

        assert len(data) == 3
        assert data[0] == Datum('w1', 't1', 1, 'the weather is lovely', 1)
        assert data[1].gold_label is None
        assert data[2].worker_label == 0
        assert data[2].gold_label == 0

    def test_blank_lines_skipped(self):
        path = self._write('w1\tt1\t1\tsunny\n\nw2\tt1\t1\tsunny\n')
        data = load_data(path)

        assert len(data) == 2
        assert data[1].worker_id == 'w2'

    def test_max_length(self):
        path = self._write('w1\tt1\t1\tsunny\nw2\tt1\t1\tsunny\nw3\tt1\t0\tsunny\n')
        assert len(load_data(path, max_length=2)) == 2

    def test_empty_file(self):
        path = self._write('')
        assert load_data(path) == []

    def test_too_few_fields(self):
        path = self._write('w1\tt1\t1\tsunny\nw2\tt1\t1\n')
        with self.assertRaises(DataFormatError) as cm:
            load_data(path)
        assert 'Line 2' in str(cm.exception)

    def test_label_not_integer(self):
        path = self._write('w1\tt1\tpositive\tsunny\n')
        with self.assertRaises(DataFormatError) as cm:
            load_data(path)
        assert 'Line 1' in str(cm.exception)
        assert 'WorkerLabel' in str(cm.exception)

    def test_extra_fields_ignored(self):
        path = self._write('w1\tt1\t0\thello\t1\t\n'
                           'w2\tt1\t1\thello\t\n'
                           'w3\tt1\t1\thello\t0\tnote\n')
        data = load_data(path)

        assert len(data) == 3
        assert data[0] == Datum('w1', 't1', 0, 'hello', 1)
        assert data[1] == Datum('w2', 't1', 1, 'hello', None)
        assert data[2] == Datum('w3', 't1', 1, 'hello', 0)

    def test_sixth_field_on_first_line(self):
        path = self._write('w1\tt1\t0\thello\t1\tnote\n'
                           'w2\tt2\t1\tbye\n')
        data = load_data(path)

        assert data[0].worker_id == 'w1'
        assert data[0].worker_label == 0
        assert data[1] == Datum('w2', 't2', 1, 'bye', None)

    def test_label_out_of_range_reports_line(self):
        path = self._write('w1\tt1\t0\thello\n\n\nw2\tt1\t-1\thello\n')
        with self.assertRaises(DataFormatError) as cm:
            load_data(path)
        assert 'Line 4' in str(cm.exception)
        assert 'WorkerLabel -1' in str(cm.exception)

        path = self._write('w1\tt1\t0\thello\n\nw2\tt1\t1\thello\t2\n')
        assert len(load_data(path)) == 2
        with self.assertRaises(DataFormatError) as cm:
            load_data(path, num_classes=2)
        assert 'Line 3' in str(cm.exception)
        assert 'GoldLabel 2 is out of range [0, 2)' in str(cm.exception)

    def test_check_label_range(self):
        data = [Datum('w1', 't1', 0, 'a'), Datum('w1', 't2', 2, 'b')]
        check_label_range(data, 3)
        with self.assertRaises(DataFormatError) as cm:
            check_label_range(data, 2)
        assert 'Record 2' in str(cm.exception)


if __name__ == '__main__':
    unittest.main()
