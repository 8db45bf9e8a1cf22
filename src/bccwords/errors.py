'''
Exceptions and warnings raised while loading data and running BCCWords inference.
'''


class BCCWordsError(Exception):
    pass


class DataFormatError(BCCWordsError, ValueError):
    '''
    A record in the input file is malformed or holds an out-of-range label. The message starts with the line number.
    '''
    pass


class DataIntegrityError(BCCWordsError, ValueError):
    '''
    The ragged index arrays passed to the inference engine are inconsistent, e.g. an index is out of range or the
    per-worker label and task lists have different lengths.
    '''
    pass


class NumericalError(BCCWordsError, ArithmeticError):
    '''
    NaN or Inf appeared in the posterior computations. The run is aborted rather than returning degenerate posteriors.
    '''
    pass


class DegenerateDataWarning(UserWarning):
    pass
