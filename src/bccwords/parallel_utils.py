'''
Helpers for splitting the per-task and per-worker updates into chunks that run in parallel threads.
'''
import numpy as np
from joblib import delayed, effective_n_jobs

n_jobs = max(1, int(effective_n_jobs() / 2))  # limit the number of parallel jobs. Within each job, numpy can spawn more
# threads, which can cause the total number of CPUs required to exceed the limit.


def row_chunks(nrows, njobs=None):
    '''
    :return: list of (start, stop) pairs covering range(nrows) in contiguous, non-overlapping blocks.
    '''
    if njobs is None:
        njobs = n_jobs
    nchunks = max(1, min(nrows, njobs))
    bounds = np.linspace(0, nrows, nchunks + 1).astype(int)
    return [(bounds[i], bounds[i + 1]) for i in range(nchunks) if bounds[i + 1] > bounds[i]]


def run_chunks(parallel, fn, chunks):
    '''
    Calls fn(start, stop) for every chunk. Each call must write only to its own slice of the output.
    '''
    return parallel(delayed(fn)(start, stop) for start, stop in chunks)
