"""Worker pools for parallel fits.

Grid evaluations and optimizer attempts run on a pathos ``ProcessingPool``,
which pickles with dill and so accepts objectives holding bound methods and
closures. Its workers are daemonic and cannot start pools of their own, so
fits that are themselves parallel run on a non-daemonic ``multiprocess`` pool.
"""

import logging
from contextlib import contextmanager

import multiprocess
import multiprocess.pool
from pathos.multiprocessing import ProcessingPool as Pool

logger = logging.getLogger(__name__)


class _NonDaemonProcess(multiprocess.Process):
    @property
    def daemon(self):
        return False

    @daemon.setter
    def daemon(self, value):
        pass


class _NonDaemonContext(type(multiprocess.get_context())):
    Process = _NonDaemonProcess


class _NestablePool(multiprocess.pool.Pool):
    """Process pool whose workers may run pools of their own."""

    def __init__(self, *args, **kwargs):
        kwargs["context"] = _NonDaemonContext()
        super().__init__(*args, **kwargs)


@contextmanager
def worker_pool(n_workers: int, nested: bool = False):
    """Yield a pool with ``n_workers`` processes, or None for serial runs.

    Arguments
    ---------
        n_workers (int): Number of worker processes. Values below 2 run
            serially.
        nested (bool): Workers start pools of their own.
    """
    if n_workers <= 1:
        yield None
        return
    if nested:
        pool = _NestablePool(processes=n_workers)
        try:
            yield pool
        finally:
            pool.close()
            pool.join()
        return
    pool = Pool(processes=n_workers)
    try:
        yield pool
    finally:
        # pathos caches pools per size, clear() drops the cached instance
        pool.close()
        pool.join()
        pool.clear()
    logger.debug("Closed pool of %d workers", n_workers)


def parallel_map(func, items, pool=None) -> list:
    """Apply ``func`` to every item, on ``pool`` if one is given."""
    if pool is None:
        return [func(item) for item in items]
    return list(pool.map(func, items))
