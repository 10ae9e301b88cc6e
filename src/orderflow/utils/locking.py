"""Serialization of read-modify-write cycles on shared records.

Stock counters, carts and order sub-documents are loaded, changed and saved
back through Protean repositories. Every such cycle runs under ``record_lock``
so two requests can never both act on the same stale copy.
"""

import threading
from contextlib import contextmanager

_lock = threading.RLock()


@contextmanager
def record_lock():
    with _lock:
        yield
