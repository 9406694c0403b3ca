import logging
import threading
from collections.abc import Callable, Hashable
from concurrent.futures import Future

logger = logging.getLogger()


class IsotopePatternCache:
    """Thread safe cache computing every key exactly once.

    The first caller of :meth:`get_or_compute` for a key runs the factory, concurrent callers for the same
    key wait for its result. Exceptions raised by the factory are cached as well and re-raised for every caller.
    Entries are never invalidated, a cache lives as long as one refinement run.

    Example
    -------

    .. code-block:: python

        cache = IsotopePatternCache("single resolution")
        pattern = cache.get_or_compute(formula, lambda: predictor.predict(formula, 1.0, 0.005))

    """

    def __init__(self, name: str = ""):
        self.name = name
        self._lock = threading.Lock()
        self._entries: dict[Hashable, Future] = {}
        self._hits = 0
        self._misses = 0

    def get_or_compute(self, key: Hashable, factory: Callable):
        with self._lock:
            future = self._entries.get(key)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._entries[key] = future
                self._misses += 1
            else:
                self._hits += 1

        if is_owner:
            try:
                future.set_result(factory())
            except BaseException as e:
                # the future is always resolved, concurrent callers block on it
                future.set_exception(e)

        return future.result()

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def log_stats(self):
        logger.info(
            f"Isotope pattern cache '{self.name}': {len(self):,} entries, {self.hits:,} hits, {self.misses:,} misses"
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}, name={self.name}, n_entries={len(self)}>"
