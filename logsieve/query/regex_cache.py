# Bounded cache of compiled regular expressions keyed by (pattern, flags)
# Eviction is first-in-first-out: a cache hit does not refresh an entry

import logging
import re
import threading
from collections import OrderedDict

from ..constants import REGEX_CACHE_SIZE

logger = logging.getLogger(__name__)


class RegexCache:
    """Memoizes compiled patterns, holding at most *capacity* of them.

    `get()` never raises for bad pattern syntax; it returns None, which
    callers treat as "never matches". Invalid patterns are not cached.

    The cache may be shared between the store owner and a filter worker
    thread, so lookups and insertions are serialized with a lock.
    """

    def __init__(self, capacity=REGEX_CACHE_SIZE):
        if capacity < 1:
            raise ValueError("RegexCache capacity must be at least 1 (got %r)" % (capacity,))
        self.capacity = capacity
        self._patterns = OrderedDict()
        self._lock = threading.Lock()

    def get(self, pattern, flags=0):
        """Return the compiled *pattern*, or None if it is not valid regex syntax."""
        key = (pattern, flags)
        with self._lock:
            compiled = self._patterns.get(key)
            if compiled is not None:
                return compiled
            try:
                compiled = re.compile(pattern, flags)
            except (re.error, OverflowError, RecursionError) as exc:
                logger.debug("Invalid regex %r: %s", pattern, exc)
                return None
            if len(self._patterns) >= self.capacity:
                self._patterns.popitem(last=False)
            self._patterns[key] = compiled
            return compiled

    def clear(self):
        with self._lock:
            self._patterns.clear()

    def __len__(self):
        return len(self._patterns)

    def __contains__(self, key):
        return key in self._patterns


# Shared by the matcher unless a caller supplies its own cache
default_cache = RegexCache()
