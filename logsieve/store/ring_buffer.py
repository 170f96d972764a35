# Fixed-capacity FIFO used for per-source record buffers
# Pushing past capacity drops the oldest item in O(1) and reports what was dropped

from collections import deque


class RingBuffer:
    """Bounded, insertion-ordered sequence of items.

    Appending to a full buffer evicts the oldest item; `extend()` and
    `resize()` return the evicted items (oldest first) so callers can keep
    derived views and counters in sync.
    """

    def __init__(self, capacity, items=()):
        self._check_capacity(capacity)
        self._items = deque(maxlen=capacity)
        self.extend(items)

    @staticmethod
    def _check_capacity(capacity):
        if not isinstance(capacity, int) or capacity < 1:
            raise ValueError("Buffer capacity must be a positive integer (got %r)" % (capacity,))

    @property
    def capacity(self):
        return self._items.maxlen

    def extend(self, items):
        """Append *items* in order, returning the list of evicted items."""
        evicted = []
        buf = self._items
        for item in items:
            if len(buf) == buf.maxlen:
                evicted.append(buf.popleft())
            buf.append(item)
        return evicted

    def append(self, item):
        return self.extend((item,))

    def resize(self, capacity):
        """Change the capacity, returning the items dropped to fit."""
        self._check_capacity(capacity)
        excess = max(len(self._items) - capacity, 0)
        evicted = [self._items.popleft() for _ in range(excess)]
        self._items = deque(self._items, maxlen=capacity)
        return evicted

    def clear(self):
        self._items.clear()

    def first(self):
        return self._items[0] if self._items else None

    def last(self):
        return self._items[-1] if self._items else None

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __repr__(self):
        return "<RingBuffer %d/%d>" % (len(self._items), self.capacity)
