import time

from .ring_buffer import RingBuffer


class SourceLogCollection:
    """Bounded history of the records received from one source (device)."""

    def __init__(self, source_id, capacity, name=None):
        self.source_id = source_id
        self.name = name if name is not None else str(source_id)
        self.records = RingBuffer(capacity)
        self.last_activity = None

    def append(self, records):
        """Append *records* in arrival order and return the evicted ones."""
        evicted = self.records.extend(records)
        self.last_activity = time.time()
        return evicted

    def resize(self, capacity):
        return self.records.resize(capacity)

    def clear(self):
        self.records.clear()

    def __len__(self):
        return len(self.records)

    def __repr__(self):
        return "<SourceLogCollection %r %d/%d>" % (self.source_id, len(self.records), self.records.capacity)
