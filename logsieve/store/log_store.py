# Bounded multi-source log store backing the filter view
# Owns per-source ring buffers, the active view, the filtered view and running statistics

import logging
import queue
from collections import Counter, deque
from itertools import islice

from ..constants import DEFAULT_MAX_LOG_LINES, DELEGATE_THRESHOLD
from ..query import DEFAULT_FILTER, RecordFilter
from ..records import make_marker
from .collection import SourceLogCollection
from .history import FilterHistory, FilterPresets
from .stats import Stats

logger = logging.getLogger(__name__)


class LogStore:
    """Retains recent log records per source and maintains a filtered view of one of them.

    Parameters
    ----------
    max_log_lines : int
        Capacity of each source's buffer. The oldest records are dropped first.
    worker : FilterWorker | None
        If given, full recomputes over at least *delegate_threshold* records
        are matched on the worker thread. Results must be fed back with
        `apply_worker_result()` or `collect_worker_results()`.
    delegate_threshold : int
        Minimum active view size for delegating a recompute to *worker*.
    cache : RegexCache | None
        Regex cache used by the matcher (defaults to the shared cache).

    Notes
    -----
    The store is not thread-safe: every method must be called from the thread
    that owns it. Records arriving on other threads (see
    `logsieve.remote.RecordServer`) are queued and applied by the owner.

    Observers registered with `subscribe()` are called as
    ``callback(store, event)`` after each change, where *event* is one of
    'append', 'filter', 'switch', 'clear', 'import', 'pause' or 'resize'.
    """

    def __init__(self, max_log_lines=DEFAULT_MAX_LOG_LINES, worker=None,
                 delegate_threshold=DELEGATE_THRESHOLD, cache=None):
        self._check_max_log_lines(max_log_lines)
        self.max_log_lines = max_log_lines
        self.worker = worker
        self.delegate_threshold = delegate_threshold
        self.cache = cache
        self.paused = False
        self.filter = DEFAULT_FILTER
        self.stats = Stats()
        self.presets = FilterPresets()
        self.history = FilterHistory()

        self._predicate = RecordFilter(self.filter, cache)
        self._collections = {}
        self._active_source = None
        # the active collection's RingBuffer, or a list when detached (import_snapshot()
        # or an active source with no records yet)
        self._active = ()
        self._filtered = deque()
        # number of records dropped from the front of the active view; the
        # record at active[i] has sequence number _evicted_count + i
        self._evicted_count = 0
        self._pending_request = None
        self._last_id = -1
        self._observers = []

    @staticmethod
    def _check_max_log_lines(value):
        if not isinstance(value, int) or value < 1:
            raise ValueError("max_log_lines must be a positive integer (got %r)" % (value,))

    # ---- read access --------------------------------------------------------

    @property
    def active_source(self):
        """Id of the source mirrored into the active view (None when detached or unset)."""
        return self._active_source

    @property
    def logs(self):
        """Records of the active view, oldest first."""
        return list(self._active)

    @property
    def filtered_logs(self):
        """Records of the active view accepted by the current filter, oldest first."""
        return list(self._filtered)

    @property
    def query(self):
        """ParsedQuery for the current filter's search text."""
        return self._predicate.query

    @property
    def pending_request(self):
        """Correlation id of the outstanding worker request, if any."""
        return self._pending_request

    def collection(self, source_id):
        return self._collections.get(source_id)

    def sources(self):
        return list(self._collections.values())

    # ---- observers ------------------------------------------------------------

    def subscribe(self, callback):
        if callback not in self._observers:
            self._observers.append(callback)
        return callback

    def unsubscribe(self, callback):
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event):
        for callback in list(self._observers):
            try:
                callback(self, event)
            except Exception:
                logger.exception("Log store observer %r failed handling %r", callback, event)

    # ---- ingestion ------------------------------------------------------------

    def append_batch(self, source_id, records):
        """Append records received from *source_id*.

        While paused the records are discarded. Otherwise they are added to the
        source's buffer (evicting the oldest records past capacity), and if the
        source is active only the new records are matched against the current
        filter. Returns the number of records accepted.
        """
        if self.paused:
            return 0
        batch = [rec if rec.source_id == source_id else rec._replace(source_id=source_id)
                 for rec in records]
        if not batch:
            return 0

        is_active = self._is_active(source_id)
        collection = self._collections.get(source_id)
        if collection is None:
            collection = self._create_collection(source_id)
            if is_active:
                # the active source was selected before its first record arrived
                self._active = collection.records
        evicted = collection.append(batch)
        self._last_id = max(self._last_id, max(rec.id for rec in batch))

        if is_active:
            self._apply_append(batch, evicted, collection.records.capacity)
        self._notify('append')
        return len(batch)

    def _is_active(self, source_id):
        # a detached view (no active source) never receives live records
        return self._active_source is not None and source_id == self._active_source

    def _create_collection(self, source_id, name=None):
        collection = SourceLogCollection(source_id, self.max_log_lines, name=name)
        self._collections[source_id] = collection
        logger.debug("Created log collection for source %r", source_id)
        return collection

    def _apply_append(self, batch, evicted, capacity):
        # a batch larger than the buffer pushes out some of its own records
        lost = max(len(batch) - capacity, 0)
        admitted = batch[lost:]
        evicted_old = evicted[:len(evicted) - lost]

        self._evicted_count += len(evicted)
        self.stats.remove(evicted_old)
        self.stats.add(admitted)
        self._drop_evicted(evicted_old)
        if self._predicate.accepts_all:
            self._filtered.extend(admitted)
        else:
            self._filtered.extend(rec for rec in admitted if self._predicate(rec))
        self.stats.filtered = len(self._filtered)

    def _drop_evicted(self, evicted):
        # the filtered view is an ordered subsequence of the active view and
        # eviction removes a prefix of it, so evicted records sit at the front
        if not evicted:
            return
        gone = Counter(id(rec) for rec in evicted)
        filtered = self._filtered
        while filtered and gone[id(filtered[0])] > 0:
            gone[id(filtered.popleft())] -= 1

    def add_marker(self, source_id, message, kind='disconnect'):
        """Append a synthetic connect/disconnect marker through the normal append path.

        Markers are ordered, evicted and filtered exactly like other records.
        Returns the marker record.
        """
        self._last_id += 1
        marker = make_marker(self._last_id, source_id, message, kind)
        self.append_batch(source_id, [marker])
        return marker

    # ---- source lifecycle -----------------------------------------------------

    def switch_active_source(self, source_id):
        """Make *source_id*'s collection the active view and recompute the filtered view.

        A source that has not sent any records yet gets an empty view; its
        collection is created (and attached) when its first batch arrives.
        Returns the collection, or None if the source is not known yet.
        """
        collection = self._collections.get(source_id) if source_id is not None else None
        self._active_source = source_id
        self._active = collection.records if collection is not None else []
        self._evicted_count = 0
        self._recompute('switch')
        return collection

    def clear_active(self):
        """Empty the active view, the filtered view and the statistics.

        If a source is active its retained records are discarded too; other
        sources are unaffected.
        """
        collection = self._collections.get(self._active_source)
        if self._is_active(self._active_source) and collection is not None:
            collection.clear()
        else:
            self._active = []
        self._reset_view()
        self._notify('clear')

    def clear_source(self, source_id):
        """Forget a source's collection entirely. Returns False if it was unknown."""
        collection = self._collections.pop(source_id, None)
        if collection is None:
            return False
        if self._is_active(source_id):
            self._active_source = None
            self._active = ()
            self._reset_view()
        self._notify('clear')
        return True

    def _reset_view(self):
        self._filtered = deque()
        self.stats.reset()
        self._evicted_count = 0
        self._pending_request = None

    def import_snapshot(self, records):
        """Replace the active view with externally supplied records.

        The view is detached from every source collection and the store is
        paused, so live records do not mix into the snapshot.
        """
        self._active_source = None
        self._active = list(records)
        self._evicted_count = 0
        self.paused = True
        self._recompute('import')

    # ---- filtering ------------------------------------------------------------

    def update_filter(self, **changes):
        """Change fields of the filter configuration and recompute the filtered view.

        Accepts any of ``search_text``, ``is_regex``, ``is_case_sensitive`` and
        ``pid``. Unknown names raise ValueError.
        """
        self._set_filter(self.filter.updated(**changes))

    def reset_filter(self):
        self._set_filter(DEFAULT_FILTER)

    def _set_filter(self, config):
        self.filter = config
        self._predicate = RecordFilter(config, self.cache)
        self._recompute('filter')

    def _recompute(self, event):
        self.stats.reset()
        self.stats.add(self._active)
        if self.worker is not None and len(self._active) >= self.delegate_threshold:
            if event != 'filter':
                # the current filtered view belongs to other records
                self._filtered = deque()
            self._submit()
        else:
            self._pending_request = None
            self._filtered = deque(self._predicate.filter(self._active))
        self.stats.filtered = len(self._filtered)
        logger.debug("Recomputed filtered view (%s): %d of %d records",
                     event, self.stats.filtered, self.stats.total)
        self._notify(event)

    def _submit(self):
        self._pending_request = self.worker.submit(
            self._active, self._predicate, start_seq=self._evicted_count)
        return self._pending_request

    def request_recompute(self):
        """Send the active view to the filter worker; return the request's correlation id."""
        if self.worker is None:
            raise RuntimeError("No filter worker is attached to this LogStore")
        return self._submit()

    def apply_worker_result(self, result):
        """Install a worker's filtered view if it answers the latest request.

        Results for older requests are discarded (last filter wins). Records
        evicted since the request are dropped from the result and records
        appended since are matched here. Returns True if the result was applied.
        """
        if result.request_id != self._pending_request:
            logger.debug("Discarding stale filter result %d (latest request is %s)",
                         result.request_id, self._pending_request)
            return False
        self._pending_request = None

        first_seq = self._evicted_count
        filtered = deque(rec for pos, rec in zip(result.positions, result.records)
                         if result.start_seq + pos >= first_seq)
        newer = islice(self._active, max(result.end_seq - first_seq, 0), None)
        filtered.extend(rec for rec in newer if self._predicate(rec))

        self._filtered = filtered
        self.stats.filtered = len(filtered)
        self._notify('filter')
        return True

    def collect_worker_results(self):
        """Apply every result waiting on the worker's result queue; return how many were applied."""
        if self.worker is None:
            return 0
        applied = 0
        while True:
            try:
                result = self.worker.results.get_nowait()
            except queue.Empty:
                break
            if self.apply_worker_result(result):
                applied += 1
        return applied

    # ---- presets --------------------------------------------------------------

    def save_preset(self, name):
        return self.presets.save(name, self.filter)

    def load_preset(self, preset_id):
        preset = self.presets.get(preset_id)
        if preset is None:
            raise KeyError("No filter preset with id %r" % (preset_id,))
        self._set_filter(preset.config)
        return preset

    def delete_preset(self, preset_id):
        return self.presets.delete(preset_id)

    def add_history(self, query=None):
        """Record *query* (default: the current search text) in the filter history."""
        if query is None:
            query = self.filter.search_text
        return self.history.add(query)

    # ---- settings -------------------------------------------------------------

    def set_paused(self, paused):
        """Pause or resume ingestion. Records appended while paused are discarded."""
        paused = bool(paused)
        if paused == self.paused:
            return
        self.paused = paused
        self._notify('pause')

    def toggle_pause(self):
        self.set_paused(not self.paused)
        return self.paused

    def set_max_log_lines(self, max_log_lines):
        """Change the capacity of every source buffer, evicting the oldest records if needed."""
        self._check_max_log_lines(max_log_lines)
        self.max_log_lines = max_log_lines
        for source_id, collection in self._collections.items():
            evicted = collection.resize(max_log_lines)
            if self._is_active(source_id) and evicted:
                self._evicted_count += len(evicted)
                self.stats.remove(evicted)
                self._drop_evicted(evicted)
                self.stats.filtered = len(self._filtered)
        self._notify('resize')
