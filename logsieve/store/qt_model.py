# Qt item model over a LogStore's filtered view, plus a timer that feeds the store
# Requires a Qt binding (see logsieve.qt); the rest of logsieve does not

from .. import qt
from ..constants import LEVEL_COLORS, LogColumns


class ItemDataRole:
    """Constants for custom data roles."""
    LOG_RECORD = qt.Qt.ItemDataRole.UserRole        # LogRecord object
    LOG_ID = qt.Qt.ItemDataRole.UserRole + 1        # record id
    IS_MARKER = qt.Qt.ItemDataRole.UserRole + 2     # bool


class FilteredLogModel(qt.QAbstractTableModel):
    """Read-only table model showing the records of ``store.filtered_logs``.

    The model subscribes to the store and resets itself after every change;
    call `detach()` to stop following the store.
    """

    def __init__(self, store, parent=None):
        super().__init__(parent)
        self.store = store
        self._records = store.filtered_logs
        store.subscribe(self._store_changed)

    def detach(self):
        self.store.unsubscribe(self._store_changed)

    def _store_changed(self, store, event):
        self.beginResetModel()
        self._records = store.filtered_logs
        self.endResetModel()

    def record(self, row):
        return self._records[row]

    def rowCount(self, parent=qt.QModelIndex()):
        if parent.isValid():
            return 0
        return len(self._records)

    def columnCount(self, parent=qt.QModelIndex()):
        if parent.isValid():
            return 0
        return len(LogColumns.TITLES)

    def headerData(self, section, orientation, role=qt.Qt.ItemDataRole.DisplayRole):
        if orientation == qt.Qt.Orientation.Horizontal and role == qt.Qt.ItemDataRole.DisplayRole:
            return LogColumns.TITLES[section]
        return None

    def data(self, index, role=qt.Qt.ItemDataRole.DisplayRole):
        if not index.isValid() or index.row() >= len(self._records):
            return None
        rec = self._records[index.row()]
        if role == qt.Qt.ItemDataRole.DisplayRole:
            return self._column_text(rec, index.column())
        if role == qt.Qt.ItemDataRole.ForegroundRole:
            return qt.QColor(LEVEL_COLORS[rec.level.letter])
        if role == ItemDataRole.LOG_RECORD:
            return rec
        if role == ItemDataRole.LOG_ID:
            return rec.id
        if role == ItemDataRole.IS_MARKER:
            return rec.is_marker
        return None

    def _column_text(self, rec, column):
        if rec.is_marker:
            # markers are shown as a bare message
            return rec.message if column == LogColumns.MESSAGE else ''
        if column == LogColumns.TIMESTAMP:
            return rec.timestamp
        if column == LogColumns.PID:
            return str(rec.pid)
        if column == LogColumns.TID:
            return str(rec.tid)
        if column == LogColumns.LEVEL:
            return rec.level.letter
        if column == LogColumns.TAG:
            return rec.tag
        if column == LogColumns.MESSAGE:
            return rec.message
        return None


class StorePump(qt.QObject):
    """Applies transport batches and filter worker results to a store from the Qt event loop.

    Parameters
    ----------
    store : LogStore
    server : RecordServer | None
        Source of queued record batches.
    interval : int
        Polling interval in milliseconds.
    """

    # number of batches applied by one poll
    batches_applied = qt.Signal(int)

    def __init__(self, store, server=None, interval=50, parent=None):
        super().__init__(parent)
        self.store = store
        self.server = server
        self.timer = qt.QTimer(self)
        self.timer.timeout.connect(self.pump)
        self.timer.start(interval)

    def pump(self):
        applied = 0
        if self.server is not None:
            applied = self.server.pump(self.store)
        self.store.collect_worker_results()
        if applied:
            self.batches_applied.emit(applied)
        return applied

    def stop(self):
        self.timer.stop()
