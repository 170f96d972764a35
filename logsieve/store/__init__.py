# Bounded multi-source log store and its supporting pieces
# The Qt model lives in logsieve.store.qt_model and is imported on demand

from .collection import SourceLogCollection
from .history import FilterHistory, FilterPreset, FilterPresets, HistoryItem
from .log_store import LogStore
from .ring_buffer import RingBuffer
from .stats import Stats
from .worker import FilterRequest, FilterResult, FilterWorker
