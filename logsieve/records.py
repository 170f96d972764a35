# Log record and severity types shared by the query engine and the log store
# Records are immutable named tuples; Severity is an ordinal enum

import enum
import time
from collections import namedtuple

from .constants import LEVEL_NAMES, MARKER_TAG, MARKER_KINDS


class Severity(enum.IntEnum):
    """Logcat severities, ordered from least to most severe."""
    VERBOSE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    ASSERT = 5

    @property
    def letter(self):
        return self.name[0]


def severity_family(value):
    """Return the Severity for *value*, or None if it is not a recognized spelling.

    Accepts Severity members, integer ranks 0-5, single letters (V/D/I/W/E/A)
    and full names (VERBOSE ... ASSERT), case-insensitively. Both spellings of
    a level map to the same rank.
    """
    if isinstance(value, Severity):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Severity(value)
        except ValueError:
            return None
    if not isinstance(value, str):
        return None
    rank = LEVEL_NAMES.get(value.strip().upper())
    if rank is None:
        return None
    return Severity(rank)


def now_ms():
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# (attribute name, key used in the dict / wire form)
_FIELDS = [
    ('id', 'id'),
    ('timestamp', 'timestamp'),
    ('level', 'level'),
    ('tag', 'tag'),
    ('message', 'message'),
    ('source_id', 'deviceId'),
    ('pid', 'pid'),
    ('tid', 'tid'),
    ('date_time', 'dateTime'),
    ('epoch', 'epoch'),
    ('package_name', 'packageName'),
    ('process_name', 'processName'),
    ('raw', 'raw'),
    ('is_marker', 'isSystemMarker'),
    ('marker_kind', 'markerKind'),
]

_LogRecordBase = namedtuple(
    '_LogRecordBase',
    [attr for attr, key in _FIELDS],
    defaults=(None, 0, 0, None, None, None, None, None, False, None),
)


class LogRecord(_LogRecordBase):
    """A single log line from one source.

    The first five fields (id, timestamp, level, tag, message) are required.
    *level* may be given in any spelling accepted by `severity_family()` and
    is always stored as a Severity.
    """
    __slots__ = ()

    def __new__(cls, *args, **kwds):
        rec = super().__new__(cls, *args, **kwds)
        level = severity_family(rec.level)
        if level is None:
            raise ValueError("Invalid log level %r" % (rec.level,))
        if level is not rec.level:
            rec = rec._replace(level=level)
        return rec

    @property
    def search_text(self):
        """The text searched by free-text queries: tag and message joined by a space."""
        return self.tag + ' ' + self.message

    def to_dict(self):
        """Return a JSON-compatible dict; unset optional fields are omitted."""
        data = {}
        for attr, key in _FIELDS:
            value = getattr(self, attr)
            if value is None:
                continue
            if attr == 'level':
                value = value.letter
            elif attr == 'is_marker' and not value:
                continue
            data[key] = value
        return data

    @classmethod
    def from_dict(cls, data):
        """Build a record from the dict form produced by `to_dict()`."""
        kwds = {}
        for attr, key in _FIELDS:
            if key in data:
                kwds[attr] = data[key]
        return cls(**kwds)


def make_marker(record_id, source_id, message, kind, epoch=None):
    """Create a synthetic marker record annotating a source connect/disconnect event."""
    if kind not in MARKER_KINDS:
        raise ValueError("Unknown marker kind %r (expected one of %s)" % (kind, ', '.join(MARKER_KINDS)))
    if epoch is None:
        epoch = now_ms()
    seconds, millis = divmod(epoch, 1000)
    local = time.localtime(seconds)
    return LogRecord(
        id=record_id,
        timestamp='%s.%03d' % (time.strftime('%H:%M:%S', local), millis),
        level=Severity.INFO,
        tag=MARKER_TAG,
        message=message,
        source_id=source_id,
        date_time='%s.%03d' % (time.strftime('%Y-%m-%d %H:%M:%S', local), millis),
        epoch=epoch,
        is_marker=True,
        marker_kind=kind,
    )
