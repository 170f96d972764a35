# Constants shared by the query engine, the log store and the Qt adapter
# Centralized location for buffer limits, level spellings, heuristics and column layout

import re


# Default capacity of each per-source record buffer
DEFAULT_MAX_LOG_LINES = 100000

# Number of compiled patterns kept by a RegexCache
REGEX_CACHE_SIZE = 100

# Maximum number of non-favorite entries kept in the filter history
HISTORY_LIMIT = 20

# Full recomputes over at least this many records are sent to the filter worker
# (when one is attached to the store)
DELEGATE_THRESHOLD = 5000


# Every accepted spelling of a severity, mapped to its rank (V < D < I < W < E < A)
LEVEL_NAMES = {
    'V': 0, 'VERBOSE': 0,
    'D': 1, 'DEBUG': 1,
    'I': 2, 'INFO': 2,
    'W': 3, 'WARN': 3,
    'E': 4, 'ERROR': 4,
    'A': 5, 'ASSERT': 5,
}

LEVEL_COLORS = {
    'V': '#9E9E9E',
    'D': '#2196F3',
    'I': '#4CAF50',
    'W': '#FFC107',
    'E': '#F44336',
    'A': '#9C27B0',
}


# Condition match modes
CONTAINS = 'contains'
EXACT = 'exact'
REGEX = 'regex'

# Quote characters that protect spaces and pipes inside a query
QUOTES = ('"', "'")

# Query keys that route into per-field condition groups
FIELD_KEYS = ('tag', 'package', 'message')

# Package value that selects the user's own application (always satisfied)
MINE_PACKAGE = 'mine'

AGE_UNITS_MS = {
    's': 1000,
    'm': 60 * 1000,
    'h': 60 * 60 * 1000,
    'd': 24 * 60 * 60 * 1000,
}


# is:crash heuristic
CRASH_MARKERS = ('FATAL EXCEPTION', 'AndroidRuntime', 'native crash', 'SIGSEGV', 'SIGABRT')
CRASH_TAG = 'AndroidRuntime'

# is:stacktrace heuristic
STACK_FRAME_MARKERS = ('\tat ', 'at java.', 'at android.', 'at kotlin.')
STACK_FRAME_RE = re.compile(r'^\s+at\s+[\w.$]+\([\w.]+:\d+\)')


# Synthetic marker records
MARKER_TAG = 'logsieve'
MARKER_KINDS = ('connect', 'disconnect', 'reconnect')


class LogColumns:
    """Constants for log table column indices."""
    TIMESTAMP = 0
    PID = 1
    TID = 2
    LEVEL = 3
    TAG = 4
    MESSAGE = 5

    TITLES = [
        'Time',         # TIMESTAMP
        'PID',          # PID
        'TID',          # TID
        'Level',        # LEVEL
        'Tag',          # TAG
        'Message',      # MESSAGE
    ]
