__version__ = "0.1.0"

from .records import LogRecord, Severity, severity_family, make_marker
from .query import FilterConfig, RecordFilter, filter_records, parse_query
from .store import LogStore, FilterWorker
from .logcat import LogcatParser
from .remote import RecordSender, RecordServer
