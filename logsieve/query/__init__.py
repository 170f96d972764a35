# Query language engine: parser, matcher and regex cache
# Re-exports the public names used by the log store and by callers

from .config import FilterConfig, DEFAULT_FILTER
from .matcher import RecordFilter, filter_records, match_condition, match_or_group, matches
from .parser import AgeWindow, Condition, EMPTY_QUERY, OrGroup, ParsedQuery, parse_query
from .regex_cache import RegexCache, default_cache
