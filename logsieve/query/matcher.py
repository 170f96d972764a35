# Evaluation of parsed queries against log records
# matches() is pure and short-circuits on the first failing predicate

import re

from ..constants import (
    CRASH_MARKERS, CRASH_TAG, EXACT, MINE_PACKAGE, REGEX,
    STACK_FRAME_MARKERS, STACK_FRAME_RE,
)
from ..records import now_ms
from .parser import is_empty_query, parse_query
from .regex_cache import default_cache


def match_condition(value, condition, cache=None):
    """Return True if *value* satisfies *condition* (after applying its exclude flag).

    contains/exact compare lower-cased values. regex searches the unmodified
    value with a case-insensitive pattern; an invalid pattern never matches.
    """
    if condition.mode == REGEX:
        if cache is None:
            cache = default_cache
        compiled = cache.get(condition.value, re.IGNORECASE)
        matched = compiled is not None and compiled.search(value) is not None
    elif condition.mode == EXACT:
        matched = value.lower() == condition.value.lower()
    else:
        matched = condition.value.lower() in value.lower()
    return not matched if condition.exclude else matched


def match_or_group(value, group, cache=None):
    """All exclude conditions must pass; then any include condition must match (if there are any)."""
    has_include = False
    for cond in group.conditions:
        if cond.exclude:
            if not match_condition(value, cond, cache):
                return False
        else:
            has_include = True
    if not has_include:
        return True
    return any(match_condition(value, cond, cache) for cond in group.conditions if not cond.exclude)


def _is_mine_group(group):
    return any(not cond.exclude and cond.value.lower() == MINE_PACKAGE for cond in group.conditions)


def is_crash(record):
    if record.tag == CRASH_TAG:
        return True
    return any(marker in record.message for marker in CRASH_MARKERS)


def is_stacktrace(record):
    message = record.message
    if any(marker in message for marker in STACK_FRAME_MARKERS):
        return True
    return STACK_FRAME_RE.match(message) is not None


def matches(record, query, case_sensitive=False, now=None, cache=None):
    """Return True if *record* satisfies every predicate of *query*.

    Parameters
    ----------
    record : LogRecord
    query : ParsedQuery
    case_sensitive : bool
        Applies to the free-text predicate only.
    now : int | None
        Reference time in epoch milliseconds for ``age:``; defaults to the
        current time.
    cache : RegexCache | None
        Cache used for regex-mode conditions (defaults to the shared cache).
    """
    if query.min_level is not None and record.level < query.min_level:
        return False

    for group in query.tag_groups:
        if not match_or_group(record.tag, group, cache):
            return False

    package = record.package_name or ''
    for group in query.package_groups:
        if _is_mine_group(group):
            continue
        if not match_or_group(package, group, cache):
            return False

    for group in query.message_groups:
        if not match_or_group(record.message, group, cache):
            return False

    # records without an epoch (None or 0) are never age-filtered
    if query.age is not None and record.epoch:
        if now is None:
            now = now_ms()
        if now - record.epoch > query.age.millis:
            return False

    if query.is_crash and not is_crash(record):
        return False

    if query.is_stacktrace and not is_stacktrace(record):
        return False

    if query.text:
        target = record.search_text
        if case_sensitive:
            if query.text not in target:
                return False
        elif query.text.lower() not in target.lower():
            return False

    return True


class RecordFilter:
    """Compiled predicate for a complete FilterConfig.

    Combines the parsed query with the two selectors that live outside the
    query string: regex mode for the free text (``config.is_regex``) and the
    process id selector (``config.pid``). Instances are callable and are
    rebuilt, never mutated, whenever the configuration changes.
    """

    def __init__(self, config, cache=None):
        self.config = config
        self.cache = cache if cache is not None else default_cache
        self.query = parse_query(config.search_text)
        self._match_query = self.query
        self._text_regex = None
        self._regex_mode = bool(config.is_regex and self.query.text)
        if self._regex_mode:
            flags = 0 if config.is_case_sensitive else re.IGNORECASE
            self._text_regex = self.cache.get(self.query.text, flags)
            # the free text is applied as a regex below, not as a substring
            self._match_query = self.query._replace(text='')

    @property
    def accepts_all(self):
        """True if every record passes this filter."""
        return self.config.pid is None and is_empty_query(self.query)

    def __call__(self, record, now=None):
        if self.config.pid is not None and record.pid != self.config.pid:
            return False
        if not matches(record, self._match_query, self.config.is_case_sensitive, now=now, cache=self.cache):
            return False
        if self._regex_mode:
            return self._text_regex is not None and self._text_regex.search(record.search_text) is not None
        return True

    def filter(self, records, now=None):
        """Return the records accepted by this filter, in their original order."""
        if self.accepts_all:
            return list(records)
        return [rec for rec in records if self(rec, now=now)]


def filter_records(records, config, cache=None):
    """Return the subset of *records* accepted by *config*, preserving order."""
    return RecordFilter(config, cache).filter(records)
