# Parser for the Logcat-style filter query language
# Turns a free-form query string into an immutable ParsedQuery; malformed input degrades to free text

import re
from collections import namedtuple

from ..constants import AGE_UNITS_MS, CONTAINS, EXACT, FIELD_KEYS, QUOTES, REGEX
from ..records import severity_family


Condition = namedtuple('Condition', ['value', 'mode', 'exclude'])
Condition.__doc__ = "One key's value, match mode (contains / exact / regex) and exclude flag."

OrGroup = namedtuple('OrGroup', ['conditions'])
OrGroup.__doc__ = """Conditions on one field: all excludes must pass and, if there are
includes, at least one of them must match."""


class AgeWindow(namedtuple('AgeWindow', ['value', 'unit'])):
    """Maximum record age, e.g. AgeWindow(5, 'm')."""
    __slots__ = ()

    @property
    def millis(self):
        return self.value * AGE_UNITS_MS[self.unit]


ParsedQuery = namedtuple(
    'ParsedQuery',
    ['text', 'tag_groups', 'package_groups', 'message_groups',
     'min_level', 'age', 'is_crash', 'is_stacktrace'],
    defaults=('', (), (), (), None, None, False, False),
)

EMPTY_QUERY = ParsedQuery()

# key, optional mode character, then the first ':' (the value may contain more)
_KEY_VALUE_RE = re.compile(r'^([A-Za-z_]+)([=~]?):(.*)$', re.DOTALL)
_AGE_RE = re.compile(r'^(\d+)([smhd])$', re.IGNORECASE)
_MODES = {'': CONTAINS, '=': EXACT, '~': REGEX}


def split_or_segments(query):
    """Split *query* on top-level '|' characters (those outside quotes).

    Quote characters are kept in the segments; blank segments are dropped.
    """
    segments = []
    current = []
    quote = None
    for char in query:
        if quote is not None:
            if char == quote:
                quote = None
            current.append(char)
        elif char in QUOTES:
            quote = char
            current.append(char)
        elif char == '|':
            segments.append(''.join(current))
            current = []
        else:
            current.append(char)
    segments.append(''.join(current))
    return [seg.strip() for seg in segments if seg.strip()]


def tokenize(segment):
    """Split *segment* on whitespace, treating quoted runs as part of one token.

    The quote characters themselves are removed from the tokens. An unclosed
    quote extends to the end of the segment.
    """
    tokens = []
    current = []
    quote = None
    for char in segment:
        if quote is not None:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in QUOTES:
            quote = char
        elif char.isspace():
            if current:
                tokens.append(''.join(current))
            current = []
        else:
            current.append(char)
    if current:
        tokens.append(''.join(current))
    return tokens


def split_key_value(token):
    """Return (key, value, mode, exclude) for a key:value token, or None for free text."""
    exclude = token.startswith('-')
    body = token[1:] if exclude else token
    m = _KEY_VALUE_RE.match(body)
    if m is None:
        return None
    key, mode_char, value = m.groups()
    return key.lower(), value, _MODES[mode_char], exclude


class _QueryBuilder:
    def __init__(self):
        self.text = []
        self.conditions = {key: [] for key in FIELD_KEYS}
        self.min_level = None
        self.age = None
        self.is_crash = False
        self.is_stacktrace = False

    def add_token(self, token):
        parsed = split_key_value(token)
        if parsed is None:
            # bare '-word' tokens have no field to exclude from
            if not token.startswith('-'):
                self.text.append(token)
            return

        key, value, mode, exclude = parsed
        if key in self.conditions:
            self.conditions[key].append(Condition(value, mode, exclude))
        elif key in ('level', 'age', 'is'):
            # these predicates cannot be negated; '-level:E' applies as 'level:E'
            self._add_predicate(key, value)
        else:
            # unknown key: search for the literal token instead
            self.text.append(token)

    def _add_predicate(self, key, value):
        if key == 'level':
            level = severity_family(value)
            if level is not None:
                self.min_level = level
        elif key == 'age':
            m = _AGE_RE.match(value.strip())
            if m is not None:
                self.age = AgeWindow(int(m.group(1)), m.group(2).lower())
        else:
            flag = value.strip().lower()
            if flag == 'crash':
                self.is_crash = True
            elif flag == 'stacktrace':
                self.is_stacktrace = True

    def build(self, merge_fields):
        groups = {}
        for key, conditions in self.conditions.items():
            if not conditions:
                groups[key] = ()
            elif merge_fields:
                groups[key] = (OrGroup(tuple(conditions)),)
            else:
                groups[key] = tuple(OrGroup((cond,)) for cond in conditions)
        return ParsedQuery(
            text=' '.join(self.text),
            tag_groups=groups['tag'],
            package_groups=groups['package'],
            message_groups=groups['message'],
            min_level=self.min_level,
            age=self.age,
            is_crash=self.is_crash,
            is_stacktrace=self.is_stacktrace,
        )


def parse_query(query):
    """Parse a filter query into a ParsedQuery. Never raises.

    Grammar (space = AND, top-level '|' = OR):

    * ``key:value`` contains, ``key=:value`` exact, ``key~:value`` regex
    * a leading ``-`` negates a condition
    * keys ``tag``, ``package`` (``package:mine`` is always satisfied), ``message``
    * ``level:W`` / ``level:warn`` minimum severity
    * ``age:<N><s|m|h|d>`` maximum record age
    * ``is:crash`` / ``is:stacktrace`` heuristics
    * anything else is free text matched against "tag message"

    Without '|', each field condition forms its own group, so repeated keys AND
    together. With '|', all conditions for one field across every segment are
    merged into a single OR group.
    """
    if not query or not query.strip():
        return EMPTY_QUERY

    segments = split_or_segments(query)
    builder = _QueryBuilder()
    for segment in segments:
        for token in tokenize(segment):
            builder.add_token(token)
    return builder.build(merge_fields=len(segments) > 1)


def is_empty_query(query):
    """True if *query* places no constraint on records."""
    return query == EMPTY_QUERY
