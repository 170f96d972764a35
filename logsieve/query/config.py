# Filter configuration as edited by the user
# FilterConfig is immutable; updated() returns a new config

from collections import namedtuple


class FilterConfig(namedtuple('FilterConfig', ['search_text', 'is_regex', 'is_case_sensitive', 'pid'],
                              defaults=('', False, False, None))):
    """The raw query string plus the flags that control how it is applied.

    Parameters
    ----------
    search_text : str
        Query in the Logcat filter syntax (see `parse_query()`).
    is_regex : bool
        If True, the free-text portion of the query is applied as a regular
        expression against "tag message" instead of as a substring.
    is_case_sensitive : bool
        Case sensitivity of the free-text portion.
    pid : int | None
        If set, only records from this process id are shown.
    """
    __slots__ = ()

    def updated(self, **changes):
        """Return a copy with *changes* applied. Unknown field names raise ValueError."""
        return self._replace(**changes)


DEFAULT_FILTER = FilterConfig()
