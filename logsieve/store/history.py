# Saved filter presets and the recent-query history
# History keeps favorites indefinitely and caps the rest, newest first

import uuid
from collections import namedtuple

from ..constants import HISTORY_LIMIT
from ..records import now_ms


FilterPreset = namedtuple('FilterPreset', ['id', 'name', 'config', 'created_at'])
HistoryItem = namedtuple('HistoryItem', ['id', 'query', 'timestamp', 'is_favorite'])


def generate_id():
    return uuid.uuid4().hex


class FilterPresets:
    """Named snapshots of a FilterConfig."""

    def __init__(self):
        self._presets = []

    def save(self, name, config):
        preset = FilterPreset(generate_id(), name, config, now_ms())
        self._presets.append(preset)
        return preset

    def get(self, preset_id):
        for preset in self._presets:
            if preset.id == preset_id:
                return preset
        return None

    def delete(self, preset_id):
        """Remove a preset; return True if it existed."""
        before = len(self._presets)
        self._presets = [p for p in self._presets if p.id != preset_id]
        return len(self._presets) != before

    def __iter__(self):
        return iter(list(self._presets))

    def __len__(self):
        return len(self._presets)


class FilterHistory:
    """Recently used queries.

    Favorites are listed first and never dropped. The remaining entries are
    ordered newest first and capped at *limit*.
    """

    def __init__(self, limit=HISTORY_LIMIT):
        self.limit = limit
        self._items = []

    @property
    def items(self):
        return list(self._items)

    def add(self, query, timestamp=None):
        """Record *query*; returns the new or refreshed item (None for a blank query)."""
        if not query.strip():
            return None
        if timestamp is None:
            timestamp = now_ms()

        for i, item in enumerate(self._items):
            if item.query == query:
                # keep its position and favorite status
                self._items[i] = item._replace(timestamp=timestamp)
                return self._items[i]

        new_item = HistoryItem(generate_id(), query, timestamp, False)
        favorites = [item for item in self._items if item.is_favorite]
        others = [new_item] + [item for item in self._items if not item.is_favorite]
        self._items = favorites + others[:self.limit]
        return new_item

    def toggle_favorite(self, item_id):
        for i, item in enumerate(self._items):
            if item.id == item_id:
                self._items[i] = item._replace(is_favorite=not item.is_favorite)
                return self._items[i]
        return None

    def delete(self, item_id):
        before = len(self._items)
        self._items = [item for item in self._items if item.id != item_id]
        return len(self._items) != before

    def clear(self):
        """Forget everything except favorites."""
        self._items = [item for item in self._items if item.is_favorite]

    def __iter__(self):
        return iter(list(self._items))

    def __len__(self):
        return len(self._items)
