from ..records import Severity


class Stats:
    """Running counts for the active view.

    ``total`` is derived from the per-level counts, so the two can never
    disagree. ``filtered`` is the size of the filtered view.
    """

    def __init__(self):
        self.by_level = {level: 0 for level in Severity}
        self.filtered = 0

    @property
    def total(self):
        return sum(self.by_level.values())

    def add(self, records):
        for rec in records:
            self.by_level[rec.level] += 1

    def remove(self, records):
        for rec in records:
            self.by_level[rec.level] -= 1

    def reset(self):
        for level in self.by_level:
            self.by_level[level] = 0
        self.filtered = 0

    def copy(self):
        stats = Stats()
        stats.by_level.update(self.by_level)
        stats.filtered = self.filtered
        return stats

    def as_dict(self):
        return {
            'total': self.total,
            'filtered': self.filtered,
            'byLevel': {level.letter: count for level, count in self.by_level.items()},
        }

    def __eq__(self, other):
        if not isinstance(other, Stats):
            return NotImplemented
        return self.by_level == other.by_level and self.filtered == other.filtered

    def __repr__(self):
        levels = ' '.join('%s=%d' % (level.letter, count) for level, count in self.by_level.items())
        return "<Stats total=%d filtered=%d %s>" % (self.total, self.filtered, levels)
