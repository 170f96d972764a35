# Tests for LogStore ingestion, eviction, filtering and source switching
# Worker delegation is covered in test_filter_worker.py

import pytest

from logsieve.query import FilterConfig, RecordFilter
from logsieve.records import Severity
from logsieve.store import LogStore, Stats


def full_recompute(store):
    """The filtered view a from-scratch recompute of the active view would produce."""
    return RecordFilter(store.filter).filter(store.logs)


def expected_stats(store):
    stats = Stats()
    stats.add(store.logs)
    stats.filtered = len(store.filtered_logs)
    return stats


@pytest.fixture
def store():
    store = LogStore(max_log_lines=100)
    store.switch_active_source('dev1')
    return store


class TestIngestion:
    """Appending batches to active and inactive sources."""

    def test_capacity_eviction(self, make_record):
        store = LogStore(max_log_lines=2)
        store.switch_active_source('dev1')
        for _ in range(3):
            store.append_batch('dev1', [make_record()])
        assert [r.id for r in store.logs] == [2, 3]
        assert store.stats.total == 2
        assert [r.id for r in store.filtered_logs] == [2, 3]

    def test_batch_larger_than_capacity(self, make_record):
        store = LogStore(max_log_lines=3)
        store.switch_active_source('dev1')
        store.update_filter(search_text='level:W')
        store.append_batch('dev1', [make_record(level='E')])
        store.append_batch('dev1', [make_record(level=lvl) for lvl in 'EIWDE'])
        assert [r.id for r in store.logs] == [4, 5, 6]
        assert store.filtered_logs == full_recompute(store)
        assert store.stats == expected_stats(store)
        assert store.stats.by_level[Severity.ERROR] == 1

    def test_incremental_matches_full_recompute(self, store, make_record):
        store.set_max_log_lines(5)
        store.update_filter(search_text='tag:net | message:fail')
        tags = ['Net', 'Sys', 'Audio', 'Network', 'Sys', 'Net', 'Sys']
        messages = ['ok', 'failed', 'ok', 'ok', 'ok', 'fail', 'ok']
        for tag, msg in zip(tags, messages):
            store.append_batch('dev1', [make_record(msg, tag=tag)])
            assert store.filtered_logs == full_recompute(store)
            assert store.stats == expected_stats(store)
        assert sum(store.stats.by_level.values()) == store.stats.total == 5

    def test_inactive_source(self, store, make_record):
        store.append_batch('dev2', [make_record(), make_record()])
        assert store.logs == []
        assert store.stats.total == 0
        assert len(store.collection('dev2')) == 2

    def test_source_id_is_assigned(self, store, make_record):
        store.append_batch('dev1', [make_record(source_id='other')])
        assert store.logs[0].source_id == 'dev1'

    def test_empty_batch(self, store):
        assert store.append_batch('dev1', []) == 0


class TestPause:
    """Records appended while paused are discarded."""

    def test_pause_discards(self, store, make_record):
        store.append_batch('dev1', [make_record()])
        store.set_paused(True)
        assert store.append_batch('dev1', [make_record(), make_record()]) == 0
        assert store.stats.total == 1
        assert len(store.logs) == 1

        store.set_paused(False)
        store.append_batch('dev1', [make_record() for _ in range(3)])
        assert store.stats.total == 4

    def test_toggle(self, store):
        assert store.toggle_pause() is True
        assert store.toggle_pause() is False


class TestFiltering:
    """Filter changes recompute the filtered view."""

    def test_update_filter(self, store, make_record):
        store.append_batch('dev1', [make_record(level=lvl) for lvl in 'VDIWEA'])
        store.update_filter(search_text='level:E')
        assert [r.level for r in store.filtered_logs] == [Severity.ERROR, Severity.ASSERT]
        assert store.stats.filtered == 2
        assert store.stats.total == 6

        store.update_filter(pid=99)
        assert store.filtered_logs == []
        store.reset_filter()
        assert len(store.filtered_logs) == 6

    def test_unknown_filter_field(self, store):
        with pytest.raises(ValueError):
            store.update_filter(colour='red')

    def test_query_property(self, store):
        store.update_filter(search_text='level:W')
        assert store.query.min_level is Severity.WARN

    def test_presets(self, store):
        store.update_filter(search_text='tag:Net')
        preset = store.save_preset('network')
        store.reset_filter()
        assert store.load_preset(preset.id).name == 'network'
        assert store.filter == FilterConfig(search_text='tag:Net')
        assert store.delete_preset(preset.id)
        with pytest.raises(KeyError):
            store.load_preset(preset.id)

    def test_history(self, store):
        store.update_filter(search_text='level:E')
        store.add_history()
        store.add_history('tag:Net')
        assert [item.query for item in store.history] == ['tag:Net', 'level:E']


class TestSources:
    """Switching, clearing, importing and markers."""

    def test_switch_active_source(self, store, make_record):
        store.update_filter(search_text='message:keep')
        store.append_batch('dev1', [make_record('keep 1'), make_record('drop')])
        store.append_batch('dev2', [make_record('keep 2'), make_record('keep 3'), make_record('x')])

        store.switch_active_source('dev2')
        assert store.active_source == 'dev2'
        assert [r.message for r in store.filtered_logs] == ['keep 2', 'keep 3']
        assert store.stats.total == 3

        store.switch_active_source('dev1')
        assert [r.message for r in store.filtered_logs] == ['keep 1']
        assert store.stats.total == 2

    def test_switch_to_new_source(self, store, make_record):
        assert store.switch_active_source('dev9') is None
        assert store.collection('dev9') is None
        assert store.logs == [] and store.stats.total == 0

        # the first batch creates the collection and attaches it to the view
        store.append_batch('dev9', [make_record('first')])
        assert store.collection('dev9') is not None
        assert [r.message for r in store.logs] == ['first']
        assert store.filtered_logs == store.logs
        assert store.stats.total == 1

    def test_clear_unseen_active_source(self, store):
        store.switch_active_source('dev9')
        store.clear_active()
        assert store.logs == [] and store.stats.total == 0

    def test_records_without_active_source_stay_out_of_view(self, make_record):
        store = LogStore()
        store.append_batch(None, [make_record('hello')])
        assert store.logs == []
        assert store.filtered_logs == full_recompute(store)
        assert store.stats == expected_stats(store)
        assert len(store.collection(None)) == 1

    def test_snapshot_is_not_mixed_with_unsourced_records(self, store, make_record):
        snapshot = [make_record('a'), make_record('b')]
        store.import_snapshot(snapshot)
        store.set_paused(False)
        store.append_batch(None, [make_record('live')])
        assert store.logs == snapshot
        assert store.filtered_logs == full_recompute(store)
        assert store.stats.total == 2

    def test_same_record_appended_twice(self, make_record):
        store = LogStore(max_log_lines=2)
        store.switch_active_source('dev1')
        rec = make_record('dup', source_id='dev1')
        store.append_batch('dev1', [rec, rec])
        store.append_batch('dev1', [make_record('new')])
        assert [r.message for r in store.logs] == ['dup', 'new']
        assert store.filtered_logs == store.logs

    def test_clear_active(self, store, make_record):
        store.append_batch('dev1', [make_record()])
        store.append_batch('dev2', [make_record()])
        store.clear_active()
        assert store.logs == [] and store.filtered_logs == []
        assert store.stats.total == 0
        assert len(store.collection('dev1')) == 0
        assert len(store.collection('dev2')) == 1

    def test_clear_source(self, store, make_record):
        store.append_batch('dev1', [make_record()])
        assert store.clear_source('dev1')
        assert store.active_source is None
        assert store.logs == []
        assert not store.clear_source('dev1')

    def test_import_snapshot(self, store, make_record):
        snapshot = [make_record('a', level='E'), make_record('b', level='I')]
        store.update_filter(search_text='level:E')
        store.import_snapshot(snapshot)
        assert store.paused
        assert store.active_source is None
        assert store.logs == snapshot
        assert [r.message for r in store.filtered_logs] == ['a']
        # live records do not reach the snapshot
        store.append_batch('dev1', [make_record()])
        assert store.logs == snapshot

    def test_marker(self, store, make_record):
        store.append_batch('dev1', [make_record(id=41)])
        marker = store.add_marker('dev1', 'Device disconnected')
        assert marker.id == 42
        assert marker.is_marker
        assert store.logs[-1] == marker
        assert store.stats.by_level[Severity.INFO] == 2

    def test_markers_are_evicted_like_records(self, make_record):
        store = LogStore(max_log_lines=2)
        store.switch_active_source('dev1')
        store.add_marker('dev1', 'connected', kind='connect')
        store.append_batch('dev1', [make_record(id=10), make_record(id=11)])
        assert not any(r.is_marker for r in store.logs)

    def test_set_max_log_lines(self, store, make_record):
        store.append_batch('dev1', [make_record(level=lvl) for lvl in 'EIEIE'])
        store.update_filter(search_text='level:E')
        store.set_max_log_lines(3)
        assert [r.id for r in store.logs] == [3, 4, 5]
        assert [r.id for r in store.filtered_logs] == [3, 5]
        assert store.stats == expected_stats(store)
        store.append_batch('dev1', [make_record(level='E')])
        assert [r.id for r in store.filtered_logs] == [5, 6]

    def test_bad_max_log_lines(self, store):
        with pytest.raises(ValueError):
            store.set_max_log_lines(0)
        with pytest.raises(ValueError):
            LogStore(max_log_lines=-5)


class TestObservers:
    """Observers are told about every change."""

    def test_events(self, store, make_record):
        events = []
        store.subscribe(lambda s, event: events.append(event))
        store.append_batch('dev1', [make_record()])
        store.update_filter(search_text='x')
        store.switch_active_source('dev2')
        store.set_paused(True)
        store.set_paused(True)
        store.clear_active()
        store.set_max_log_lines(10)
        assert events == ['append', 'filter', 'switch', 'pause', 'clear', 'resize']

    def test_unsubscribe(self, store, make_record):
        events = []
        cb = store.subscribe(lambda s, event: events.append(event))
        store.unsubscribe(cb)
        store.append_batch('dev1', [make_record()])
        assert events == []

    def test_failing_observer_does_not_break_store(self, store, make_record):
        def bad(s, event):
            raise RuntimeError("observer failure")
        events = []
        store.subscribe(bad)
        store.subscribe(lambda s, event: events.append(event))
        assert store.append_batch('dev1', [make_record()]) == 1
        assert events == ['append']
