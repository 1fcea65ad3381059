from __future__ import annotations

from datetime import datetime, timedelta

from src.police_attendance.police_attendance.core.enums import PunchType
from src.police_attendance.police_attendance.punch_state.cache import PunchStateCache, state_key
from src.police_attendance.police_attendance.punch_state.model import PunchState
from src.police_attendance.police_attendance.punch_state.store import InMemoryStateStore, JsonFileStateStore


def test_initialize_fresh_user_is_not_punched_in(events_repo, state_store, clock):
    cache = PunchStateCache(events_repo, state_store, clock=clock)

    state = cache.initialize(1)

    assert state.is_punched_in is False
    assert cache.get_next_punch_type() == PunchType.IN
    assert state_store.get(state_key(1)) is not None


def test_record_punch_flips_next_punch_type(events_repo, state_store, clock):
    cache = PunchStateCache(events_repo, state_store, clock=clock)
    cache.initialize(1)

    cache.confirm(cache.record_punch(1, PunchType.IN))
    assert cache.get_next_punch_type() == PunchType.OUT

    cache.confirm(cache.record_punch(1, PunchType.OUT))
    assert cache.get_next_punch_type() == PunchType.IN


def test_initialize_reads_todays_latest_event(events_repo, state_store, clock, make_punch):
    events_repo.events.append(make_punch(1, PunchType.IN, clock.now - timedelta(minutes=20)))
    cache = PunchStateCache(events_repo, state_store, clock=clock)

    state = cache.initialize(1)

    assert state.is_punched_in is True
    assert state.last_punch_type == PunchType.IN
    assert cache.get_next_punch_type() == PunchType.OUT


def test_yesterdays_events_do_not_count_for_today(events_repo, state_store, clock, make_punch):
    events_repo.events.append(make_punch(1, PunchType.IN, clock.now - timedelta(days=1)))
    cache = PunchStateCache(events_repo, state_store, clock=clock)

    assert cache.initialize(1).is_punched_in is False


def test_confirmed_snapshot_from_today_is_trusted(events_repo, clock):
    snapshot = PunchState.from_event(PunchType.IN, clock.now - timedelta(hours=1))
    store = InMemoryStateStore({state_key(1): snapshot.to_json()})
    cache = PunchStateCache(events_repo, store, clock=clock)

    state = cache.initialize(1)

    assert state.is_punched_in is True
    assert events_repo.latest_calls == 0


def test_snapshot_from_yesterday_triggers_refetch(events_repo, clock):
    stale = PunchState.from_event(PunchType.IN, clock.now - timedelta(days=1))
    store = InMemoryStateStore({state_key(1): stale.to_json()})
    cache = PunchStateCache(events_repo, store, clock=clock)

    state = cache.initialize(1)

    assert events_repo.latest_calls == 1
    assert state.is_punched_in is False
    assert PunchState.from_json(store.get(state_key(1))) == state


def test_unconfirmed_snapshot_triggers_refetch(events_repo, clock):
    tentative = PunchState.from_event(PunchType.IN, clock.now, confirmed=False)
    store = InMemoryStateStore({state_key(1): tentative.to_json()})
    cache = PunchStateCache(events_repo, store, clock=clock)

    state = cache.initialize(1)

    assert events_repo.latest_calls == 1
    assert state.is_punched_in is False


def test_unreadable_snapshot_is_ignored(events_repo, clock):
    store = InMemoryStateStore({state_key(1): "{not json"})
    cache = PunchStateCache(events_repo, store, clock=clock)

    assert cache.initialize(1).is_punched_in is False
    assert events_repo.latest_calls == 1


def test_record_punch_is_tentative_until_confirmed(events_repo, state_store, clock):
    cache = PunchStateCache(events_repo, state_store, clock=clock)
    cache.initialize(1)

    pending = cache.record_punch(1, PunchType.IN)

    assert cache.current_state().confirmed is False
    assert PunchState.from_json(state_store.get(state_key(1))).confirmed is False

    confirmed_at = clock.now + timedelta(seconds=2)
    assert cache.confirm(pending, timestamp=confirmed_at) is True
    assert cache.current_state().confirmed is True
    assert cache.current_state().last_punch_time == confirmed_at


def test_rollback_restores_previous_state(events_repo, state_store, clock):
    cache = PunchStateCache(events_repo, state_store, clock=clock)
    before = cache.initialize(1)

    pending = cache.record_punch(1, PunchType.IN)
    assert cache.rollback(pending) is True

    assert cache.current_state() == before
    assert cache.get_next_punch_type() == PunchType.IN
    assert PunchState.from_json(state_store.get(state_key(1))) == before


def test_stale_rollback_is_a_no_op(events_repo, state_store, clock):
    cache = PunchStateCache(events_repo, state_store, clock=clock)
    cache.initialize(1)

    first = cache.record_punch(1, PunchType.IN)
    cache.confirm(cache.record_punch(1, PunchType.IN))

    assert cache.rollback(first) is False
    assert cache.current_state().is_punched_in is True
    assert cache.current_state().confirmed is True


def test_subscribe_gets_current_state_then_changes(events_repo, state_store, clock):
    cache = PunchStateCache(events_repo, state_store, clock=clock)
    cache.initialize(1)
    seen = []

    unsubscribe = cache.subscribe(seen.append)
    cache.confirm(cache.record_punch(1, PunchType.IN))
    unsubscribe()
    cache.confirm(cache.record_punch(1, PunchType.OUT))

    assert [s.is_punched_in for s in seen] == [False, True, True]


def test_json_file_store_round_trip(tmp_path):
    path = tmp_path / "state" / "punch_state.json"
    store = JsonFileStateStore(path)

    store.set("punchState_1", '{"isPunchedIn": true}')
    store.set("punchState_2", "{}")
    store.remove("punchState_2")

    reopened = JsonFileStateStore(path)
    assert reopened.get("punchState_1") == '{"isPunchedIn": true}'
    assert reopened.get("punchState_2") is None


def test_punch_state_json_keys():
    state = PunchState.from_event(PunchType.OUT, datetime(2026, 3, 2, 17, 0))

    raw = state.to_json()

    assert '"isPunchedIn": false' in raw
    assert '"lastPunchType": "OUT"' in raw
    assert PunchState.from_json(raw) == state
