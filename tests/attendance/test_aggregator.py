from __future__ import annotations

import random
from datetime import date, datetime, time

import pytest

from src.police_attendance.police_attendance.attendance.aggregator import AttendanceAggregator, fill_gaps
from src.police_attendance.police_attendance.core.enums import DisplayStatus, PunchType
from src.police_attendance.police_attendance.core.exceptions import DataIntegrityError


def test_in_and_out_same_day_gives_hours_and_present(make_punch):
    events = [
        make_punch(1, PunchType.IN, datetime(2026, 3, 2, 8, 50)),
        make_punch(2, PunchType.OUT, datetime(2026, 3, 2, 17, 20)),
    ]

    records = list(AttendanceAggregator().aggregate(events))

    assert len(records) == 1
    rec = records[0]
    assert rec.work_date == date(2026, 3, 2)
    assert rec.display_status == DisplayStatus.PRESENT
    assert rec.hours_worked == pytest.approx(8.5)
    assert rec.punch_in.event_id == 1
    assert rec.punch_out.event_id == 2


def test_status_depends_only_on_punch_in_time(make_punch):
    events = [
        make_punch(1, PunchType.IN, datetime(2026, 3, 2, 9, 16)),
        make_punch(2, PunchType.OUT, datetime(2026, 3, 2, 12, 16)),
    ]

    rec = list(AttendanceAggregator().aggregate(events))[0]

    assert rec.display_status == DisplayStatus.LATE
    assert rec.hours_worked == pytest.approx(3.0)


def test_cutoff_is_compared_at_minute_resolution(make_punch):
    agg = AttendanceAggregator()

    on_time = list(agg.aggregate([make_punch(1, PunchType.IN, datetime(2026, 3, 2, 9, 15, 59))]))[0]
    late = list(agg.aggregate([make_punch(2, PunchType.IN, datetime(2026, 3, 2, 9, 16, 0))]))[0]

    assert on_time.display_status == DisplayStatus.PRESENT
    assert late.display_status == DisplayStatus.LATE


def test_in_only_day_has_no_hours(make_punch):
    rec = list(AttendanceAggregator().aggregate([make_punch(1, PunchType.IN, datetime(2026, 3, 2, 8, 0))]))[0]

    assert rec.display_status == DisplayStatus.PRESENT
    assert rec.punch_out is None
    assert rec.hours_worked is None


def test_out_only_day_is_absent(make_punch):
    rec = list(AttendanceAggregator().aggregate([make_punch(1, PunchType.OUT, datetime(2026, 3, 2, 17, 0))]))[0]

    assert rec.display_status == DisplayStatus.ABSENT
    assert rec.punch_in is None
    assert rec.punch_out.event_id == 1
    assert rec.hours_worked is None


def test_output_is_independent_of_input_order(make_punch):
    events = [
        make_punch(1, PunchType.IN, datetime(2026, 3, 2, 8, 0)),
        make_punch(2, PunchType.IN, datetime(2026, 3, 2, 8, 5)),
        make_punch(3, PunchType.OUT, datetime(2026, 3, 2, 16, 0)),
        make_punch(4, PunchType.OUT, datetime(2026, 3, 2, 18, 0)),
        make_punch(5, PunchType.IN, datetime(2026, 3, 3, 9, 30)),
        make_punch(6, PunchType.OUT, datetime(2026, 3, 4, 17, 0)),
    ]
    agg = AttendanceAggregator()
    expected = list(agg.aggregate(events))

    rng = random.Random(7)
    for _ in range(10):
        shuffled = events[:]
        rng.shuffle(shuffled)
        assert list(agg.aggregate(shuffled)) == expected


def test_earliest_in_and_earliest_out_are_used(make_punch):
    events = [
        make_punch(4, PunchType.OUT, datetime(2026, 3, 2, 18, 0)),
        make_punch(2, PunchType.IN, datetime(2026, 3, 2, 8, 5)),
        make_punch(3, PunchType.OUT, datetime(2026, 3, 2, 16, 0)),
        make_punch(1, PunchType.IN, datetime(2026, 3, 2, 8, 0)),
    ]

    rec = list(AttendanceAggregator().aggregate(events))[0]

    assert rec.punch_in.event_id == 1
    assert rec.punch_out.event_id == 3
    assert rec.hours_worked == pytest.approx(8.0)


def test_identical_timestamps_break_ties_by_event_id(make_punch):
    ts = datetime(2026, 3, 2, 8, 0)
    a = [make_punch(9, PunchType.IN, ts), make_punch(3, PunchType.IN, ts)]

    rec = list(AttendanceAggregator().aggregate(a))[0]

    assert rec.punch_in.event_id == 3


def test_records_are_newest_date_first_and_restartable(make_punch):
    events = [
        make_punch(1, PunchType.IN, datetime(2026, 3, 1, 8, 0)),
        make_punch(2, PunchType.IN, datetime(2026, 3, 3, 8, 0)),
        make_punch(3, PunchType.IN, datetime(2026, 3, 2, 8, 0)),
    ]

    records = AttendanceAggregator().aggregate(events)

    first = [r.work_date for r in records]
    second = [r.work_date for r in records]
    assert first == [date(2026, 3, 3), date(2026, 3, 2), date(2026, 3, 1)]
    assert first == second


def test_out_before_in_is_a_data_integrity_error(make_punch):
    events = [
        make_punch(1, PunchType.IN, datetime(2026, 3, 2, 17, 0)),
        make_punch(2, PunchType.OUT, datetime(2026, 3, 2, 8, 0)),
    ]

    with pytest.raises(DataIntegrityError):
        list(AttendanceAggregator().aggregate(events))


def test_custom_cutoff(make_punch):
    agg = AttendanceAggregator(late_cutoff=time(8, 0))

    rec = list(agg.aggregate([make_punch(1, PunchType.IN, datetime(2026, 3, 2, 8, 1))]))[0]

    assert agg.late_cutoff == time(8, 0)
    assert rec.display_status == DisplayStatus.LATE


def test_fill_gaps_marks_missing_days_absent(make_punch):
    records = list(AttendanceAggregator().aggregate([make_punch(1, PunchType.IN, datetime(2026, 3, 3, 8, 0))]))

    filled = fill_gaps(records, start=date(2026, 3, 1), end=date(2026, 3, 4))

    assert [r.work_date for r in filled] == [date(2026, 3, 4), date(2026, 3, 3), date(2026, 3, 2), date(2026, 3, 1)]
    assert [r.display_status for r in filled] == [
        DisplayStatus.ABSENT,
        DisplayStatus.PRESENT,
        DisplayStatus.ABSENT,
        DisplayStatus.ABSENT,
    ]
