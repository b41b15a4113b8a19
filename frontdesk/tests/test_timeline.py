"""
Tests for the appointment timeline layout engine.

These are plain functions: the engine has no Django dependencies, so no
database is needed.
"""
import datetime as dt
import random

import pytest

from frontdesk.services.timeline import (
    InvalidDuration,
    InvalidTimeFormat,
    TimelineConfig,
    TimelineEntry,
    TimelineError,
    TimeOfDay,
    assign_columns,
    entry_from_record,
    hour_slots,
    layout_day,
    now_offset,
    overlaps,
    position,
    select_for_date,
    time_at_offset,
)


def appt(id, start, duration):
    return TimelineEntry(id=id, start=start, duration_minutes=duration)


def slots(entries):
    return {k: (v.column, v.total_columns) for k, v in assign_columns(entries).items()}


# ---------------------------------------------------------------------------
# Reference oracle
# ---------------------------------------------------------------------------
def clusters_of(entries):
    """Connected components of the overlap graph, by breadth-first search."""
    seen, groups = set(), []
    for i in range(len(entries)):
        if i in seen:
            continue
        seen.add(i)
        group, frontier = [i], [i]
        while frontier:
            k = frontier.pop()
            for j in range(len(entries)):
                if j not in seen and overlaps(entries[k], entries[j]):
                    seen.add(j)
                    group.append(j)
                    frontier.append(j)
        groups.append(group)
    return groups


def peak_concurrency(entries):
    """Sweep start/end events; ends sort before starts at the same instant."""
    events = []
    for e in entries:
        if e.duration_minutes == 0:
            continue
        events.append((e.start_minute, 1))
        events.append((e.end_minute, -1))
    events.sort(key=lambda ev: (ev[0], ev[1]))
    active = peak = 0
    for _, delta in events:
        active += delta
        peak = max(peak, active)
    return max(peak, 1)


def random_day(rng, n):
    return [
        appt(i, (rng.randint(0, 23), rng.choice([0, 10, 15, 20, 30, 40, 45, 50])), rng.choice([0, 15, 30, 45, 60, 90, 120]))
        for i in range(n)
    ]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------
def test_scenario_a_no_overlaps():
    result = slots([appt('a', '09:00', 30), appt('b', '10:00', 30)])
    assert result == {'a': (0, 1), 'b': (0, 1)}


def test_scenario_b_pairwise_overlap():
    result = slots([appt('a', '09:00', 60), appt('b', '09:30', 60)])
    assert result['a'][1] == result['b'][1] == 2
    assert {result['a'][0], result['b'][0]} == {0, 1}


def test_scenario_c_staggered_triple():
    result = slots([appt('a', '09:00', 60), appt('b', '09:20', 60), appt('c', '09:40', 60)])
    assert {v[1] for v in result.values()} == {3}
    assert sorted(v[0] for v in result.values()) == [0, 1, 2]


def test_scenario_d_chain_shares_cluster_width():
    result = slots([appt('a', '09:00', 60), appt('b', '09:50', 60), appt('c', '10:40', 60)])
    assert {v[1] for v in result.values()} == {2}
    assert result['a'][0] != result['b'][0]
    assert result['b'][0] != result['c'][0]
    assert result['a'][0] == result['c'][0] == 0


def test_scenario_e_touching_boundary_is_not_overlap():
    a, b = appt('a', '09:00', 60), appt('b', '10:00', 60)
    assert not overlaps(a, b)
    assert slots([a, b]) == {'a': (0, 1), 'b': (0, 1)}


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------
def test_empty_input():
    assert assign_columns([]) == {}
    assert layout_day([]) == []


def test_identical_appointments_get_distinct_columns():
    result = slots([appt('a', '14:00', 30), appt('b', '14:00', 30)])
    assert result == {'a': (0, 2), 'b': (1, 2)}


def test_equal_start_times_keep_input_order():
    result = slots([appt('late', '08:00', 30), appt('x', '08:00', 30), appt('early', '07:00', 90)])
    assert result['early'][0] == 0
    assert result['late'][0] == 1
    assert result['x'][0] == 2


def test_zero_duration_never_overlaps():
    z = appt('z', '09:30', 0)
    a = appt('a', '09:00', 60)
    assert not overlaps(z, a)
    assert not overlaps(z, z)
    assert slots([a, z]) == {'a': (0, 1), 'z': (0, 1)}


def test_fully_nested_appointments():
    result = slots([appt('outer', '08:00', 240), appt('inner1', '09:00', 30), appt('inner2', '10:00', 30)])
    assert result == {'outer': (0, 2), 'inner1': (1, 2), 'inner2': (1, 2)}


def test_layout_does_not_mutate_input():
    entries = [appt('b', '10:00', 30), appt('a', '09:00', 90)]
    before = list(entries)
    layout_day(entries)
    assert entries == before


def test_layout_returns_timeline_order():
    results = layout_day([appt('b', '10:00', 30), appt('a', '09:00', 90), appt('c', '09:00', 15)])
    assert [r.id for r in results] == ['a', 'c', 'b']


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------
@pytest.mark.parametrize('seed', range(40))
def test_no_two_overlapping_appointments_share_a_column(seed):
    rng = random.Random(seed)
    entries = random_day(rng, rng.randint(1, 30))
    result = assign_columns(entries)
    for i, a in enumerate(entries):
        assert 0 <= result[a.id].column < result[a.id].total_columns
        for b in entries[i + 1:]:
            if overlaps(a, b):
                assert result[a.id].column != result[b.id].column


@pytest.mark.parametrize('seed', range(40))
def test_cluster_width_equals_peak_concurrency(seed):
    rng = random.Random(1000 + seed)
    entries = random_day(rng, rng.randint(1, 30))
    result = assign_columns(entries)
    for group in clusters_of(entries):
        members = [entries[i] for i in group]
        widths = {result[e.id].total_columns for e in members}
        clusters = {result[e.id].cluster for e in members}
        assert widths == {peak_concurrency(members)}
        assert len(clusters) == 1


@pytest.mark.parametrize('seed', range(10))
def test_layout_is_idempotent(seed):
    rng = random.Random(2000 + seed)
    entries = random_day(rng, 20)
    assert layout_day(entries) == layout_day(entries)


def test_disjoint_clusters_are_independent():
    morning = [appt('m1', '08:00', 60), appt('m2', '08:30', 60)]
    afternoon = [appt('a1', '14:00', 30)]
    before = assign_columns(morning + afternoon)
    after = assign_columns(morning + afternoon + [appt('a2', '14:10', 30), appt('a3', '14:15', 30)])

    for key in ('m1', 'm2'):
        assert before[key].column == after[key].column
        assert before[key].total_columns == after[key].total_columns == 2
    assert before['a1'].total_columns == 1
    assert after['a1'].total_columns == 3


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
@pytest.mark.parametrize('value', ['24:00', '09:60', '9h30', '', 'abc', (25, 0), (-1, 0)])
def test_invalid_time_is_rejected(value):
    with pytest.raises(InvalidTimeFormat):
        appt('x', value, 30)


@pytest.mark.parametrize('duration', [-1, -30, 1.5, '30', None])
def test_invalid_duration_is_rejected(duration):
    with pytest.raises(InvalidDuration):
        appt('x', '09:00', duration)


def test_errors_are_value_errors():
    assert issubclass(InvalidTimeFormat, TimelineError)
    assert issubclass(InvalidDuration, TimelineError)
    assert issubclass(TimelineError, ValueError)


def test_invalid_record_fails_whole_layout():
    with pytest.raises(InvalidTimeFormat):
        layout_day([{'id': 1, 'appointmentTime': '09:00', 'duration': 30},
                    {'id': 2, 'appointmentTime': '31:00', 'duration': 30}])


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------
def test_position_from_day_start():
    pos = position(appt('a', '09:30', 90), day_start_hour=8, pixels_per_hour=60)
    assert pos.top_offset == 90
    assert pos.block_height == 90


def test_short_block_is_raised_to_minimum_height():
    pos = position(appt('a', '09:00', 10), pixels_per_hour=60, min_block_height=30)
    assert pos.block_height == 30


def test_minimum_height_does_not_affect_overlaps():
    result = slots([appt('a', '09:00', 10), appt('b', '09:10', 10)])
    assert result == {'a': (0, 1), 'b': (0, 1)}


def test_layout_result_css():
    results = layout_day([appt('a', '09:00', 60), appt('b', '09:30', 60)], TimelineConfig(column_gap=4))
    b = results[1].as_dict(4)
    assert b['column'] == 1 and b['totalColumns'] == 2
    assert b['top'] == 570 and b['height'] == 60
    assert b['width'] == 50 and b['left'] == 50
    assert b['style']['width'] == 'calc(50% - 8px)'
    assert b['style']['left'] == 'calc(50% + 4px)'
    assert b['startTime'] == '09:30' and b['endTime'] == '10:30'


@pytest.mark.parametrize('y, expected', [(0, '00:00'), (59.9, '00:00'), (60, '01:00'), (125, '02:00'), (5000, '23:00')])
def test_time_at_offset_rounds_down_to_hour(y, expected):
    assert str(time_at_offset(y)) == expected


def test_time_at_offset_respects_day_start():
    config = TimelineConfig(day_start_hour=8, day_end_hour=18, pixels_per_hour=100)
    assert time_at_offset(250, config) == TimeOfDay(10, 0)
    assert time_at_offset(-10, config) == TimeOfDay(8, 0)
    assert time_at_offset(10_000, config) == TimeOfDay(18, 0)


def test_hour_slots_labels():
    hours = hour_slots()
    assert len(hours) == 24
    assert hours[0]['label'] == '12:00 AM'
    assert hours[9] == {'hour': 9, 'label': '9:00 AM', 'time': '09:00', 'top': 540}
    assert hours[12]['label'] == '12:00 PM'
    assert hours[23]['label'] == '11:00 PM'


def test_now_offset_only_for_today():
    now = dt.datetime(2024, 5, 1, 10, 30)
    assert now_offset('2024-05-01', now) == 630
    assert now_offset(dt.date(2024, 5, 2), now) is None
    assert now_offset('2024-05-01', now, TimelineConfig(day_start_hour=11)) is None


# ---------------------------------------------------------------------------
# Records and day filtering
# ---------------------------------------------------------------------------
def test_entry_from_api_record():
    entry = entry_from_record({
        'id': 'x1', 'appointmentTime': '13:15', 'duration': '45', 'status': 'Scheduled',
        'patient': {'firstName': 'Ada', 'lastName': 'Lovelace'},
    })
    assert entry.start == TimeOfDay(13, 15)
    assert entry.duration_minutes == 45
    assert entry.label == 'Ada Lovelace'


def test_entry_without_duration_uses_default():
    assert entry_from_record({'id': 1, 'appointmentTime': '08:00'}).duration_minutes == 30


def test_time_of_day_accepts_time_objects():
    assert TimeOfDay.parse(dt.time(7, 5)) == TimeOfDay(7, 5)
    assert str(TimeOfDay.parse(' 7:05 ')) == '07:05'


def test_select_for_date():
    records = [
        {'id': 1, 'appointmentDate': '2024-05-01T00:00:00.000Z'},
        {'id': 2, 'appointmentDate': dt.date(2024, 5, 2)},
        {'id': 3, 'appointmentDate': '2024-05-01'},
        {'id': 4},
    ]
    assert [r['id'] for r in select_for_date(records, '2024-05-01')] == [1, 3]
    assert [r['id'] for r in select_for_date(records, dt.date(2024, 5, 2))] == [2]
    assert select_for_date(records, None) == []
