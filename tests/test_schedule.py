from datetime import datetime, timedelta

import pytest

from psyhospital.utils.schedule import (
    FREQUENCY_AS_NEEDED,
    FREQUENCY_FOUR_TIMES,
    FREQUENCY_ONCE,
    FREQUENCY_TWICE,
    STATUS_ACTIVE,
    daily_schedule,
    execution_status,
    is_known_frequency,
    next_due_time,
    normalize_frequency,
)

DAY = datetime(2024, 3, 10)


def at(hour, minute=0, day=DAY):
    return day.replace(hour=hour, minute=minute)


def test_due_before_first_dose():
    assert next_due_time(STATUS_ACTIVE, FREQUENCY_TWICE, None, at(7)) == at(8)


def test_missed_dose_within_window_is_still_due():
    now = at(8, 10)
    due = next_due_time(STATUS_ACTIVE, FREQUENCY_TWICE, None, now)
    assert due == at(8)

    status = execution_status(STATUS_ACTIVE, due, now)
    assert status.text == 'Time to administer!'
    assert status.severity == 'orange'
    assert status.color == '#FF9800'


def test_executed_slot_is_skipped():
    due = next_due_time(STATUS_ACTIVE, FREQUENCY_TWICE, at(8, 5), at(9))
    assert due == at(20)


def test_all_slots_done_moves_to_tomorrow():
    due = next_due_time(STATUS_ACTIVE, FREQUENCY_TWICE, at(20, 5), at(23))
    assert due == at(8, day=DAY + timedelta(days=1))
    assert execution_status(STATUS_ACTIVE, due, at(23)).text == 'Tomorrow at 08:00'


def test_missed_dose_older_than_four_hours_drops_off():
    assert next_due_time(STATUS_ACTIVE, FREQUENCY_TWICE, None, at(13)) == at(20)


def test_closest_slot_wins():
    # 08:00 is 2h ago, 20:00 is 10h ahead
    assert next_due_time(STATUS_ACTIVE, FREQUENCY_TWICE, None, at(10)) == at(8)


def test_midnight_slot_of_four_times_a_day():
    # today's 00:00 already lies behind the last execution
    due = next_due_time(STATUS_ACTIVE, FREQUENCY_FOUR_TIMES, at(18), at(23))
    assert due == at(6, day=DAY + timedelta(days=1))


def test_fully_recorded_tomorrow_falls_back_two_days_out():
    pre_recorded = at(9, day=DAY + timedelta(days=1))
    due = next_due_time(STATUS_ACTIVE, FREQUENCY_ONCE, pre_recorded, at(10))
    assert due == at(9, day=DAY + timedelta(days=2))
    assert execution_status(STATUS_ACTIVE, due, at(10)).text == '12.03 09:00'


@pytest.mark.parametrize('last_execution', [None, at(8, 5), at(20, 5)])
def test_due_time_never_points_at_executed_slot(last_execution):
    now = at(6)
    for _ in range(24 * 4):
        due = next_due_time(STATUS_ACTIVE, FREQUENCY_TWICE, last_execution, now)
        if last_execution is not None:
            assert due > last_execution
        now += timedelta(minutes=15)


def test_as_needed_has_no_due_time():
    for now in (at(0), at(8), at(23, 59)):
        assert next_due_time(STATUS_ACTIVE, FREQUENCY_AS_NEEDED, at(7), now) is None
    status = execution_status(STATUS_ACTIVE, None, at(8))
    assert status.text == 'As needed'
    assert status.severity == 'gray'


def test_inactive_prescription_has_no_due_time():
    assert next_due_time('Completed', FREQUENCY_TWICE, None, at(7)) is None
    assert execution_status('Canceled', at(8), at(7)).text == '-'


def test_unknown_frequency_has_no_due_time():
    assert next_due_time(STATUS_ACTIVE, 'every hour', None, at(7)) is None
    assert daily_schedule('every hour') == ()
    assert not is_known_frequency('every hour')


@pytest.mark.parametrize('label', [
    'Два раза в день (утро, вечер)',
    'Twice a day',
    ' TWICE A DAY ',
])
def test_frequency_label_variants(label):
    assert normalize_frequency(label) == FREQUENCY_TWICE
    assert is_known_frequency(label)


@pytest.mark.parametrize('offset_minutes, text, severity', [
    (-30, 'Time to administer!', 'orange'),
    (-31, 'Overdue by 31 min', 'red'),
    (-59, 'Overdue by 59 min', 'red'),
    (-90, 'Overdue by 1 h', 'red'),
    (-150, 'Overdue by 2 h', 'red'),
    (-1, 'Time to administer!', 'orange'),
    (0, 'In 0 min', 'yellow'),
    (30, 'In 30 min', 'yellow'),
    (45, 'Today at 12:45', 'green'),
])
def test_status_text(offset_minutes, text, severity):
    now = at(12)
    status = execution_status(STATUS_ACTIVE, now + timedelta(minutes=offset_minutes), now)
    assert status.text == text
    assert status.severity == severity


def test_status_for_later_days():
    now = at(12)
    assert execution_status(STATUS_ACTIVE, at(9, day=DAY + timedelta(days=1)), now).text == 'Tomorrow at 09:00'
    assert execution_status(STATUS_ACTIVE, at(9, day=DAY + timedelta(days=3)), now).text == '13.03 09:00'


def test_status_to_dict():
    status = execution_status(STATUS_ACTIVE, at(12, 10), at(12))
    assert status.to_dict() == {'text': 'In 10 min', 'severity': 'yellow', 'color': '#FFC107'}
