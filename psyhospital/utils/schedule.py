"""Administration schedule for prescriptions.

Every frequency label maps to a fixed list of clock times. From that list and
the time of the most recent execution we work out the next dose that still
has to be given, and turn the distance to it into a short status for the ward
board.
"""
from datetime import datetime, time, timedelta
from typing import NamedTuple

STATUS_ACTIVE = 'Active'

FREQUENCY_ONCE = 'Один раз в день'
FREQUENCY_TWICE = 'Два раза в день'
FREQUENCY_THRICE = 'Три раза в день'
FREQUENCY_FOUR_TIMES = 'Четыре раза в день'
FREQUENCY_AS_NEEDED = 'По необходимости'

DAILY_SCHEDULES = {
    FREQUENCY_ONCE: (time(9, 0),),
    FREQUENCY_TWICE: (time(8, 0), time(20, 0)),
    FREQUENCY_THRICE: (time(8, 0), time(14, 0), time(20, 0)),
    # midnight closes the day, it is listed last on purpose
    FREQUENCY_FOUR_TIMES: (time(6, 0), time(12, 0), time(18, 0), time(0, 0)),
    FREQUENCY_AS_NEEDED: (),
}

FREQUENCY_ALIASES = {
    'once a day': FREQUENCY_ONCE,
    'twice a day': FREQUENCY_TWICE,
    'three times a day': FREQUENCY_THRICE,
    'four times a day': FREQUENCY_FOUR_TIMES,
    'as needed': FREQUENCY_AS_NEEDED,
}

# a missed dose stays on the board for this long before we move on
LOOK_BACK = timedelta(hours=4)

SEVERITY_COLORS = {
    'gray': '#9E9E9E',
    'red': '#F44336',
    'orange': '#FF9800',
    'yellow': '#FFC107',
    'green': '#4CAF50',
}


class ExecutionStatus(NamedTuple):
    text: str
    severity: str

    @property
    def color(self) -> str:
        return SEVERITY_COLORS[self.severity]

    def to_dict(self):
        return {'text': self.text, 'severity': self.severity, 'color': self.color}


def normalize_frequency(label: str | None) -> str | None:
    """Map a frequency label to its canonical form.

    Long labels such as "Два раза в день (утро, вечер)" keep only the part
    before the bracket. English aliases are matched case-insensitively.
    Unknown labels come back stripped but otherwise untouched.
    """
    if not label:
        return None
    value = label.split(' (', 1)[0].strip()
    return FREQUENCY_ALIASES.get(value.lower(), value)


def is_known_frequency(label: str | None) -> bool:
    return normalize_frequency(label) in DAILY_SCHEDULES


def daily_schedule(label: str | None) -> tuple[time, ...]:
    return DAILY_SCHEDULES.get(normalize_frequency(label), ())


def is_as_needed(label: str | None) -> bool:
    return normalize_frequency(label) == FREQUENCY_AS_NEEDED


def next_due_time(status: str, frequency: str | None, last_execution_time: datetime | None,
                  now: datetime) -> datetime | None:
    if status != STATUS_ACTIVE or is_as_needed(frequency):
        return None

    schedule = daily_schedule(frequency)
    if not schedule:
        return None

    def executed(scheduled: datetime) -> bool:
        return last_execution_time is not None and scheduled <= last_execution_time

    today = datetime.combine(now.date(), time())
    closest = None
    for slot in schedule:
        scheduled = datetime.combine(today.date(), slot)
        if executed(scheduled):
            continue
        if scheduled - now > -LOOK_BACK:
            if closest is None or abs(scheduled - now) < abs(closest - now):
                closest = scheduled
    if closest is not None:
        return closest

    tomorrow = today + timedelta(days=1)
    for slot in schedule:
        scheduled = datetime.combine(tomorrow.date(), slot)
        if not executed(scheduled):
            return scheduled

    # TODO: check execution here as well once the ward agrees on how a fully
    # pre-recorded day should be shown; the board currently jumps two days out.
    return datetime.combine(tomorrow.date() + timedelta(days=1), schedule[0])


def execution_status(status: str, due: datetime | None, now: datetime) -> ExecutionStatus:
    if status != STATUS_ACTIVE:
        return ExecutionStatus('-', 'gray')
    if due is None:
        return ExecutionStatus('As needed', 'gray')

    diff_minutes = (due - now).total_seconds() / 60

    if diff_minutes < -30:
        minutes_late = int(abs(diff_minutes))
        if minutes_late >= 60:
            return ExecutionStatus(f'Overdue by {minutes_late // 60} h', 'red')
        return ExecutionStatus(f'Overdue by {minutes_late} min', 'red')

    if diff_minutes < 0:
        return ExecutionStatus('Time to administer!', 'orange')

    if diff_minutes <= 30:
        return ExecutionStatus(f'In {int(diff_minutes)} min', 'yellow')

    if due.date() == now.date():
        return ExecutionStatus(f'Today at {due:%H:%M}', 'green')
    if due.date() == now.date() + timedelta(days=1):
        return ExecutionStatus(f'Tomorrow at {due:%H:%M}', 'green')
    return ExecutionStatus(f'{due:%d.%m %H:%M}', 'green')
