"""Five-field cron expressions: parsing, explanation and common patterns.

Pure functions, no I/O. Parsed fields use the provider's convention where an
empty list means "every value in range".
"""
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from .errors import CronValidationError
from .schemas import ScheduleFields

# (name used in messages, ScheduleFields attribute, min, max)
FIELDS: Tuple[Tuple[str, str, int, int], ...] = (
    ("minute", "minutes", 0, 59),
    ("hour", "hours", 0, 23),
    ("day", "mdays", 1, 31),
    ("month", "months", 1, 12),
    ("weekday", "wdays", 0, 6),
)

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_NUMBER_RE = re.compile(r"[0-9]+")


class CronCheck(BaseModel):
    valid: bool
    error: Optional[str] = None
    explanation: Optional[str] = None


def parse(expression: str) -> ScheduleFields:
    if not isinstance(expression, str) or not expression.strip():
        raise CronValidationError("Cron expression must be a non-empty string")

    parts = expression.split()
    if len(parts) != 5:
        raise CronValidationError(
            f'Expected 5 fields but got {len(parts)}. Format: "minute hour day month weekday"'
        )

    expanded = {}
    for (name, attr, low, high), token in zip(FIELDS, parts):
        try:
            expanded[attr] = _expand_field(token, low, high)
        except ValueError as exc:
            raise CronValidationError(f"Invalid {name}: {exc}") from None
    return ScheduleFields(**expanded)


def validate(expression: str) -> CronCheck:
    try:
        fields = parse(expression)
    except CronValidationError as exc:
        return CronCheck(valid=False, error=str(exc))
    return CronCheck(valid=True, explanation=explain(fields))


def describe(expression: str) -> str:
    return explain(parse(expression))


def _expand_field(token: str, low: int, high: int) -> List[int]:
    wildcard = False
    values = set()
    for part in token.split(","):
        if part == "*":
            wildcard = True
            continue
        values.update(_expand_part(part, low, high))
    if wildcard:
        return []
    return sorted(values)


def _expand_part(part: str, low: int, high: int) -> Iterable[int]:
    if not part:
        raise ValueError("Empty list element")

    if "/" in part:
        base, _, step_text = part.partition("/")
        step = _number(step_text)
        if step <= 0:
            raise ValueError(f"Invalid step value {step_text}")
        if base == "*":
            start, end = low, high
        elif "-" in base:
            start, end = _range(base, low, high)
        else:
            raise ValueError("Step can only be used with * or range")
        return range(start, end + 1, step)

    if "-" in part:
        start, end = _range(part, low, high)
        return range(start, end + 1)

    value = _number(part)
    if value < low or value > high:
        raise ValueError(f"Value {value} is outside valid range {low}-{high}")
    return (value,)


def _range(text: str, low: int, high: int) -> Tuple[int, int]:
    start_text, _, end_text = text.partition("-")
    if not _NUMBER_RE.fullmatch(start_text) or not _NUMBER_RE.fullmatch(end_text):
        raise ValueError(f"Invalid range format '{text}'")
    start, end = int(start_text), int(end_text)
    if start > end:
        raise ValueError(f"Range {start}-{end} is reversed")
    if start < low or end > high:
        raise ValueError(f"Range {start}-{end} is outside valid range {low}-{high}")
    return start, end


def _number(text: str) -> int:
    if not _NUMBER_RE.fullmatch(text):
        raise ValueError(f"'{text}' must be a number or valid cron syntax")
    return int(text)


def to_expression(fields: ScheduleFields) -> str:
    """Render expanded fields back to a compact expression."""
    return " ".join(_compact(getattr(fields, attr)) for _, attr, _, _ in FIELDS)


def _runs(values: Sequence[int]) -> List[Tuple[int, int]]:
    runs: List[Tuple[int, int]] = []
    for value in values:
        if runs and value == runs[-1][1] + 1:
            runs[-1] = (runs[-1][0], value)
        else:
            runs.append((value, value))
    return runs


def _compact(values: Sequence[int]) -> str:
    if not values:
        return "*"
    pieces = []
    for start, end in _runs(values):
        if end - start >= 2:
            pieces.append(f"{start}-{end}")
        else:
            pieces.extend(str(v) for v in range(start, end + 1))
    return ",".join(pieces)


def _join(items: Sequence[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return f"{', '.join(items[:-1])} and {items[-1]}"


def _named(values: Sequence[int], names: Optional[Sequence[str]] = None, offset: int = 0) -> str:
    def label(v: int) -> str:
        return names[v - offset] if names else str(v)

    pieces = []
    for start, end in _runs(values):
        if end - start >= 2:
            pieces.append(f"{label(start)} through {label(end)}")
        else:
            pieces.extend(label(v) for v in range(start, end + 1))
    return _join(pieces)


def _plural(word: str, values: Sequence[int]) -> str:
    return word if len(values) == 1 else word + "s"


def _describe_time(minutes: List[int], hours: List[int]) -> str:
    if not minutes and not hours:
        return "every minute"
    if not minutes:
        return f"every minute during {_plural('hour', hours)} {_named(hours)}"
    if not hours:
        return f"at {_plural('minute', minutes)} {_named(minutes)} of every hour"
    if len(minutes) * len(hours) <= 6:
        return "at " + _join([f"{h}:{m:02d}" for h in hours for m in minutes])
    return (
        f"at {_plural('minute', minutes)} {_named(minutes)} "
        f"past {_plural('hour', hours)} {_named(hours)}"
    )


def explain(fields: ScheduleFields) -> str:
    text = "Runs " + _describe_time(fields.minutes, fields.hours)

    months = _named(fields.months, MONTH_NAMES, offset=1)
    if fields.mdays:
        text += f" on {_plural('day', fields.mdays)} {_named(fields.mdays)}"
        text += f" of {months}" if fields.months else " of every month"
    elif fields.months:
        text += f" in {months}"

    if fields.wdays:
        joiner = " and on " if fields.mdays else " on "
        text += joiner + _named(fields.wdays, WEEKDAY_NAMES)
    return text


def _checked(expression: str) -> str:
    parse(expression)
    return expression


def every_minute() -> str:
    return "* * * * *"


def every_hour() -> str:
    return "0 * * * *"


def every_n_minutes(n: int) -> str:
    return _checked(f"*/{n} * * * *")


def every_n_hours(n: int) -> str:
    return _checked(f"0 */{n} * * *")


def daily(hour: int = 0, minute: int = 0) -> str:
    return _checked(f"{minute} {hour} * * *")


def weekly(weekday: int = 1, hour: int = 0, minute: int = 0) -> str:
    return _checked(f"{minute} {hour} * * {weekday}")


def monthly(day: int = 1, hour: int = 0, minute: int = 0) -> str:
    return _checked(f"{minute} {hour} {day} * *")


def yearly(month: int = 1, day: int = 1, hour: int = 0, minute: int = 0) -> str:
    return _checked(f"{minute} {hour} {day} {month} *")


def business_days(hour: int = 9, minute: int = 0) -> str:
    return _checked(f"{minute} {hour} * * 1-5")


def weekends(hour: int = 10, minute: int = 0) -> str:
    return _checked(f"{minute} {hour} * * 0,6")


def monday_morning(hour: int = 9, minute: int = 0) -> str:
    return weekly(1, hour, minute)


def twice_daily(hours: Sequence[int] = (9, 17), minute: int = 0) -> str:
    return _checked(f"{minute} {','.join(str(h) for h in hours)} * * *")
