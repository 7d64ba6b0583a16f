import re




_CLOCK_PATTERN = re.compile(
    r"^(\d{1,3})\s*(?::|h)\s*(\d{1,2})\s*(?:m(?:in(?:s|utos?)?)?)?$"
)
_UNIT_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)\s*"
    r"(hours|hour|horas|hora|hrs|hr|h|minutos|minuto|minutes|minute|mins|min|m)"
    r"(?![a-z])"
)
_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")
_HOUR_UNITS = {"h", "hr", "hrs", "hora", "horas", "hour", "hours"}


def parse_duration_hours(value: str | None) -> float:
    """Convert a free-text duration ("2h30", "1:45", "90m") into fractional hours.

    Unparseable or empty input yields 0; the result is never negative.
    """
    if not value:
        return 0.0

    text = value.strip().lower().replace(",", ".")
    if not text:
        return 0.0

    clock = _CLOCK_PATTERN.match(text)
    if clock:
        hours = int(clock.group(1))
        minutes = int(clock.group(2))
        return max(0.0, hours + minutes / 60)

    total = 0.0
    matched = False
    for number, unit in _UNIT_PATTERN.findall(text):
        matched = True
        amount = float(number)
        total += amount if unit in _HOUR_UNITS else amount / 60
    if matched:
        return max(0.0, total)

    bare = _NUMBER_PATTERN.search(text)
    if bare:
        amount = float(bare.group())
        if "min" in text:
            amount /= 60
        return max(0.0, amount)

    return 0.0


def parse_duration_minutes(value: str | None) -> int:
    return round(parse_duration_hours(value) * 60)


def format_duration(value: str | None) -> str:
    """Short label for event cards: '2h 30m', '2h' or '45m'; empty when unknown"""
    total_minutes = parse_duration_minutes(value)
    if total_minutes <= 0:
        return ""

    hours, minutes = divmod(total_minutes, 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"
