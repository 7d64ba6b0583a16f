from datetime import datetime, timezone




def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a stored datetime to timezone-aware UTC (SQLite returns naive values)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


_PT_MONTHS = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


def format_pt_datetime(value: datetime | None) -> str:
    """Render a datetime the way the Portuguese e-mails show it: '15 de março de 2024, 10:00'"""
    value = as_utc(value)
    if value is None:
        return ""
    month = _PT_MONTHS[value.month - 1]
    return f"{value.day:02d} de {month} de {value.year}, {value:%H:%M}"
