from datetime import datetime, timezone


def utcnow():
    """Naive UTC timestamp, matching what the database columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_date(value):
    """Render a date as MM/DD/YYYY, or an empty string when missing."""
    if not value:
        return ''
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return ''
    return value.strftime('%m/%d/%Y')


def isoformat(value):
    return value.isoformat() if value else None
