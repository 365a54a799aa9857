from datetime import datetime, timezone
from decimal import Decimal

from dateutil.parser import isoparse


def utcnow():
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value, field='date'):
    from petstore.errors import ValidationError
    try:
        parsed = isoparse(value)
    except (ValueError, TypeError):
        raise ValidationError(f'Invalid {field} format. Use ISO format (YYYY-MM-DDTHH:MM:SS)')
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def isoformat(value):
    return value.isoformat() if value else None


def money(value):
    if value is None:
        return None
    return float(value)


def to_decimal(value):
    return value if isinstance(value, Decimal) else Decimal(str(value))


def page_args(args, default_limit=10, max_limit=100):
    try:
        page = max(int(args.get('page', 1)), 1)
        limit = min(max(int(args.get('limit', default_limit)), 1), max_limit)
    except (TypeError, ValueError):
        from petstore.errors import ValidationError
        raise ValidationError('page and limit must be integers')
    return page, limit


def page_meta(pagination):
    return {
        'total': pagination.total,
        'page': pagination.page,
        'pages': pagination.pages,
        'hasNext': pagination.has_next,
        'hasPrev': pagination.has_prev
    }
