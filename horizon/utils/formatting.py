"""Display formatting helpers"""

from decimal import Decimal, ROUND_HALF_UP


def format_amount(amount: float | None) -> str:
    """Format a dollar amount as USD, e.g. -1234.5 becomes -$1,234.50"""
    if amount is None:
        return "$0.00"

    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def parse_page(raw: str | None) -> int:
    """Query-string page number; anything unparseable or < 1 becomes 1"""
    try:
        page = int(raw) if raw is not None else 1
    except ValueError:
        return 1
    return page if page >= 1 else 1
