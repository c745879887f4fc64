"""Number formatting for insight titles and integrity messages."""

from datetime import datetime

DECIMAL_SEPARATOR = ","
MINUS_SIGN = "−"


def format_decimal(value: float, decimals: int = 1, decimal_separator: str = DECIMAL_SEPARATOR) -> str:
    """Fixed-point with a configurable decimal mark: 10.0 -> '10,0'."""
    text = f"{value:.{decimals}f}"
    if text.startswith("-") and float(text) == 0:
        text = text[1:]
    return text.replace(".", decimal_separator)


def format_signed_percent(value: float, decimals: int = 1, decimal_separator: str = DECIMAL_SEPARATOR) -> str:
    """Percent with explicit sign: 10.0 -> '+10,0%', -12.34 -> '-12,3%'."""
    text = format_decimal(value, decimals, decimal_separator)
    sign = "" if text.startswith("-") else "+"
    return f"{sign}{text}%"


def format_ratio_percent(ratio: float, decimals: int = 1, decimal_separator: str = DECIMAL_SEPARATOR) -> str:
    """Ratio rendered as percent: 0.723 -> '72,3%'."""
    return f"{format_decimal(ratio * 100, decimals, decimal_separator)}%"


def format_count(value: int) -> str:
    """Thousands-grouped integer: 1234 -> '1,234'."""
    return f"{value:,}"


def format_count_with_sign(value: int) -> str:
    """Signed integer, never '+0': 342 -> '+342', -12 -> '−12'."""
    if value == 0:
        return "0"
    if value > 0:
        return f"+{value:,}"
    return f"{MINUS_SIGN}{abs(value):,}"


def format_clock(moment: datetime) -> str:
    """Wall-clock time: 'HH:MM'."""
    return moment.strftime("%H:%M")
