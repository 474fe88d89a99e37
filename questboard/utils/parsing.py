import math
from typing import Any, Optional


def parse_number(value: Any) -> Optional[float]:
    """Coerce a JSON number or numeric string to float. None stays None."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a number")
    number = float(value.strip() if isinstance(value, str) else value)
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"{value!r} is not a number")
    return number


def parse_int(value: Any) -> Optional[int]:
    # falsy values (None, "", 0) clear the column
    if not value:
        return None
    return int(parse_number(value))


def trim_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_year(value: Optional[str]) -> Optional[int]:
    # out-of-range or garbled years are ignored rather than rejected
    if not value or not value.strip().isdigit():
        return None
    number = int(value.strip())
    return number if 1 <= number <= 4 else None
