"""Normalization of the dollar amounts printed in a clue's value cell."""

from .config import MISSING_VALUE

DAILY_DOUBLE_PREFIX = "DD:"
VALUE_PREFIXES = ("DD:", "D: $", "$")


def normalize_value(raw_value):
    """Returns (value, daily_double) for the text of a clue value cell.

    The value is returned as a digit string with currency markers and thousands separators removed, or
    MISSING_VALUE when the cell is empty. The content is only reformatted, never checked against game rules.

        >>> normalize_value("DD: $1,200")
        ('1200', True)
        >>> normalize_value("")
        ('-100', False)
    """

    raw_value = (raw_value or "").strip()
    if not raw_value:
        return MISSING_VALUE, False

    daily_double = raw_value.startswith(DAILY_DOUBLE_PREFIX)
    value = raw_value
    for prefix in VALUE_PREFIXES:
        if value.startswith(prefix):
            value = value[len(prefix):].strip()
    value = value.replace(",", "")
    return value, daily_double
