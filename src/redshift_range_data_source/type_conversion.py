"""Type conversion utilities for Redshift Data API values."""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from pyspark.sql.types import (
    DateType, DecimalType, DoubleType, FloatType, IntegerType,
    LongType, ShortType, TimestampType
)

_FIELD_KEYS = ("booleanValue", "longValue", "doubleValue", "stringValue", "blobValue")

# timestamptz comes back with a bare hour offset such as "+00" and trailing zeros trimmed from the fraction
_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[ T](\d{2}:\d{2}:\d{2})(?:\.(\d+))?(?:([+-]\d{2})(?::?(\d{2}))?)?$"
)


def field_value(field):
    """
    Extract the raw Python value from a Data API ``Field``.

    The Data API returns each cell as a single-key dict, e.g.
    ``{"longValue": 3}`` or ``{"isNull": True}``.

    Args:
        field: Field dict from a ``get_statement_result`` record

    Returns:
        The contained value, or None for NULL
    """
    if field is None or field.get("isNull"):
        return None

    for key in _FIELD_KEYS:
        if key in field:
            return field[key]

    if "arrayValue" in field:
        return _array_values(field["arrayValue"])

    return None


def _array_values(array_value):
    for key in ("booleanValues", "longValues", "doubleValues", "stringValues"):
        if key in array_value:
            return list(array_value[key])
    if "arrayValues" in array_value:
        return [_array_values(v) for v in array_value["arrayValues"]]
    return []


def _parse_timestamp(value):
    """Parse a Redshift timestamp, padding the fraction to 6 digits and the offset to +HH:MM."""
    match = _TIMESTAMP_PATTERN.match(value.strip())
    if match is None:
        return datetime.fromisoformat(value.strip())

    day, clock, fraction, offset_hours, offset_minutes = match.groups()
    text = f"{day} {clock}"
    if fraction:
        # fromisoformat before 3.11 only takes 3 or 6 fractional digits
        text += "." + fraction[:6].ljust(6, "0")
    if offset_hours:
        text += f"{offset_hours}:{offset_minutes or '00'}"
    return datetime.fromisoformat(text)


def convert_redshift_value(field, data_type=None):
    """
    Convert a Data API field to a Spark-compatible Python value.

    Redshift sends numeric/decimal columns, dates and timestamps as strings,
    so the target Spark type decides how they are parsed.

    Args:
        field: Field dict from a ``get_statement_result`` record
        data_type: Target Spark DataType, or None to return the raw value

    Returns:
        Converted value suitable for Spark
    """
    value = field_value(field)
    if value is None or data_type is None:
        return value

    if isinstance(data_type, (ShortType, IntegerType, LongType)):
        return int(value)

    if isinstance(data_type, (FloatType, DoubleType)):
        return float(value)

    if isinstance(data_type, DecimalType):
        return Decimal(str(value))

    if isinstance(data_type, DateType) and isinstance(value, str):
        return date.fromisoformat(value[:10])

    if isinstance(data_type, TimestampType) and isinstance(value, str):
        return _parse_timestamp(value)

    return value


def to_int(value):
    """
    Coerce an aggregate result to int.

    Accepts ints, integral Decimals/floats and integral numeric strings (what
    Redshift returns for NUMERIC columns). None passes through.

    Raises:
        TypeError: For booleans and non-numeric types
        ValueError: For non-integral or unparseable values
    """
    if value is None:
        return None

    # bool is a subclass of int
    if isinstance(value, bool):
        raise TypeError(f"Expected an integer, got {value!r}")

    if isinstance(value, int):
        return value

    if isinstance(value, (Decimal, float, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation as err:
            raise ValueError(f"Not a number: {value!r}") from err
        if not number.is_finite() or number != number.to_integral_value():
            raise ValueError(f"Not an integral value: {value!r}")
        return int(number)

    raise TypeError(f"Expected an integer, got {type(value).__name__}")
