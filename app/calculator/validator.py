# ==============================================================================
# app/calculator/validator.py
# ------------------------------------------------------------------------------
# Input checks for the commission engine.
# Dirty numbers are coerced to zero and counted; wrong argument shapes raise.
# ==============================================================================

import math
from collections.abc import Iterable, Mapping

import pandas as pd

_MISSING = object()


def parse_amount(value):
    """
    Converts a raw numeric field into a float.

    Args:
        value: A number, a numeric string (thousands separators and a leading
            currency sign are tolerated) or None.

    Returns:
        tuple: (float value, bool coerced). ``coerced`` is True when the raw
        value was present but could not be read as a finite number and was
        replaced by 0.
    """
    if value is None:
        return 0.0, False
    if isinstance(value, str):
        text = value.strip().replace(',', '').lstrip('$')
        if not text:
            return 0.0, False
        value = text
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0, True
    if not math.isfinite(number):
        return 0.0, True
    return number, False


def read_field(row, name, *aliases, required=False, default=None):
    """
    Reads a field from a mapping (JSON object) or an attribute object
    (dataclass, ORM row). Aliases are the datastore column names.
    """
    for key in (name,) + aliases:
        if isinstance(row, Mapping):
            value = row.get(key, _MISSING)
        else:
            value = getattr(row, key, _MISSING)
        if value is not _MISSING:
            return value
    if required:
        raise TypeError(
            f"{type(row).__name__} record has no '{name}' field"
            + (f" (also tried {', '.join(aliases)})" if aliases else "")
        )
    return default


def ensure_collection(value, argument):
    """
    Fails fast when a caller passes something other than a collection of
    records. Strings, bytes and single mappings are rejected even though
    they are iterable.
    """
    if value is None:
        raise TypeError(f"'{argument}' must be a collection of records, got None")
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise TypeError(f"'{argument}' must be a collection of records, got {type(value).__name__}")
    records = list(value)
    for index, record in enumerate(records):
        if record is None or isinstance(record, (str, bytes, int, float, bool)):
            raise TypeError(
                f"'{argument}[{index}]' must be a mapping or record object, got {type(record).__name__}"
            )
    return records


def is_blank(value):
    """True for None, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def read_flag(value):
    """Reads an is_active style flag; strings like 'false' and '0' are False."""
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 't', 'y')
    if is_blank(value):
        return False
    return bool(value)
