"""
Relation import utility functions for row parsing and validation.
"""
from typing import Any


def safe_get(row: dict, key: str, default: Any = None) -> Any:
    """
    Safely get a value from a CSV row, returning default if missing or empty.
    Surrounding whitespace is stripped from string values.
    """
    value = row.get(key, default)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    return value


def validate_required_fields(row: dict, required_fields: list[str], row_number: int) -> list[str]:
    """
    Check that each required field in a CSV row exists and contains a non-empty value.

    Parameters:
        row (dict): Mapping of column names to values for a single CSV row.
        required_fields (list[str]): Field names that must be present and non-blank in `row`.
        row_number (int): 1-based row number used to prefix error messages.

    Returns:
        list[str]: Error messages of the form "Row {row_number}: Missing required field '{field}'"
        for each required field that is missing or blank.
    """
    errors = []
    for field in required_fields:
        value = row.get(field)
        if not value or (isinstance(value, str) and not value.strip()):
            errors.append(f"Row {row_number}: Missing required field '{field}'")
    return errors


def id_sort_key(identifier: str) -> tuple[int, int, str]:
    """
    Sort key for subject ids: numeric ids in numeric order, then the rest lexically.

    Generated datasets use integer ids, so "10" must sort after "9".
    """
    if identifier.isdigit():
        return (0, int(identifier), identifier)
    return (1, 0, identifier)
