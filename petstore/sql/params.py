from typing import Any, Mapping, NamedTuple

IDENTITY_COLUMN = "id"


class NamedParameters(NamedTuple):
    """Parallel column / placeholder lists plus the values to bind."""

    columns: list[str]
    placeholders: list[str]
    values: dict[str, Any]


def build_named_parameters(
    values: Mapping[str, Any],
    skip_identity: bool = False,
) -> NamedParameters:
    """
    Turn a column -> value mapping into named-parameter pieces.

    Entries whose value is None are skipped. With `skip_identity` (used by
    inserts) the identity column is skipped too, so the backend assigns it.
    Keys are trusted column names and are not escaped.
    """
    columns: list[str] = []
    placeholders: list[str] = []
    bound: dict[str, Any] = {}

    for column, value in values.items():
        if value is None:
            continue
        if skip_identity and column == IDENTITY_COLUMN:
            continue
        columns.append(column)
        placeholders.append(f":{column}")
        bound[column] = value

    return NamedParameters(columns, placeholders, bound)
