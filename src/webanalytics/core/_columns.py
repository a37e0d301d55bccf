"""Internal helpers for working with the allow-listed dimension columns."""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import InvalidColumnError


@dataclass(frozen=True)
class DimensionColumn:
    """An event-store column that user-authored filters may reference.

    ``expression`` is the SQL that the compiler interpolates in place of the
    column name.  It only ever comes from :data:`FILTER_COLUMNS`, never from
    caller input, which is what makes interpolating it safe.
    """

    name: str
    expression: str


EVENT_TYPE_COLUMN = "event_type"

_STRING_COLUMNS = (
    "url",
    "domain",
    "device_type",
    "country_code",
    "browser",
    "os",
    "custom_event_name",
    "referrer_source",
    "referrer_source_name",
    "referrer_search_term",
    "referrer_url",
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
)

FILTER_COLUMNS: dict[str, DimensionColumn] = {
    name: DimensionColumn(name=name, expression=name) for name in _STRING_COLUMNS
}
# Stored as an enum-like value upstream; compare on its text form.
FILTER_COLUMNS[EVENT_TYPE_COLUMN] = DimensionColumn(
    name=EVENT_TYPE_COLUMN,
    expression=f"CAST({EVENT_TYPE_COLUMN} AS STRING)",
)


def resolve_column(name: str) -> DimensionColumn:
    """Return the :class:`DimensionColumn` for ``name`` or raise.

    Lookup is exact: column names are case sensitive and unknown names are
    rejected rather than dropped.
    """

    column = FILTER_COLUMNS.get(name)
    if column is None:
        raise InvalidColumnError(
            f"Unsupported filter column: {name!r}",
            context={"column": name, "allowed": sorted(FILTER_COLUMNS)},
        )
    return column
