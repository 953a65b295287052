"""
Status registry for the job pipeline board.

This module owns the fixed, ordered list of board columns and the rules for
bucketing a free-text application status into exactly one of them:
- Each column accepts one or more raw status strings (alias folding)
- Lookup ignores surrounding whitespace and case
- Anything unrecognized (including empty or missing status) lands in Other
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from models.status import PipelineColumn


@dataclass(frozen=True)
class StatusColumn:
    """A named bucket on the pipeline board."""

    column: PipelineColumn
    title: str
    accepted_statuses: FrozenSet[str]
    style: str = "default"

    @property
    def id(self) -> str:
        return self.column.value


STATUS_COLUMNS: List[StatusColumn] = [
    StatusColumn(PipelineColumn.INTERESTED, "Interested", frozenset({"Interested"}), "purple"),
    StatusColumn(PipelineColumn.APPLIED, "Applied", frozenset({"Applied"}), "primary"),
    StatusColumn(PipelineColumn.PHONE_SCREEN, "Phone Screen", frozenset({"Phone Screen"}), "blue"),
    StatusColumn(
        PipelineColumn.INTERVIEW,
        "Interview",
        frozenset({"Interview", "Interview Scheduled"}),
        "accent",
    ),
    StatusColumn(PipelineColumn.OFFER, "Offer", frozenset({"Offer", "Offer Received"}), "green"),
    StatusColumn(PipelineColumn.ACCEPTED, "Accepted", frozenset({"Accepted"}), "emerald"),
    StatusColumn(PipelineColumn.REJECTED, "Rejected", frozenset({"Rejected"}), "destructive"),
    StatusColumn(PipelineColumn.OTHER, "Other", frozenset(), "muted"),
]

_COLUMNS_BY_ID: Dict[PipelineColumn, StatusColumn] = {c.column: c for c in STATUS_COLUMNS}

# Normalized raw status -> column. Column ids are accepted as well so that the
# value written on a move always resolves back to the same column.
_ALIAS_INDEX: Dict[str, PipelineColumn] = {}
for _column in STATUS_COLUMNS:
    for _raw in _column.accepted_statuses:
        _ALIAS_INDEX[_raw.casefold()] = _column.column


def _normalize(raw_status: Optional[str]) -> str:
    if raw_status is None:
        return ""
    if isinstance(raw_status, PipelineColumn):
        return raw_status.value.casefold()
    if not isinstance(raw_status, str):
        return ""
    return raw_status.strip().casefold()


def resolve_column(raw_status: Optional[str]) -> PipelineColumn:
    """
    Resolve a raw application status to its board column.

    Total and deterministic: every input yields exactly one column.

    Args:
        raw_status: Free-text status as stored, or a PipelineColumn

    Returns:
        The matching PipelineColumn, or PipelineColumn.OTHER

    Examples:
        >>> resolve_column("Offer Received")
        <PipelineColumn.OFFER: 'Offer'>
        >>> resolve_column("  applied ")
        <PipelineColumn.APPLIED: 'Applied'>
        >>> resolve_column("Ghosted")
        <PipelineColumn.OTHER: 'unknown'>
        >>> resolve_column(None)
        <PipelineColumn.OTHER: 'unknown'>
    """
    normalized = _normalize(raw_status)
    if not normalized:
        return PipelineColumn.OTHER
    if normalized == PipelineColumn.OTHER.value:
        return PipelineColumn.OTHER
    return _ALIAS_INDEX.get(normalized, PipelineColumn.OTHER)


def columns_in_order() -> List[StatusColumn]:
    """Return every board column, Other last."""
    return list(STATUS_COLUMNS)


def get_column(column: PipelineColumn) -> StatusColumn:
    """Look up the StatusColumn for a PipelineColumn."""
    return _COLUMNS_BY_ID[column]


def column_title(raw_status: Optional[str]) -> str:
    """Display title of the column a raw status resolves to."""
    return get_column(resolve_column(raw_status)).title


def is_same_column(first: Optional[str], second: Optional[str]) -> bool:
    """Whether two raw statuses denote the same column, aliases included."""
    return resolve_column(first) == resolve_column(second)


def is_recognized(raw_status: Optional[str]) -> bool:
    """Whether a raw status maps to a real (non-Other) column."""
    return resolve_column(raw_status) != PipelineColumn.OTHER
