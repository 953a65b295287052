"""
In-memory board projection of application records.

The board is recomputed from a record snapshot every time; nothing here
mutates persisted state.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from pydantic import ValidationError

from models.application import ApplicationRecord
from models.status import PipelineColumn
from utils.status_registry import StatusColumn, columns_in_order, resolve_column

logger = logging.getLogger(__name__)


def coerce_records(records: Optional[Iterable[Any]]) -> List[ApplicationRecord]:
    """
    Turn raw rows or records into ApplicationRecords, dropping unusable ones.

    Items without a usable id are skipped with a debug log instead of
    raising. Unparsable optional fields do not drop a record.

    Args:
        records: ApplicationRecords, mappings (e.g. database rows), or None

    Returns:
        Valid records in input order
    """
    if records is None:
        return []

    valid: List[ApplicationRecord] = []
    for index, item in enumerate(records):
        if isinstance(item, ApplicationRecord):
            record = item
        elif isinstance(item, Mapping):
            if item.get("id") in (None, ""):
                logger.debug("Skipping record at index %d: missing id", index)
                continue
            try:
                record = ApplicationRecord.model_validate(dict(item))
            except ValidationError as e:
                logger.debug("Skipping malformed record at index %d: %s", index, e.errors()[:1])
                continue
        else:
            logger.debug("Skipping record at index %d: unsupported type %s", index, type(item).__name__)
            continue

        if not record.id or not record.id.strip():
            continue
        valid.append(record)

    return valid


class BoardModel:
    """
    Records grouped by resolved board column.

    Usage:
        board = BoardModel(rows)
        board.project()[PipelineColumn.APPLIED]
        board.count(PipelineColumn.OFFER)
    """

    def __init__(self, records: Optional[Iterable[Any]] = None):
        self.records: List[ApplicationRecord] = coerce_records(records)
        self._columns: Dict[PipelineColumn, List[ApplicationRecord]] = self._group(self.records)

    @staticmethod
    def _group(records: List[ApplicationRecord]) -> Dict[PipelineColumn, List[ApplicationRecord]]:
        grouped: Dict[PipelineColumn, List[ApplicationRecord]] = {
            column.column: [] for column in columns_in_order()
        }
        for record in records:
            grouped[resolve_column(record.status)].append(record)
        return grouped

    def project(self) -> Dict[PipelineColumn, List[ApplicationRecord]]:
        """Every column (Other included) mapped to its records, in input order."""
        return {column: list(items) for column, items in self._columns.items()}

    def count(self, column: PipelineColumn) -> int:
        return len(self._columns.get(column, []))

    def counts(self) -> Dict[PipelineColumn, int]:
        return {column: len(items) for column, items in self._columns.items()}

    def find(self, record_id: str) -> Optional[ApplicationRecord]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def column_of(self, record_id: str) -> Optional[PipelineColumn]:
        record = self.find(record_id)
        if record is None:
            return None
        return resolve_column(record.status)

    def visible_columns(self) -> List[StatusColumn]:
        """Columns to render: Other is shown only when it holds records."""
        return [
            column
            for column in columns_in_order()
            if column.column != PipelineColumn.OTHER or self._columns[PipelineColumn.OTHER]
        ]

    def __len__(self) -> int:
        return len(self.records)


def project(records: Optional[Iterable[Any]]) -> Dict[PipelineColumn, List[ApplicationRecord]]:
    """Group records by resolved column. Shortcut for ``BoardModel(records).project()``."""
    return BoardModel(records).project()


class SelectionSet:
    """
    Record ids checked by the user for bulk operations.

    Insertion-ordered, never persisted.
    """

    def __init__(self, ids: Optional[Iterable[str]] = None):
        self._ids: Dict[str, None] = {}
        for record_id in ids or []:
            self.select(record_id)

    def select(self, record_id: str) -> None:
        self._ids[record_id] = None

    def deselect(self, record_id: str) -> None:
        self._ids.pop(record_id, None)

    def toggle(self, record_id: str) -> bool:
        """Flip membership; returns True when the id is now selected."""
        if record_id in self._ids:
            del self._ids[record_id]
            return False
        self._ids[record_id] = None
        return True

    def clear(self) -> None:
        self._ids.clear()

    def retain(self, valid_ids: Iterable[str]) -> None:
        """Drop selected ids that are not in ``valid_ids``."""
        keep = set(valid_ids)
        self._ids = {record_id: None for record_id in self._ids if record_id in keep}

    def contains(self, record_id: str) -> bool:
        return record_id in self._ids

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)
