"""
Summary statistics over the pipeline.

Stage groups:
- interviewing: Phone Screen + Interview (aliases included)
- offers: Offer + Accepted
- responded: interviewing + offers + rejected
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from models.status import PipelineColumn
from utils.board_model import BoardModel

INTERVIEW_COLUMNS = (PipelineColumn.PHONE_SCREEN, PipelineColumn.INTERVIEW)
OFFER_COLUMNS = (PipelineColumn.OFFER, PipelineColumn.ACCEPTED)


@dataclass(frozen=True)
class PipelineStats:
    total: int
    active: int
    applied: int
    interviewing: int
    offers: int
    rejected: int
    response_rate: int
    by_column: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "active": self.active,
            "applied": self.applied,
            "interviewing": self.interviewing,
            "offers": self.offers,
            "rejected": self.rejected,
            "response_rate": self.response_rate,
            "by_column": dict(self.by_column),
        }


def compute_stats(records: Optional[Iterable[Any]]) -> PipelineStats:
    """
    Compute pipeline statistics from a record snapshot.

    The response rate is the share of all applications that got any response
    (interview, offer or rejection), as a rounded percentage; 0 for an empty
    pipeline.
    """
    board = BoardModel(records)
    counts = board.counts()

    total = len(board)
    active = sum(1 for record in board.records if not record.is_archived)
    interviewing = sum(counts[column] for column in INTERVIEW_COLUMNS)
    offers = sum(counts[column] for column in OFFER_COLUMNS)
    rejected = counts[PipelineColumn.REJECTED]
    responded = interviewing + offers + rejected
    response_rate = round(responded / total * 100) if total > 0 else 0

    return PipelineStats(
        total=total,
        active=active,
        applied=counts[PipelineColumn.APPLIED],
        interviewing=interviewing,
        offers=offers,
        rejected=rejected,
        response_rate=response_rate,
        by_column={column.value: count for column, count in counts.items()},
    )
