"""
Informational notices.

Some operations complete by applying an implicit rule: trimming a shared
dimension before arithmetic, summing away extra weight dimensions, assuming
intervals for single-year ages, or meeting a zero total weight. Each such
event is recorded as a Notice and attached to the returned array, so
callers can audit or assert on it. Notices are also logged at INFO.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class NoticeKind(Enum):
    """What implicit behaviour was applied."""
    TRIMMED = "trimmed"                       # shared dimension subset to intersection
    WEIGHTS_COLLAPSED = "weights_collapsed"   # extra weight dimension summed out
    DEFAULT_ASSUMED = "default_assumed"       # age integers read as intervals
    UNDEFINED_MEAN = "undefined_mean"         # zero total weight → NaN


@dataclass(frozen=True)
class Notice:
    """One implicit step taken by an operation."""
    kind: NoticeKind
    dimension: str
    operand: Optional[str] = None
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to serializable dict."""
        return {
            'kind': self.kind.value,
            'dimension': self.dimension,
            'operand': self.operand,
            'detail': self.detail,
        }


def emit(
    kind: NoticeKind,
    dimension: str,
    operand: Optional[str] = None,
    detail: str = "",
) -> Notice:
    """Create a notice and log it."""
    notice = Notice(kind=kind, dimension=dimension, operand=operand, detail=detail)
    if operand:
        logger.info(f"{kind.value}: dimension '{dimension}' of {operand}: {detail}")
    else:
        logger.info(f"{kind.value}: dimension '{dimension}': {detail}")
    return notice
