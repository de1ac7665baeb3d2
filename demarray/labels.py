"""
Label Grammars
==============
Parsing and canonical formatting of dimension labels.

Interval notation (lower bound inclusive, upper exclusive):
    "10-19"     → [10, 20)      integer range, inclusive notation
    "90+"       → [90, inf)     open above
    "<0"        → [-inf, 0)     open below
    "[0.5,1)"   → [0.5, 1)      explicit half-open, decimals allowed
    "7"         → [7, 8)        bare integer, width-one interval

Point notation:
    "2008", "2008.5"            bare numbers
    "2008-07-01"                ISO dates, as decimal years

Quantile notation:
    "2.5%", "0.025"

Usage:
    from demarray.labels import parse_label, as_interval
    as_interval(parse_label("10-19"))
    # → (10.0, 20.0)
"""

import math
import numbers
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from demarray.errors import ParseError


class LabelForm(Enum):
    """Which grammar a raw label matched."""
    RANGE = "range"
    OPEN_UPPER = "open_upper"
    OPEN_LOWER = "open_lower"
    HALF_OPEN = "half_open"
    INTEGER = "integer"
    NUMBER = "number"
    DATE = "date"


INTERVAL_FORMS = frozenset({
    LabelForm.RANGE,
    LabelForm.OPEN_UPPER,
    LabelForm.OPEN_LOWER,
    LabelForm.HALF_OPEN,
})


_NUM = r'-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?'

DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
RANGE_RE = re.compile(r'^(\d+)\s*-\s*(\d+)$')
OPEN_UPPER_RE = re.compile(rf'^({_NUM})\s*\+$')
OPEN_LOWER_RE = re.compile(rf'^<\s*({_NUM})$')
HALF_OPEN_RE = re.compile(rf'^\[\s*({_NUM}|-inf)\s*,\s*({_NUM}|inf)\s*\)$')
INTEGER_RE = re.compile(r'^-?\d+$')
NUMBER_RE = re.compile(rf'^{_NUM}$')
PERCENT_RE = re.compile(rf'^({_NUM})\s*%$')


@dataclass(frozen=True)
class ParsedLabel:
    """A raw label read under one grammar. Points have lower == upper."""
    form: LabelForm
    lower: float
    upper: float


def decimal_year(d: date) -> float:
    """Date as a fractional year: 2008-07-02 → 2008.5 (leap year)."""
    start = date(d.year, 1, 1)
    end = date(d.year + 1, 1, 1)
    return d.year + (d - start).days / (end - start).days


def parse_label(label: Any) -> Optional[ParsedLabel]:
    """
    Read one raw label. Returns None when no grammar matches.

    Integral numbers (including integer-valued floats) read as INTEGER,
    other numbers as NUMBER, dates as DATE. Strings go through the
    regex grammars above.
    """
    if isinstance(label, bool):
        return None
    if isinstance(label, date):
        v = decimal_year(label)
        return ParsedLabel(LabelForm.DATE, v, v)
    if isinstance(label, numbers.Integral):
        n = float(label)
        return ParsedLabel(LabelForm.INTEGER, n, n + 1)
    if isinstance(label, numbers.Real):
        v = float(label)
        if math.isnan(v):
            return None
        if v.is_integer():
            return ParsedLabel(LabelForm.INTEGER, v, v + 1)
        return ParsedLabel(LabelForm.NUMBER, v, v)

    text = str(label).strip()

    m = DATE_RE.match(text)
    if m:
        try:
            d = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None
        v = decimal_year(d)
        return ParsedLabel(LabelForm.DATE, v, v)

    m = RANGE_RE.match(text)
    if m:
        lo, hi = int(m.group(1)), int(m.group(2))
        if hi < lo:
            return None
        return ParsedLabel(LabelForm.RANGE, float(lo), float(hi + 1))

    m = OPEN_UPPER_RE.match(text)
    if m:
        return ParsedLabel(LabelForm.OPEN_UPPER, float(m.group(1)), math.inf)

    m = OPEN_LOWER_RE.match(text)
    if m:
        return ParsedLabel(LabelForm.OPEN_LOWER, -math.inf, float(m.group(1)))

    m = HALF_OPEN_RE.match(text)
    if m:
        lo, hi = float(m.group(1)), float(m.group(2))
        if not lo < hi:
            return None
        return ParsedLabel(LabelForm.HALF_OPEN, lo, hi)

    if INTEGER_RE.match(text):
        n = float(int(text))
        return ParsedLabel(LabelForm.INTEGER, n, n + 1)

    if NUMBER_RE.match(text):
        v = float(text)
        if v.is_integer():
            return ParsedLabel(LabelForm.INTEGER, v, v + 1)
        return ParsedLabel(LabelForm.NUMBER, v, v)

    return None


def as_interval(parsed: Optional[ParsedLabel]) -> Optional[Tuple[float, float]]:
    """(lower, upper) for interval-readable labels, else None."""
    if parsed is None:
        return None
    if parsed.form in INTERVAL_FORMS or parsed.form is LabelForm.INTEGER:
        return (parsed.lower, parsed.upper)
    return None


def as_point(parsed: Optional[ParsedLabel]) -> Optional[float]:
    """Scalar value for point-readable labels, else None."""
    if parsed is None:
        return None
    if parsed.form in (LabelForm.INTEGER, LabelForm.NUMBER, LabelForm.DATE):
        return parsed.lower
    return None


def parse_quantile(label: Any) -> Optional[float]:
    """Probability from "2.5%" or "0.025". None if unreadable."""
    if isinstance(label, bool):
        return None
    if isinstance(label, numbers.Real):
        return float(label)
    text = str(label).strip()
    m = PERCENT_RE.match(text)
    if m:
        return float(m.group(1)) / 100
    if NUMBER_RE.match(text):
        return float(text)
    return None


def parse_iteration(label: Any) -> Optional[int]:
    """Positive integer iteration number, else None."""
    parsed = parse_label(label)
    if parsed is None or parsed.form is not LabelForm.INTEGER:
        return None
    n = int(parsed.lower)
    return n if n >= 1 else None


def breaks_from_intervals(
    name: str,
    intervals: Sequence[Tuple[float, float]],
) -> Tuple[Tuple[float, ...], List[int]]:
    """
    Sort intervals and join them into breakpoints.

    Args:
        name: Dimension name, for error reporting.
        intervals: (lower, upper) pairs in raw order.

    Returns:
        (breaks, order) where order[i] is the raw position of the
        i-th interval in sorted order.

    Raises:
        ParseError: intervals overlap or leave a gap.
    """
    order = sorted(range(len(intervals)), key=lambda i: intervals[i][0])
    ordered = [intervals[i] for i in order]
    for (lo1, hi1), (lo2, hi2) in zip(ordered, ordered[1:]):
        if hi1 > lo2:
            raise ParseError(
                f"Intervals {format_interval(lo1, hi1)} and "
                f"{format_interval(lo2, hi2)} of dimension '{name}' overlap",
                name,
            )
        if hi1 < lo2:
            raise ParseError(
                f"Intervals of dimension '{name}' are not contiguous: gap "
                f"between {format_interval(lo1, hi1)} and {format_interval(lo2, hi2)}",
                name,
            )
    breaks = tuple([ordered[0][0]] + [hi for _, hi in ordered])
    return breaks, order


# =================================================================
# Formatting
# =================================================================

def _is_int(v: float) -> bool:
    return not math.isinf(v) and float(v).is_integer()


def format_number(v: float) -> str:
    """2008.0 → '2008', 2008.5 → '2008.5'."""
    v = float(v)
    if math.isinf(v):
        return 'inf' if v > 0 else '-inf'
    if v.is_integer():
        return str(int(v))
    return repr(v)


def format_interval(lower: float, upper: float, bare_single: bool = True) -> str:
    """
    Canonical label for [lower, upper). Inverse of parse_label.

    A width-one integer interval prints as a bare integer when bare_single,
    otherwise in explicit half-open form so it cannot read as a point.
    """
    if math.isinf(upper) and not math.isinf(lower):
        return f"{format_number(lower)}+"
    if math.isinf(lower) and not math.isinf(upper):
        return f"<{format_number(upper)}"
    if _is_int(lower) and _is_int(upper):
        if upper - lower == 1 and bare_single:
            return str(int(lower))
        if upper - lower == 1:
            return f"[{int(lower)},{int(upper)})"
        if lower >= 0:
            return f"{int(lower)}-{int(upper) - 1}"
    return f"[{format_number(lower)},{format_number(upper)})"


def format_quantile(p: float) -> str:
    """0.025 → '2.5%'."""
    return f"{p * 100:g}%"
