"""
Label Filters
=============
Small composable expressions evaluated against one dimension's own
labels. Structure only: each node turns a Dimension into a boolean mask.

    In(['0-4', '5-9'])          listed labels (any notation the dimscale reads)
    lt(65), ge(15), between(15, 49)
                                numeric comparisons (Points, Intervals,
                                Iterations, Quantiles)
    Where(fn)                   fn(categories) → mask or retained labels

    ge(15) & lt(50)             And
    In(['a']) | In(['b'])       Or
    ~In(['Upper'])              Not

Intervals compare as whole categories: lt(v)/le(v) keep intervals whose
upper bound is at most v, gt(v)/ge(v) keep intervals whose lower bound is
at least v, eq(v) keeps the interval containing v.
"""

import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, Sequence, Tuple

import numpy as np

from demarray.dimensions import NUMERIC_SCALES, Dimension, Dimscale
from demarray.errors import IncompatibleDimscaleError


class Filter:
    """Base class for filter expressions."""

    def mask(self, dimension: Dimension) -> np.ndarray:
        raise NotImplementedError

    def __and__(self, other: 'Filter') -> 'Filter':
        return And(self, other)

    def __or__(self, other: 'Filter') -> 'Filter':
        return Or(self, other)

    def __invert__(self) -> 'Filter':
        return Not(self)


@dataclass(frozen=True)
class In(Filter):
    """Keep the listed labels. Unknown labels raise ParseError."""
    labels: Tuple[Any, ...]

    def __init__(self, labels: Sequence[Any]):
        if isinstance(labels, (str, bytes)) or not hasattr(labels, '__iter__'):
            labels = [labels]
        object.__setattr__(self, 'labels', tuple(labels))

    def mask(self, dimension: Dimension) -> np.ndarray:
        out = np.zeros(dimension.size, dtype=bool)
        for label in self.labels:
            out[dimension.index_of(label)] = True
        return out


COMPARISONS = {
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
    '==': operator.eq,
    '!=': operator.ne,
}


@dataclass(frozen=True)
class Compare(Filter):
    """Numeric comparison of each category against a value."""
    op: str
    value: float

    def __post_init__(self):
        if self.op not in COMPARISONS:
            raise ValueError(f"Unknown comparison: {self.op}. Available: {list(COMPARISONS)}")

    def mask(self, dimension: Dimension) -> np.ndarray:
        if dimension.dimscale not in NUMERIC_SCALES:
            raise IncompatibleDimscaleError(
                f"Cannot compare labels of dimension '{dimension.name}' "
                f"(dimscale '{dimension.dimscale.value}') with a number",
                dimension.name,
            )
        v = float(self.value)
        if dimension.dimscale is Dimscale.INTERVALS:
            return np.array([self._interval(lo, hi, v) for lo, hi in dimension.bounds],
                            dtype=bool)
        func = COMPARISONS[self.op]
        return np.array([func(float(x), v) for x in dimension.labels], dtype=bool)

    def _interval(self, lo: float, hi: float, v: float) -> bool:
        if self.op in ('<', '<='):
            return hi <= v
        if self.op in ('>', '>='):
            return lo >= v
        inside = lo <= v < hi or (math.isinf(hi) and v >= lo)
        return inside if self.op == '==' else not inside


@dataclass(frozen=True)
class Where(Filter):
    """
    Callback filter. fn receives the dimension's categories and returns
    either one boolean per category or the labels to keep.
    """
    fn: Callable[[Tuple[str, ...]], Any]

    def mask(self, dimension: Dimension) -> np.ndarray:
        result = list(self.fn(dimension.categories))
        if len(result) == dimension.size and all(isinstance(r, (bool, np.bool_)) for r in result):
            return np.array(result, dtype=bool)
        return In(result).mask(dimension)


@dataclass(frozen=True)
class And(Filter):
    left: Filter
    right: Filter

    def mask(self, dimension: Dimension) -> np.ndarray:
        return self.left.mask(dimension) & self.right.mask(dimension)


@dataclass(frozen=True)
class Or(Filter):
    left: Filter
    right: Filter

    def mask(self, dimension: Dimension) -> np.ndarray:
        return self.left.mask(dimension) | self.right.mask(dimension)


@dataclass(frozen=True)
class Not(Filter):
    operand: Filter

    def mask(self, dimension: Dimension) -> np.ndarray:
        return ~self.operand.mask(dimension)


def lt(value: float) -> Compare:
    return Compare('<', value)


def le(value: float) -> Compare:
    return Compare('<=', value)


def gt(value: float) -> Compare:
    return Compare('>', value)


def ge(value: float) -> Compare:
    return Compare('>=', value)


def eq(value: float) -> Compare:
    return Compare('==', value)


def ne(value: float) -> Compare:
    return Compare('!=', value)


def between(lower: float, upper: float) -> Filter:
    """lower <= category <= upper (intervals: lying within [lower, upper])."""
    return ge(lower) & le(upper)
