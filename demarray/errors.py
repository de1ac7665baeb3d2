"""
Errors raised by demarray operations.

Every error names the dimension(s) at fault in ``.dimensions`` so callers
can react without parsing messages. Operations never return partial
results: they either complete or raise one of these.
"""

from typing import Iterable, Tuple, Union


class DemographicArrayError(ValueError):
    """Base class. ``dimensions`` holds the offending dimension names."""

    def __init__(self, message: str, dimensions: Union[str, Iterable[str], None] = None):
        super().__init__(message)
        if dimensions is None:
            dimensions = ()
        elif isinstance(dimensions, str):
            dimensions = (dimensions,)
        self.dimensions: Tuple[str, ...] = tuple(dimensions)


class ParseError(DemographicArrayError):
    """Labels do not fit the grammar or invariants of their dimscale."""


class AmbiguousDimscaleError(DemographicArrayError):
    """Labels could be read as Points or Intervals; an override is required."""


class IncompatibleDimtypeError(DemographicArrayError):
    """Dimtype does not permit the dimscale, or paired dimensions disagree."""


class IncompatibleDimscaleError(DemographicArrayError):
    """Two same-named dimensions differ in dimtype or dimscale."""


class MismatchedDimensionsError(DemographicArrayError):
    """Operands do not share the dimensions or labels an operation needs."""


class EmptyIntersectionError(DemographicArrayError):
    """A shared dimension has no labels in common between operands."""


class MissingWeightsError(DemographicArrayError):
    """Values were aggregated without weights."""


class NonMonotonicBindError(DemographicArrayError):
    """Bound Points/Intervals/Quantiles would not be strictly increasing."""


class NonContiguousIntervalsError(DemographicArrayError):
    """An Intervals dimension would acquire a gap between categories."""


class EmptyResultError(DemographicArrayError):
    """A selection left a dimension with no labels."""
