"""
Subset Engine
=============
Keeps the labels of one or more dimensions that satisfy a filter.
Conditions on different dimensions combine by AND. Original relative
order is kept; derived fields (interval breakpoints, iteration numbers)
are recomputed from what remains.

Usage:
    from demarray.filters import ge, lt
    from demarray.subset import subset, subset_labels

    adults = subset(popn, age=ge(15))
    working = subset(popn, {'age': ge(15) & lt(65), 'sex': ['Female']})
    south = subset_labels(popn, 'region', ['South', 'East'])
"""

from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np

from demarray.array import DemographicArray
from demarray.dimensions import ArrayMetadata
from demarray.errors import EmptyResultError
from demarray.filters import Filter, In


Condition = Union[Filter, Sequence[Any]]


def subset(
    x: DemographicArray,
    where: Optional[Mapping[str, Condition]] = None,
    **conditions: Condition,
) -> DemographicArray:
    """
    Keep the labels satisfying each condition.

    Args:
        x: Array to subset.
        where: {dimension name: Filter or list of labels}.
        **conditions: Same, as keyword arguments.

    Raises:
        KeyError: unknown dimension.
        ParseError: a listed label is not a label of its dimension.
        EmptyResultError: a condition keeps nothing.
        NonContiguousIntervalsError: kept intervals have a gap.
    """
    merged = dict(where or {})
    merged.update(conditions)

    data = np.asarray(x.data)
    dims = list(x.dimensions)
    for name, condition in merged.items():
        axis = x.metadata.axis(name)
        dim = dims[axis]
        filt = condition if isinstance(condition, Filter) else In(condition)
        keep = np.flatnonzero(filt.mask(dim))
        if keep.size == 0:
            raise EmptyResultError(f"No labels of dimension '{name}' satisfy {filt}", name)
        if keep.size == dim.size:
            continue
        dims[axis] = dim.take(keep)
        data = np.take(data, keep, axis=axis)

    return x._new(data, ArrayMetadata(tuple(dims)))


def subset_labels(
    x: DemographicArray,
    dimension: str,
    labels: Sequence[Any],
) -> DemographicArray:
    """Keep an explicit set of labels of one dimension."""
    return subset(x, {dimension: In(labels)})


def slab(
    x: DemographicArray,
    dimension: str,
    label: Any,
    drop: bool = True,
) -> DemographicArray:
    """
    The slice of x at one label. With drop, the dimension is removed.
    """
    axis = x.metadata.axis(dimension)
    dim = x.dimension(dimension)
    i = dim.index_of(label)
    if not drop:
        return subset(x, {dimension: In([label])})
    data = np.take(np.asarray(x.data), i, axis=axis)
    return x._new(data, x.metadata.drop([dimension]))
