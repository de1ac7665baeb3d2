"""
Bind Engine
===========
Concatenates arrays along one dimension.

All operands must be the same variant and share every dimension. Off the
``along`` dimension the label sets must be identical (order may differ;
operands are reordered to the first). Along it:

    Categories, Sexes, Triangles   labels pairwise disjoint
    Points, Quantiles              concatenation strictly increasing
    Intervals                      each operand starts where the last ended
    Iterations                     renumbered 1..n

A sex dimension split by subset into one-label state dimensions comes
back as sex once both labels are bound again.

Usage:
    from demarray.bind import dbind
    both = dbind(young, old, along='age')
"""

from typing import List

import numpy as np

from demarray import config
from demarray.array import DemographicArray
from demarray.dimensions import ArrayMetadata, Dimension, Dimscale, Dimtype, validate
from demarray.errors import (
    IncompatibleDimscaleError,
    MismatchedDimensionsError,
    NonContiguousIntervalsError,
    NonMonotonicBindError,
)
from demarray.inference import infer_dimtype
from demarray.labels import format_interval, format_number


def dbind(*arrays: DemographicArray, along: str) -> DemographicArray:
    """
    Bind two or more arrays along a dimension, in the order given.

    Raises:
        TypeError: operands mix Counts and Values.
        MismatchedDimensionsError: dimension names or off-along labels
            differ, or along labels overlap.
        IncompatibleDimscaleError: along dimension differs in
            dimtype/dimscale.
        NonMonotonicBindError: Points/Intervals/Quantiles out of order.
        NonContiguousIntervalsError: gap between bound Intervals.
    """
    if len(arrays) < 2:
        raise ValueError("dbind needs at least two arrays")
    first = arrays[0]
    cls = type(first)
    for a in arrays[1:]:
        if type(a) is not cls:
            raise TypeError(
                f"Cannot bind {cls.__name__} with {type(a).__name__}; coerce first"
            )

    for a in arrays:
        if along not in a.names:
            raise MismatchedDimensionsError(
                f"Dimension '{along}' missing from an operand (dimensions {list(a.names)})",
                along,
            )
        if set(a.names) != set(first.names):
            diff = sorted(set(a.names) ^ set(first.names))
            raise MismatchedDimensionsError(
                f"Operands have different dimensions: {diff}",
                diff,
            )

    ref_along = first.dimension(along)
    datas = []
    for a in arrays:
        dim = a.dimension(along)
        if dim.dimtype is not ref_along.dimtype or dim.dimscale is not ref_along.dimscale:
            raise IncompatibleDimscaleError(
                f"Dimension '{along}' is {dim.dimtype.value}/{dim.dimscale.value} in one "
                f"operand but {ref_along.dimtype.value}/{ref_along.dimscale.value} in another",
                along,
            )
        data = np.asarray(a.data)
        for name in first.names:
            if name == along:
                continue
            ref = first.dimension(name)
            other = a.dimension(name)
            if other.dimtype is not ref.dimtype or other.dimscale is not ref.dimscale \
                    or set(other.keys) != set(ref.keys):
                raise MismatchedDimensionsError(
                    f"Dimension '{name}' differs between operands: "
                    f"{list(ref.categories)} vs {list(other.categories)}",
                    name,
                )
            if other.keys != ref.keys:
                perm = [other.keys.index(k) for k in ref.keys]
                data = np.take(data, perm, axis=a.metadata.axis(name))
        data = np.transpose(data, [a.metadata.axis(n) for n in first.names])
        datas.append(data)

    new_along = _bind_labels(along, [a.dimension(along) for a in arrays])
    dims = tuple(new_along if d.name == along else d for d in first.dimensions)
    data = np.concatenate(datas, axis=first.metadata.axis(along))
    return cls(data, ArrayMetadata(dims))


def _bind_labels(name: str, dims: List[Dimension]) -> Dimension:
    ref = dims[0]
    scale = ref.dimscale

    if scale is Dimscale.ITERATIONS:
        total = sum(d.size for d in dims)
        return validate(name, ref.dimtype, scale, range(1, total + 1))

    if scale is Dimscale.INTERVALS:
        breaks = list(ref.labels)
        for d in dims[1:]:
            last, start = breaks[-1], d.labels[0]
            if start < last:
                raise NonMonotonicBindError(
                    f"Intervals of dimension '{name}' overlap: {format_interval(start, d.labels[1])} "
                    f"starts before {format_number(last)}",
                    name,
                )
            if start > last:
                raise NonContiguousIntervalsError(
                    f"Intervals of dimension '{name}' leave a gap between "
                    f"{format_number(last)} and {format_number(start)}",
                    name,
                )
            breaks.extend(d.labels[1:])
        return validate(name, ref.dimtype, scale, breaks)

    labels = [label for d in dims for label in d.labels]

    if scale in (Dimscale.POINTS, Dimscale.QUANTILES):
        if any(a >= b for a, b in zip(labels, labels[1:])):
            raise NonMonotonicBindError(
                f"Bound {scale.value.lower()} of dimension '{name}' are not strictly "
                f"increasing: {labels}",
                name,
            )
        return validate(name, ref.dimtype, scale, labels)

    dups = sorted({str(v) for v in labels if labels.count(v) > 1})
    if dups:
        raise MismatchedDimensionsError(
            f"Operands share labels {dups} of dimension '{name}'",
            name,
        )
    if _is_split_sex(name, ref, labels):
        return validate(name, Dimtype.SEX, Dimscale.SEXES, labels)
    return validate(name, ref.dimtype, scale, labels)


def _is_split_sex(name: str, ref: Dimension, labels: List) -> bool:
    """A sex dimension subset to one label each, bound back together."""
    if ref.dimtype is not Dimtype.STATE or infer_dimtype(name) is not Dimtype.SEX:
        return False
    sexes = [s.lower() for s in config.get('inference.sex_labels', ['female', 'male'])]
    lowered = [str(v).lower() for v in labels]
    return len(lowered) == len(sexes) and set(lowered) == set(sexes)
