"""
Collapse Engine
===============
Reduces dimensions of a demographic array.

    Counts   summed (or another aggregator) over the removed dimensions
    Values   weighted mean, weights a Counts array and mandatory

Weights are prepared before any Values aggregation:
    - weight dimensions absent from the values are summed out
      (weights_collapsed notice)
    - values dimensions absent from the weights repeat the weights
    - shared dimensions are trimmed to their common labels, as in
      arithmetic (trimmed notice)
    - a zero total weight gives NaN (undefined_mean notice), never 0

Entry points:
    collapse_dimension    remove dimensions / keep a margin
    collapse_intervals    merge adjacent intervals
    collapse_categories   merge categories (both members of a pair)
    collapse_origin_dest  origin/destination flows → in, out or net
    collapse_iterations   iterations → quantiles or named summaries
"""

import math
import numbers
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from demarray import config
from demarray.align import align_pair
from demarray.array import Counts, DemographicArray, Values
from demarray.dimensions import (
    ArrayMetadata,
    Dimension,
    Dimscale,
    Dimtype,
    pair_base,
    pair_partner,
    validate,
)
from demarray.errors import (
    IncompatibleDimscaleError,
    MismatchedDimensionsError,
    MissingWeightsError,
    ParseError,
)
from demarray.notices import Notice, NoticeKind, emit


AGGREGATORS: Dict[str, Callable] = {
    'sum': np.sum,
    'mean': np.mean,
    'median': np.median,
    'min': np.min,
    'max': np.max,
}

Names = Union[str, Sequence[str]]


# =================================================================
# Helpers
# =================================================================

def _as_list(names: Names) -> List[str]:
    return [names] if isinstance(names, str) else list(names)


def _removed_names(x: DemographicArray, dimension: Optional[Names],
                   margin: Optional[Names]) -> List[str]:
    if (dimension is None) == (margin is None):
        raise ValueError("Specify exactly one of 'dimension' or 'margin'")
    if dimension is not None:
        names = _as_list(dimension)
        for name in names:
            x.metadata.axis(name)
        return names
    keep = _as_list(margin)
    for name in keep:
        x.metadata.axis(name)
    return [n for n in x.names if n not in keep]


def _scalar_or_array(result: DemographicArray):
    if result.metadata.ndim == 0:
        return float(result.data)
    return result


def sum_out(x: Counts, names: Sequence[str]) -> Counts:
    """Sum Counts over dimensions. Zero dimensions left is allowed."""
    axes = tuple(x.metadata.axis(n) for n in names)
    return Counts(np.sum(x.data, axis=axes), x.metadata.drop(names))


def prepare_weights(
    x: Values,
    weights: Optional[Counts],
    strict: bool = False,
) -> Tuple[Values, np.ndarray, List[Notice]]:
    """
    Make weights conformant with values.

    Values dimensions the weights lack get the same weight in every
    category.

    Returns:
        (values, weight_data, notices): values possibly trimmed, weights
        shaped like values.

    Raises:
        MissingWeightsError: weights is None.
        TypeError: weights is not Counts.
    """
    if weights is None:
        raise MissingWeightsError(
            f"Values need Counts weights to be aggregated (dimensions {list(x.names)})",
            x.names,
        )
    if not isinstance(weights, Counts):
        raise TypeError(f"weights must be Counts, not {type(weights).__name__}")

    notices: List[Notice] = []
    extra = [n for n in weights.names if n not in x.names]
    if extra:
        weights = sum_out(weights, extra)
        for name in extra:
            notices.append(emit(
                NoticeKind.WEIGHTS_COLLAPSED,
                name,
                operand='weights',
                detail="summed out of weights: not a dimension of the values",
            ))

    missing = tuple(d for d in x.dimensions if d.name not in weights.names)
    if missing:
        w = np.asarray(weights.data)
        w = w.reshape(w.shape + (1,) * len(missing))
        w = np.broadcast_to(w, weights.shape + tuple(d.size for d in missing))
        weights = Counts(w, ArrayMetadata(weights.dimensions + missing))

    x_data, w_data, metadata, trimmed = align_pair(
        x, weights, strict=strict, operands=('x', 'weights'),
    )
    notices.extend(trimmed)
    return Values(x_data, metadata), w_data, notices


def _weighted(num: np.ndarray, den: np.ndarray, label: str,
              notices: List[Notice]) -> np.ndarray:
    with np.errstate(divide='ignore', invalid='ignore'):
        out = np.true_divide(num, den)
    undefined = den == 0
    if np.any(undefined):
        out = np.where(undefined, np.nan, out)
        notices.append(emit(
            NoticeKind.UNDEFINED_MEAN,
            label,
            detail=f"{int(np.sum(undefined))} cell(s) with zero total weight set to NaN",
        ))
    return out


def _sum_groups(data: np.ndarray, axis: int, groups: List[List[int]]) -> np.ndarray:
    parts = [np.take(data, g, axis=axis).sum(axis=axis) for g in groups]
    return np.stack(parts, axis=axis)


Planner = Callable[[Dimension], Tuple[List[List[int]], Dimension]]


def _regroup(
    x: DemographicArray,
    names: List[str],
    planner: Planner,
    weights: Optional[Counts],
) -> DemographicArray:
    """
    Merge categories of each named dimension into groups.
    planner(dimension) → (old indices per new category, new dimension).
    """
    notices: List[Notice] = []
    if isinstance(x, Values):
        x, w, notices = prepare_weights(x, weights)
        num = x.data * w
        den = w
    else:
        if weights is not None:
            raise ValueError("weights apply to Values only; Counts are summed")
        num = np.asarray(x.data)
        den = None

    dims = list(x.dimensions)
    regrouped = []
    for name in names:
        if name not in x.names:
            continue
        axis = x.metadata.axis(name)
        groups, new_dim = planner(x.dimension(name))
        num = _sum_groups(num, axis, groups)
        if den is not None:
            den = _sum_groups(den, axis, groups)
        dims[axis] = new_dim
        regrouped.append(name)

    metadata = ArrayMetadata(tuple(dims))
    if den is None:
        return Counts(num, metadata)
    data = _weighted(num, den, ', '.join(regrouped), notices)
    return Values(data, metadata, notices)


# =================================================================
# Dimensions
# =================================================================

def collapse_dimension(
    x: DemographicArray,
    dimension: Optional[Names] = None,
    margin: Optional[Names] = None,
    weights: Optional[Counts] = None,
    aggregator: Union[str, Callable, None] = None,
):
    """
    Remove dimensions, or keep only a margin.

    Args:
        x: Counts or Values.
        dimension: Name(s) to remove.
        margin: Name(s) to keep (alternative to dimension).
        weights: Counts weights. Required for Values, refused for Counts.
        aggregator: Counts only: 'sum' (default), 'mean', 'median', 'min',
            'max', or a callable f(data, axis=tuple). Anything but 'sum'
            returns Values.

    Returns:
        New array, or a float when no dimensions remain.
    """
    names = _removed_names(x, dimension, margin)

    if isinstance(x, Counts):
        if weights is not None:
            raise ValueError("weights apply to Values only; Counts are summed")
        agg = aggregator or 'sum'
        if isinstance(agg, str):
            if agg not in AGGREGATORS:
                raise ValueError(f"Unknown aggregator: {agg}. Available: {list(AGGREGATORS)}")
            func = AGGREGATORS[agg]
        else:
            func = agg
        axes = tuple(x.metadata.axis(n) for n in names)
        data = func(np.asarray(x.data), axis=axes)
        cls = Counts if agg == 'sum' else Values
        return _scalar_or_array(cls(data, x.metadata.drop(names)))

    if aggregator not in (None, 'mean'):
        raise ValueError("Values are collapsed by weighted mean only")
    xv, w, notices = prepare_weights(x, weights)
    names = [n for n in names if n in xv.names]
    axes = tuple(xv.metadata.axis(n) for n in names)
    num = np.sum(xv.data * w, axis=axes)
    den = np.sum(w, axis=axes)
    data = _weighted(num, den, ', '.join(names), notices)
    return _scalar_or_array(Values(data, xv.metadata.drop(names), notices))


def collapse_intervals(
    x: DemographicArray,
    dimension: str,
    breaks: Optional[Sequence[float]] = None,
    width: Optional[float] = None,
    weights: Optional[Counts] = None,
) -> DemographicArray:
    """
    Merge adjacent intervals.

    Args:
        dimension: An Intervals dimension.
        breaks: New breakpoints, each an existing breakpoint. The outer
            limits of the dimension are always kept.
        width: Alternative to breaks: equal steps from the first finite
            breakpoint.
        weights: Counts weights, for Values.

    Raises:
        ParseError: a new breakpoint is not an existing one.
    """
    dim = x.dimension(dimension)
    if dim.dimscale is not Dimscale.INTERVALS:
        raise IncompatibleDimscaleError(
            f"Dimension '{dimension}' has dimscale '{dim.dimscale.value}', not Intervals",
            dimension,
        )
    if (breaks is None) == (width is None):
        raise ValueError("Specify exactly one of 'breaks' or 'width'")

    if width is not None:
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        finite = [b for b in dim.labels if math.isfinite(b)]
        steps = int(math.floor((finite[-1] - finite[0]) / width))
        requested = [finite[0] + k * width for k in range(steps + 1)]
    else:
        requested = [float(b) for b in breaks]

    def planner(d: Dimension):
        old = list(d.labels)
        new = sorted(set(requested) | {old[0], old[-1]})
        bad = [b for b in new if b not in old]
        if bad:
            raise ParseError(
                f"Breaks {bad} are not breakpoints of dimension '{d.name}' "
                f"(existing: {old})",
                d.name,
            )
        bounds = d.bounds
        groups = [
            [i for i, (lo, hi) in enumerate(bounds) if lo >= a and hi <= b]
            for a, b in zip(new, new[1:])
        ]
        return groups, validate(d.name, d.dimtype, d.dimscale, new)

    return _regroup(x, [dimension], planner, weights)


def collapse_categories(
    x: DemographicArray,
    dimension: str,
    mapping: Mapping[str, str],
    weights: Optional[Counts] = None,
) -> DemographicArray:
    """
    Merge categories: each old label in mapping becomes its new label,
    unmapped labels stay. New categories appear in first-seen order.
    Applied to both members of an origin/destination or parent/child pair.
    """
    dim = x.dimension(dimension)
    if dim.dimscale is not Dimscale.CATEGORIES:
        raise IncompatibleDimscaleError(
            f"Dimension '{dimension}' has dimscale '{dim.dimscale.value}', not Categories",
            dimension,
        )
    unknown = [k for k in mapping if k not in dim.categories]
    if unknown:
        raise ParseError(f"Labels {unknown} are not labels of dimension '{dimension}'", dimension)

    names = [dimension]
    partner = pair_partner(x.dimensions, dim)
    if partner is not None:
        names.append(partner.name)

    def planner(d: Dimension):
        targets = [str(mapping.get(c, c)) for c in d.categories]
        new_labels: List[str] = []
        for t in targets:
            if t not in new_labels:
                new_labels.append(t)
        groups = [[i for i, t in enumerate(targets) if t == label] for label in new_labels]
        return groups, validate(d.name, d.dimtype, d.dimscale, new_labels)

    return _regroup(x, names, planner, weights)


def collapse_origin_dest(
    x: Counts,
    base: Optional[str] = None,
    to: str = 'net',
) -> Counts:
    """
    Turn an origin/destination pair into flows on one 'state' dimension
    named after the pair's base ('reg_orig', 'reg_dest' → 'reg').

        out   moves leaving each category
        in    moves arriving in each category
        net   in - out

    Stayers (origin == destination) are not moves and are excluded.
    """
    if not isinstance(x, Counts):
        raise TypeError(f"collapse_origin_dest needs Counts, not {type(x).__name__}")
    if to not in ('in', 'out', 'net'):
        raise ValueError(f"Unknown direction: {to}. Available: ['in', 'out', 'net']")

    origins = [
        d for d in x.dimensions
        if d.dimtype is Dimtype.ORIGIN and pair_partner(x.dimensions, d) is not None
    ]
    if base is not None:
        origins = [d for d in origins if pair_base(d) == base]
    if not origins:
        raise KeyError(f"No origin/destination pair{'' if base is None else f' for {base}'}")
    if len(origins) > 1:
        raise ValueError(
            f"Several origin/destination pairs: {[pair_base(d) for d in origins]}. Pass base."
        )

    orig = origins[0]
    dest = pair_partner(x.dimensions, orig)
    io = x.metadata.axis(orig.name)
    idest = x.metadata.axis(dest.name)

    perm = [dest.categories.index(c) for c in orig.categories]
    data = np.take(np.asarray(x.data), perm, axis=idest)
    moved = np.moveaxis(data, [io, idest], [-2, -1])
    moves = moved * (1 - np.eye(orig.size))
    outflow = moves.sum(axis=-1)
    inflow = moves.sum(axis=-2)
    flows = {'out': outflow, 'in': inflow, 'net': inflow - outflow}[to]

    others = [d for d in x.dimensions if d.name not in (orig.name, dest.name)]
    pos = [d.name for d in x.dimensions if d.name != dest.name].index(orig.name)
    flows = np.moveaxis(flows, -1, pos)
    new_dim = validate(pair_base(orig), Dimtype.STATE, Dimscale.CATEGORIES, orig.categories)
    dims = others[:pos] + [new_dim] + others[pos:]
    return Counts(flows, ArrayMetadata(tuple(dims)))


# =================================================================
# Iterations
# =================================================================

def collapse_iterations(
    x: DemographicArray,
    prob: Optional[Sequence[float]] = None,
    FUN: Optional[Callable[[np.ndarray], Any]] = None,
    name: Optional[str] = None,
) -> DemographicArray:
    """
    Summarise the iterations dimension. The Counts/Values variant is kept.

    Args:
        prob: Quantile probabilities. Default config 'collapse.quantile_probs'.
        FUN: Alternative summary of one iteration vector. Returning a
            mapping {output name: value} gives a Categories dimension of
            those names; returning a number drops the dimension.
        name: Name of the new dimension. Defaults 'quantile' / 'summary'.

    Returns:
        Array with the iterations dimension replaced in place.
    """
    iterations = [d for d in x.dimensions if d.dimscale is Dimscale.ITERATIONS]
    if not iterations:
        raise MismatchedDimensionsError(
            f"Array has no iterations dimension (dimensions {list(x.names)})",
            x.names,
        )
    dim = iterations[0]
    axis = x.metadata.axis(dim.name)
    dims = list(x.dimensions)
    cls = type(x)

    if FUN is None:
        probs = list(prob) if prob is not None else config.get('collapse.quantile_probs')
        qname = name or config.get('collapse.quantile_name', 'quantile')
        new_dim = validate(qname, Dimtype.QUANTILES, Dimscale.QUANTILES, probs)
        q = np.quantile(np.asarray(x.data), list(new_dim.labels), axis=axis)
        dims[axis] = new_dim
        return cls(np.moveaxis(q, 0, axis), ArrayMetadata(tuple(dims)))

    if prob is not None:
        raise ValueError("Specify 'prob' or 'FUN', not both")

    moved = np.moveaxis(np.asarray(x.data), axis, -1)
    lead = moved.shape[:-1]
    results = [FUN(row) for row in moved.reshape(-1, dim.size)]

    if all(isinstance(r, numbers.Real) for r in results):
        del dims[axis]
        data = np.array(results, dtype=float).reshape(lead)
        return cls(data, ArrayMetadata(tuple(dims)))

    if not all(isinstance(r, Mapping) for r in results):
        raise TypeError("FUN must return a number or a mapping of named outputs")
    keys = list(results[0])
    if any(list(r) != keys for r in results):
        raise ValueError("FUN must return the same named outputs for every cell")
    table = np.array([[r[k] for k in keys] for r in results], dtype=float)
    data = np.moveaxis(table.reshape(lead + (len(keys),)), -1, axis)
    sname = name or config.get('collapse.summary_name', 'summary')
    dims[axis] = validate(sname, Dimtype.STATE, Dimscale.CATEGORIES, keys)
    return cls(data, ArrayMetadata(tuple(dims)))
