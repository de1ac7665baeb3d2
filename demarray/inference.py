"""
Dimscale Inference
==================
Turns a dimension name and its raw labels into a validated Dimension.

Dimtype comes from the caller or from the name (see defaults.yaml).
Dimscale comes from the caller's override or is guessed from the labels:

    age          interval notation          → Intervals
                 consecutive bare integers  → Intervals + default_assumed notice
                 other numbers / dates      → Points
    time,cohort  interval notation          → Intervals
                 consecutive bare integers  → AmbiguousDimscaleError
                 other numbers / dates      → Points
    sex          female / male (any case)   → Sexes
    triangle     Lower / Upper (any case)   → Triangles
    iterations   1..n                       → Iterations
    quantiles    probabilities in (0, 1)    → Quantiles
    anything else                           → Categories

Raw labels may arrive in any order. Numeric dimscales are sorted and the
permutation is returned so the caller can reorder its data to match.

Usage:
    from demarray.inference import infer_dimension
    inferred = infer_dimension('age', ['5-9', '0-4', '10+'])
    inferred.dimension.categories   # → ('0-4', '5-9', '10+')
    inferred.order                  # → (1, 0, 2)
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from demarray import config
from demarray.dimensions import (
    COMPATIBILITY,
    Dimension,
    Dimscale,
    Dimtype,
    as_dimscale,
    as_dimtype,
    check_compatible,
    validate,
)
from demarray.errors import AmbiguousDimscaleError, ParseError
from demarray.labels import (
    INTERVAL_FORMS,
    LabelForm,
    as_interval,
    as_point,
    breaks_from_intervals,
    parse_iteration,
    parse_label,
    parse_quantile,
)
from demarray.notices import Notice, NoticeKind, emit


TIME_LIKE = frozenset({Dimtype.AGE, Dimtype.TIME, Dimtype.COHORT})


@dataclass(frozen=True)
class Inferred:
    """Result of inference for one dimension."""
    dimension: Dimension
    order: Tuple[int, ...]             # raw position of each canonical category
    notice: Optional[Notice] = None


def infer_dimtype(name: str) -> Dimtype:
    """
    Dimtype from a dimension name: exact names first, then pair suffixes,
    otherwise 'state'.
    """
    key = name.lower()
    names = config.get('inference.dimtype_names', {})
    if key in names:
        return Dimtype(names[key])
    for suffix, dimtype in config.get('inference.dimtype_suffixes', {}).items():
        if key.endswith(suffix):
            return Dimtype(dimtype)
    return Dimtype.STATE


def infer_dimension(
    name: str,
    labels: Sequence[Any],
    dimtype: Union[str, Dimtype, None] = None,
    dimscale: Union[str, Dimscale, None] = None,
) -> Inferred:
    """
    Infer and validate one dimension.

    Args:
        name: Dimension name.
        labels: Raw labels, in the order the data holds them.
        dimtype: Declared dimtype. Inferred from the name when None.
        dimscale: Override. When given, no guessing takes place.

    Returns:
        Inferred(dimension, order, notice)

    Raises:
        ParseError, AmbiguousDimscaleError, IncompatibleDimtypeError
    """
    labels = list(labels)
    dimtype = as_dimtype(dimtype) if dimtype is not None else infer_dimtype(name)

    if dimscale is not None:
        dimscale = as_dimscale(dimscale)
        check_compatible(name, dimtype, dimscale)
        return parse_as(name, dimtype, dimscale, labels)

    if dimtype in TIME_LIKE:
        return _guess_time_like(name, dimtype, labels)

    (scale,) = COMPATIBILITY[dimtype]
    return parse_as(name, dimtype, scale, labels)


def parse_as(
    name: str,
    dimtype: Dimtype,
    dimscale: Dimscale,
    labels: List[Any],
) -> Inferred:
    """Read raw labels under a known dimscale."""
    if dimscale is Dimscale.INTERVALS:
        intervals = []
        for label in labels:
            iv = as_interval(parse_label(label))
            if iv is None:
                raise ParseError(
                    f"Label '{label}' of dimension '{name}' cannot be read as an interval",
                    name,
                )
            intervals.append(iv)
        if not intervals:
            raise ParseError(f"Dimension '{name}' has no labels", name)
        breaks, order = breaks_from_intervals(name, intervals)
        return Inferred(validate(name, dimtype, dimscale, breaks), tuple(order))

    if dimscale in (Dimscale.POINTS, Dimscale.ITERATIONS, Dimscale.QUANTILES):
        reader = {
            Dimscale.POINTS: lambda v: as_point(parse_label(v)),
            Dimscale.ITERATIONS: parse_iteration,
            Dimscale.QUANTILES: parse_quantile,
        }[dimscale]
        values = []
        for label in labels:
            value = reader(label)
            if value is None:
                raise ParseError(
                    f"Label '{label}' of dimension '{name}' cannot be read as "
                    f"{dimscale.value}",
                    name,
                )
            values.append(value)
        order = sorted(range(len(values)), key=lambda i: values[i])
        ordered = [values[i] for i in order]
        return Inferred(validate(name, dimtype, dimscale, ordered), tuple(order))

    dimension = validate(name, dimtype, dimscale, labels)
    return Inferred(dimension, tuple(range(len(labels))))


def _guess_time_like(name: str, dimtype: Dimtype, labels: List[Any]) -> Inferred:
    parsed = [parse_label(label) for label in labels]
    bad = [label for label, p in zip(labels, parsed) if p is None]
    if bad:
        raise ParseError(f"Cannot parse labels {bad} of dimension '{name}'", name)
    if not parsed:
        raise ParseError(f"Dimension '{name}' has no labels", name)

    forms = {p.form for p in parsed}

    if forms & INTERVAL_FORMS:
        return parse_as(name, dimtype, Dimscale.INTERVALS, labels)

    if forms == {LabelForm.INTEGER}:
        values = sorted(p.lower for p in parsed)
        consecutive = all(b - a == 1 for a, b in zip(values, values[1:]))
        if consecutive:
            if dimtype is Dimtype.AGE:
                inferred = parse_as(name, dimtype, Dimscale.INTERVALS, labels)
                notice = emit(
                    NoticeKind.DEFAULT_ASSUMED,
                    name,
                    detail="consecutive integer labels read as single-year "
                           "intervals [a, a+1)",
                )
                return Inferred(inferred.dimension, inferred.order, notice)
            raise AmbiguousDimscaleError(
                f"Labels of dimension '{name}' are consecutive integers and could be "
                f"Points or Intervals; pass dimscale='Points' or dimscale='Intervals'",
                name,
            )

    check_compatible(name, dimtype, Dimscale.POINTS)
    return parse_as(name, dimtype, Dimscale.POINTS, labels)
