"""
Dimension Model
===============
What kind of axis each dimension is (dimtype), how its labels are read
(dimscale), and the static table saying which dimscales each dimtype
permits.

    dimtype                                   permitted dimscales
    ---------------------------------------   -------------------
    age, time                                 Points, Intervals
    cohort                                    Intervals
    triangle                                  Triangles
    sex                                       Sexes
    state, origin, destination, parent,
    child                                     Categories
    iterations                                Iterations
    quantiles                                 Quantiles

Labels are stored per dimscale:
    Intervals    breakpoints, one more than the number of categories
    Points       strictly increasing scalars
    Iterations   1..n
    Quantiles    strictly increasing probabilities in (0, 1)
    others       distinct strings

Usage:
    from demarray.dimensions import validate
    dim = validate('age', 'age', 'Intervals', [0, 5, 10, float('inf')])
    dim.categories
    # → ('0-4', '5-9', '10+')
"""

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from demarray import config
from demarray.errors import (
    EmptyResultError,
    IncompatibleDimscaleError,
    IncompatibleDimtypeError,
    MismatchedDimensionsError,
    NonContiguousIntervalsError,
    ParseError,
)
from demarray.labels import (
    as_interval,
    as_point,
    format_interval,
    format_number,
    format_quantile,
    parse_iteration,
    parse_label,
    parse_quantile,
)


class Dimtype(Enum):
    """Semantic role of a dimension."""
    AGE = "age"
    TIME = "time"
    COHORT = "cohort"
    TRIANGLE = "triangle"
    SEX = "sex"
    STATE = "state"
    ORIGIN = "origin"
    DESTINATION = "destination"
    PARENT = "parent"
    CHILD = "child"
    ITERATIONS = "iterations"
    QUANTILES = "quantiles"


class Dimscale(Enum):
    """Value domain of a dimension's labels."""
    POINTS = "Points"
    INTERVALS = "Intervals"
    TRIANGLES = "Triangles"
    SEXES = "Sexes"
    CATEGORIES = "Categories"
    ITERATIONS = "Iterations"
    QUANTILES = "Quantiles"


COMPATIBILITY = MappingProxyType({
    Dimtype.AGE: frozenset({Dimscale.POINTS, Dimscale.INTERVALS}),
    Dimtype.TIME: frozenset({Dimscale.POINTS, Dimscale.INTERVALS}),
    Dimtype.COHORT: frozenset({Dimscale.INTERVALS}),
    Dimtype.TRIANGLE: frozenset({Dimscale.TRIANGLES}),
    Dimtype.SEX: frozenset({Dimscale.SEXES}),
    Dimtype.STATE: frozenset({Dimscale.CATEGORIES}),
    Dimtype.ORIGIN: frozenset({Dimscale.CATEGORIES}),
    Dimtype.DESTINATION: frozenset({Dimscale.CATEGORIES}),
    Dimtype.PARENT: frozenset({Dimscale.CATEGORIES}),
    Dimtype.CHILD: frozenset({Dimscale.CATEGORIES}),
    Dimtype.ITERATIONS: frozenset({Dimscale.ITERATIONS}),
    Dimtype.QUANTILES: frozenset({Dimscale.QUANTILES}),
})

# Paired dimtypes: first member → second member
PAIRS = MappingProxyType({
    Dimtype(first): Dimtype(second)
    for first, second in config.get('pairs', {}).items()
})

NUMERIC_SCALES = frozenset({
    Dimscale.POINTS,
    Dimscale.INTERVALS,
    Dimscale.ITERATIONS,
    Dimscale.QUANTILES,
})


def as_dimtype(value: Union[str, Dimtype]) -> Dimtype:
    if isinstance(value, Dimtype):
        return value
    try:
        return Dimtype(str(value).lower())
    except ValueError:
        raise ValueError(
            f"Unknown dimtype: {value}. Available: {[d.value for d in Dimtype]}"
        ) from None


def as_dimscale(value: Union[str, Dimscale]) -> Dimscale:
    if isinstance(value, Dimscale):
        return value
    for scale in Dimscale:
        if scale.value.lower() == str(value).lower():
            return scale
    raise ValueError(
        f"Unknown dimscale: {value}. Available: {[d.value for d in Dimscale]}"
    )


# =================================================================
# Dimension
# =================================================================

@dataclass(frozen=True)
class Dimension:
    """
    One validated axis of a demographic array.
    Build through validate() or inference, not directly.
    """
    name: str
    dimtype: Dimtype
    dimscale: Dimscale
    labels: Tuple[Any, ...]

    @property
    def size(self) -> int:
        """Number of categories along this axis."""
        if self.dimscale is Dimscale.INTERVALS:
            return len(self.labels) - 1
        return len(self.labels)

    @property
    def bounds(self) -> List[Tuple[float, float]]:
        """(lower, upper) per category. Intervals only."""
        if self.dimscale is not Dimscale.INTERVALS:
            raise IncompatibleDimscaleError(
                f"Dimension '{self.name}' has dimscale '{self.dimscale.value}', not Intervals",
                self.name,
            )
        return list(zip(self.labels[:-1], self.labels[1:]))

    @property
    def categories(self) -> Tuple[str, ...]:
        """Canonical display label per category."""
        scale = self.dimscale
        if scale is Dimscale.INTERVALS:
            bare = self.dimtype is Dimtype.AGE
            return tuple(format_interval(lo, hi, bare_single=bare) for lo, hi in self.bounds)
        if scale is Dimscale.POINTS:
            return tuple(format_number(v) for v in self.labels)
        if scale is Dimscale.QUANTILES:
            return tuple(format_quantile(p) for p in self.labels)
        return tuple(str(v) for v in self.labels)

    @property
    def keys(self) -> Tuple[Any, ...]:
        """Hashable identity per category, used to match labels across arrays."""
        if self.dimscale is Dimscale.INTERVALS:
            return tuple(self.bounds)
        return tuple(self.labels)

    def midpoints(self) -> np.ndarray:
        """
        Scalar per category: the point itself for Points, the centre for
        Intervals. An open-ended interval borrows half the width of its
        finite neighbour; with no neighbour the finite bound is used.
        """
        if self.dimscale is Dimscale.POINTS:
            return np.array(self.labels, dtype=float)
        if self.dimscale is not Dimscale.INTERVALS:
            raise IncompatibleDimscaleError(
                f"Dimension '{self.name}' has dimscale '{self.dimscale.value}'; "
                f"midpoints need Points or Intervals",
                self.name,
            )
        bounds = self.bounds
        widths = [hi - lo for lo, hi in bounds]
        out = []
        for i, (lo, hi) in enumerate(bounds):
            if not math.isinf(lo) and not math.isinf(hi):
                out.append((lo + hi) / 2)
            elif math.isinf(hi) and not math.isinf(lo):
                prev = widths[i - 1] if i > 0 else math.inf
                out.append(lo + prev / 2 if not math.isinf(prev) else lo)
            elif math.isinf(lo) and not math.isinf(hi):
                nxt = widths[i + 1] if i + 1 < len(widths) else math.inf
                out.append(hi - nxt / 2 if not math.isinf(nxt) else hi)
            else:
                out.append(math.nan)
        return np.array(out, dtype=float)

    def index_of(self, label: Any) -> int:
        """
        Position of a label, accepting any notation the dimscale parses
        ("10-14" or "[10,15)" for Intervals, 0.5 or "50%" for Quantiles).
        """
        cats = self.categories
        if isinstance(label, str) and label in cats:
            return cats.index(label)

        scale = self.dimscale
        target: Any = None
        if scale is Dimscale.INTERVALS:
            target = as_interval(parse_label(label))
        elif scale is Dimscale.POINTS:
            target = as_point(parse_label(label))
        elif scale is Dimscale.ITERATIONS:
            target = parse_iteration(label)
        elif scale is Dimscale.QUANTILES:
            p = parse_quantile(label)
            if p is not None:
                for i, q in enumerate(self.labels):
                    if math.isclose(p, q, rel_tol=1e-9):
                        return i
        elif scale in (Dimscale.SEXES, Dimscale.TRIANGLES):
            lowered = [c.lower() for c in cats]
            text = str(label).strip().lower()
            if text in lowered:
                return lowered.index(text)
        else:
            text = str(label)
            if text in cats:
                return cats.index(text)

        if target is not None and target in self.keys:
            return self.keys.index(target)
        raise ParseError(f"'{label}' is not a label of dimension '{self.name}'", self.name)

    def take(self, indices: Iterable[int]) -> 'Dimension':
        """
        Sub-dimension holding the categories at ``indices``, with derived
        fields recomputed: interval breakpoints re-sliced, iterations
        renumbered, a lone sex demoted to a state category.
        """
        idx = [int(i) for i in indices]
        if not idx:
            raise EmptyResultError(f"No labels of dimension '{self.name}' selected", self.name)

        if self.dimscale is Dimscale.INTERVALS:
            bounds = self.bounds
            picked = [bounds[i] for i in idx]
            for (lo1, hi1), (lo2, hi2) in zip(picked, picked[1:]):
                if hi1 != lo2:
                    raise NonContiguousIntervalsError(
                        f"Selection from dimension '{self.name}' leaves a gap between "
                        f"{format_interval(lo1, hi1)} and {format_interval(lo2, hi2)}",
                        self.name,
                    )
            labels = (picked[0][0],) + tuple(hi for _, hi in picked)
        elif self.dimscale is Dimscale.ITERATIONS:
            labels = tuple(range(1, len(idx) + 1))
        elif self.dimscale is Dimscale.SEXES and len(idx) == 1:
            return Dimension(self.name, Dimtype.STATE, Dimscale.CATEGORIES,
                             (self.labels[idx[0]],))
        else:
            labels = tuple(self.labels[i] for i in idx)
        return validate(self.name, self.dimtype, self.dimscale, labels)

    def rename(self, name: str) -> 'Dimension':
        return Dimension(name, self.dimtype, self.dimscale, self.labels)


# =================================================================
# Validation
# =================================================================

def _strictly_increasing(values: Sequence[float]) -> bool:
    return all(a < b for a, b in zip(values, values[1:]))


def _check_points(name: str, labels: Sequence[Any]) -> Tuple[Any, ...]:
    try:
        values = tuple(float(v) for v in labels)
    except (TypeError, ValueError):
        raise ParseError(f"Points of dimension '{name}' must be numbers", name) from None
    if not values:
        raise ParseError(f"Dimension '{name}' has no points", name)
    if not all(math.isfinite(v) for v in values):
        raise ParseError(f"Points of dimension '{name}' must be finite", name)
    if not _strictly_increasing(values):
        raise ParseError(f"Points of dimension '{name}' are not strictly increasing", name)
    return values


def _check_intervals(name: str, labels: Sequence[Any]) -> Tuple[Any, ...]:
    try:
        values = tuple(float(v) for v in labels)
    except (TypeError, ValueError):
        raise ParseError(f"Breakpoints of dimension '{name}' must be numbers", name) from None
    if len(values) < 2:
        raise ParseError(f"Dimension '{name}' needs at least two breakpoints", name)
    if any(math.isnan(v) for v in values):
        raise ParseError(f"Breakpoints of dimension '{name}' contain NaN", name)
    if not _strictly_increasing(values):
        raise ParseError(f"Breakpoints of dimension '{name}' are not strictly increasing", name)
    return values


def _check_categories(name: str, labels: Sequence[Any]) -> Tuple[Any, ...]:
    values = tuple(str(v) for v in labels)
    if not values:
        raise ParseError(f"Dimension '{name}' has no categories", name)
    if len(set(values)) != len(values):
        dups = sorted({v for v in values if values.count(v) > 1})
        raise ParseError(f"Dimension '{name}' has duplicated labels: {dups}", name)
    return values


def _check_sexes(name: str, labels: Sequence[Any]) -> Tuple[Any, ...]:
    canonical = [s.lower() for s in config.get('inference.sex_labels', ['female', 'male'])]
    values = tuple(str(v).strip().lower() for v in labels)
    if len(values) != len(canonical) or set(values) != set(canonical):
        raise IncompatibleDimtypeError(
            f"Dimension '{name}' has dimtype 'sex' but labels {list(labels)}; "
            f"expected exactly {canonical}",
            name,
        )
    return values


def _check_triangles(name: str, labels: Sequence[Any]) -> Tuple[Any, ...]:
    canonical = config.get('inference.triangle_labels', ['Lower', 'Upper'])
    lookup = {t.lower(): t for t in canonical}
    values = []
    for v in labels:
        key = str(v).strip().lower()
        if key not in lookup:
            raise ParseError(
                f"'{v}' is not a Lexis triangle label of dimension '{name}'; "
                f"expected one of {canonical}",
                name,
            )
        values.append(lookup[key])
    values = _check_categories(name, values)
    return values


def _check_iterations(name: str, labels: Sequence[Any]) -> Tuple[Any, ...]:
    values = tuple(parse_iteration(v) for v in labels)
    if not values or values != tuple(range(1, len(values) + 1)):
        raise ParseError(f"Iterations of dimension '{name}' must be 1..n", name)
    return values


def _check_quantiles(name: str, labels: Sequence[Any]) -> Tuple[Any, ...]:
    values = tuple(parse_quantile(v) for v in labels)
    if not values or any(p is None or not 0 < p < 1 for p in values):
        raise ParseError(f"Quantiles of dimension '{name}' must lie in (0, 1)", name)
    if not _strictly_increasing(values):
        raise ParseError(f"Quantiles of dimension '{name}' are not strictly increasing", name)
    return values


LABEL_CHECKS = {
    Dimscale.POINTS: _check_points,
    Dimscale.INTERVALS: _check_intervals,
    Dimscale.CATEGORIES: _check_categories,
    Dimscale.SEXES: _check_sexes,
    Dimscale.TRIANGLES: _check_triangles,
    Dimscale.ITERATIONS: _check_iterations,
    Dimscale.QUANTILES: _check_quantiles,
}


def check_compatible(name: str, dimtype: Dimtype, dimscale: Dimscale) -> None:
    """Raise IncompatibleDimtypeError unless the table permits the pair."""
    permitted = COMPATIBILITY[dimtype]
    if dimscale not in permitted:
        raise IncompatibleDimtypeError(
            f"Dimension '{name}' has dimtype '{dimtype.value}', which does not permit "
            f"dimscale '{dimscale.value}'. Permitted: {sorted(s.value for s in permitted)}",
            name,
        )


def validate(
    name: str,
    dimtype: Union[str, Dimtype],
    dimscale: Union[str, Dimscale],
    labels: Sequence[Any],
) -> Dimension:
    """
    Build a Dimension, enforcing the compatibility table and the label
    invariants of the dimscale.

    Raises:
        IncompatibleDimtypeError: dimtype does not permit dimscale, or a
            sex dimension's labels are not exactly female/male.
        ParseError: labels break the dimscale's invariants.
    """
    dimtype = as_dimtype(dimtype)
    dimscale = as_dimscale(dimscale)
    check_compatible(name, dimtype, dimscale)
    checked = LABEL_CHECKS[dimscale](name, list(labels))
    return Dimension(name=name, dimtype=dimtype, dimscale=dimscale, labels=checked)


def pair_base(dimension: Dimension) -> str:
    """'reg_orig' → 'reg'. Names without a known suffix are their own base."""
    suffixes: Dict[str, str] = config.get('inference.dimtype_suffixes', {})
    for suffix, dimtype in suffixes.items():
        if dimtype == dimension.dimtype.value and dimension.name.endswith(suffix):
            return dimension.name[:-len(suffix)]
    return dimension.name


def pair_partner(
    dimensions: Sequence[Dimension],
    dimension: Dimension,
) -> Optional[Dimension]:
    """
    The other member of an origin/destination or parent/child pair, if
    present. Members pair by base name ('reg_orig' ↔ 'reg_dest'); failing
    that, a lone member of each dimtype pairs whatever the names.
    """
    partner_type = PAIRS.get(dimension.dimtype)
    if partner_type is None:
        reverse = {second: first for first, second in PAIRS.items()}
        partner_type = reverse.get(dimension.dimtype)
    if partner_type is None:
        return None
    base = pair_base(dimension)
    for other in dimensions:
        if other.dimtype is partner_type and pair_base(other) == base:
            return other
    same = [d for d in dimensions if d.dimtype is dimension.dimtype]
    partners = [d for d in dimensions if d.dimtype is partner_type]
    if len(same) == 1 and len(partners) == 1:
        return partners[0]
    return None


def validate_pairs(dimensions: Sequence[Dimension]) -> None:
    """
    Each co-present origin/destination and parent/child pair must carry
    the same set of categories. Pairs are checked independently.
    """
    for dim in dimensions:
        if dim.dimtype not in PAIRS:
            continue
        partner = pair_partner(dimensions, dim)
        if partner is None:
            continue
        if set(dim.categories) != set(partner.categories):
            raise IncompatibleDimtypeError(
                f"Paired dimensions '{dim.name}' and '{partner.name}' have different "
                f"categories: {list(dim.categories)} vs {list(partner.categories)}",
                (dim.name, partner.name),
            )


# =================================================================
# Array metadata
# =================================================================

@dataclass(frozen=True)
class ArrayMetadata:
    """Ordered, validated dimensions of one array."""
    dimensions: Tuple[Dimension, ...] = ()

    def __post_init__(self):
        dims = tuple(self.dimensions)
        object.__setattr__(self, 'dimensions', dims)
        names = [d.name for d in dims]
        dups = sorted({n for n in names if names.count(n) > 1})
        if dups:
            raise MismatchedDimensionsError(f"Duplicated dimension names: {dups}", dups)
        validate_pairs(dims)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self.dimensions)

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(d.size for d in self.dimensions)

    @property
    def ndim(self) -> int:
        return len(self.dimensions)

    def axis(self, name: str) -> int:
        """Position of a dimension."""
        names = self.names
        if name not in names:
            raise KeyError(f"Unknown dimension: {name}. Available: {list(names)}")
        return names.index(name)

    def dimension(self, name: str) -> Dimension:
        return self.dimensions[self.axis(name)]

    def replace(self, name: str, dimension: Dimension) -> 'ArrayMetadata':
        """Metadata with one dimension swapped for another."""
        i = self.axis(name)
        dims = list(self.dimensions)
        dims[i] = dimension
        return ArrayMetadata(tuple(dims))

    def drop(self, names: Iterable[str]) -> 'ArrayMetadata':
        names = set(names)
        return ArrayMetadata(tuple(d for d in self.dimensions if d.name not in names))
