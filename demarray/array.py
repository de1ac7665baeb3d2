"""
Demographic Arrays
==================
Cross-tabulated numbers plus per-dimension metadata, in two variants:

    Counts   cardinalities (people, events). Summable without weights.
    Values   derived quantities (rates, means). Aggregation needs weights.

Arrays are immutable. Every operation returns a new array; the buffer is
read-only. Notices emitted while producing an array ride along on
``array.notices``.

Usage:
    from demarray import counts
    popn = counts(
        [[10, 12], [8, 9], [5, 7]],
        dimnames={'age': ['0-4', '5-9', '10+'], 'sex': ['Female', 'Male']},
    )
    popn.shape                # → (3, 2)
    rate = deaths / popn      # Values
"""

import numbers
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Type, Union

import numpy as np

from demarray.dimensions import ArrayMetadata, Dimension
from demarray.errors import MismatchedDimensionsError
from demarray.inference import infer_dimension
from demarray.notices import Notice


class DemographicArray:
    """
    Base class for Counts and Values. Not built directly: use counts(),
    values(), or an operation on existing arrays.
    """

    kind: str = ''

    # numpy defers to our reflected operators
    __array_ufunc__ = None

    def __init__(
        self,
        data: Any,
        metadata: ArrayMetadata,
        notices: Sequence[Notice] = (),
    ):
        data = np.array(data, dtype=float)
        if data.shape != metadata.shape:
            raise MismatchedDimensionsError(
                f"Data has shape {data.shape} but dimensions {list(metadata.names)} "
                f"imply {metadata.shape}",
                metadata.names,
            )
        data.flags.writeable = False
        self._data = data
        self._metadata = metadata
        self._notices = tuple(notices)

    # -----------------------------------------------------------------
    # Accessors
    # -----------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        """Read-only buffer, axes in dimension order."""
        return self._data

    @property
    def metadata(self) -> ArrayMetadata:
        return self._metadata

    @property
    def notices(self) -> Tuple[Notice, ...]:
        """Notices emitted by the operation that produced this array."""
        return self._notices

    @property
    def dimensions(self) -> Tuple[Dimension, ...]:
        return self._metadata.dimensions

    @property
    def names(self) -> Tuple[str, ...]:
        return self._metadata.names

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._metadata.shape

    def dimension(self, name: str) -> Dimension:
        return self._metadata.dimension(name)

    def dimnames(self) -> Dict[str, Tuple[str, ...]]:
        """Canonical category labels per dimension."""
        return {d.name: d.categories for d in self.dimensions}

    def _new(self, data, metadata: ArrayMetadata, notices: Sequence[Notice] = ()):
        return type(self)(data, metadata, notices)

    def transpose(self, *names: str) -> 'DemographicArray':
        """Permute dimensions. Unlisted dimensions follow in their current order."""
        for name in names:
            self._metadata.axis(name)
        order = list(names) + [n for n in self.names if n not in names]
        axes = [self._metadata.axis(n) for n in order]
        dims = tuple(self.dimensions[i] for i in axes)
        return self._new(np.transpose(self._data, axes), ArrayMetadata(dims))

    # -----------------------------------------------------------------
    # Coercion
    # -----------------------------------------------------------------

    def to_counts(self) -> 'Counts':
        return Counts(self._data, self._metadata)

    def to_values(self) -> 'Values':
        return Values(self._data, self._metadata)

    def to_frame(self, midpoints: Union[bool, str, Sequence[str]] = False,
                 as_pandas: bool = False):
        from demarray.frames import to_frame
        return to_frame(self, midpoints=midpoints, as_pandas=as_pandas)

    # -----------------------------------------------------------------
    # Arithmetic (Alignment Engine)
    # -----------------------------------------------------------------

    def _binary(self, other, op: str, reflected: bool = False):
        if not isinstance(other, DemographicArray) and not is_scalar(other):
            return NotImplemented
        from demarray.align import apply_operator
        if reflected:
            return apply_operator(other, self, op)
        return apply_operator(self, other, op)

    def __add__(self, other):
        return self._binary(other, '+')

    def __radd__(self, other):
        return self._binary(other, '+', reflected=True)

    def __sub__(self, other):
        return self._binary(other, '-')

    def __rsub__(self, other):
        return self._binary(other, '-', reflected=True)

    def __mul__(self, other):
        return self._binary(other, '*')

    def __rmul__(self, other):
        return self._binary(other, '*', reflected=True)

    def __truediv__(self, other):
        return self._binary(other, '/')

    def __rtruediv__(self, other):
        return self._binary(other, '/', reflected=True)

    def __repr__(self) -> str:
        dims = ', '.join(
            f"{d.name}[{d.dimtype.value}/{d.dimscale.value}]={d.size}"
            for d in self.dimensions
        )
        return f"<{type(self).__name__} {dims}>"


class Counts(DemographicArray):
    """Cardinalities. Summable without weights."""
    kind = 'counts'


class Values(DemographicArray):
    """Derived quantities. Aggregation needs Counts weights."""
    kind = 'values'


ARRAY_KINDS: Dict[str, Type[DemographicArray]] = {
    'counts': Counts,
    'values': Values,
}


def is_scalar(x: Any) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


# =================================================================
# Construction
# =================================================================

def make_array(
    kind: str,
    data: Any,
    dimnames: Mapping[str, Sequence[Any]],
    dimtypes: Optional[Mapping[str, str]] = None,
    dimscales: Optional[Mapping[str, str]] = None,
) -> DemographicArray:
    """
    Build an array from a raw buffer and its labels, inferring each
    dimension's metadata.

    Args:
        kind: 'counts' or 'values'.
        data: N-dimensional numbers, axes in dimnames order.
        dimnames: Ordered {dimension name: raw labels}.
        dimtypes: Optional {name: dimtype}; others inferred from the name.
        dimscales: Optional {name: dimscale} overrides.

    Returns:
        Counts or Values with data reordered to canonical label order.
    """
    if kind not in ARRAY_KINDS:
        raise ValueError(f"Unknown array kind: {kind}. Available: {list(ARRAY_KINDS)}")
    dimtypes = dict(dimtypes or {})
    dimscales = dict(dimscales or {})
    for name in list(dimtypes) + list(dimscales):
        if name not in dimnames:
            raise KeyError(f"Unknown dimension: {name}. Available: {list(dimnames)}")

    arr = np.array(data, dtype=float)
    names = list(dimnames)
    expected = tuple(len(dimnames[n]) for n in names)
    if arr.shape != expected:
        raise MismatchedDimensionsError(
            f"Data has shape {arr.shape} but labels of {names} imply {expected}",
            names,
        )

    dims = []
    notices = []
    for axis, name in enumerate(names):
        inferred = infer_dimension(
            name,
            dimnames[name],
            dimtype=dimtypes.get(name),
            dimscale=dimscales.get(name),
        )
        if list(inferred.order) != list(range(len(inferred.order))):
            arr = np.take(arr, inferred.order, axis=axis)
        dims.append(inferred.dimension)
        if inferred.notice is not None:
            notices.append(inferred.notice)

    return ARRAY_KINDS[kind](arr, ArrayMetadata(tuple(dims)), notices)


def counts(data, dimnames, dimtypes=None, dimscales=None) -> Counts:
    """Build a Counts array. See make_array."""
    return make_array('counts', data, dimnames, dimtypes, dimscales)


def values(data, dimnames, dimtypes=None, dimscales=None) -> Values:
    """Build a Values array. See make_array."""
    return make_array('values', data, dimnames, dimtypes, dimscales)
