"""
Alignment Engine
================
Reconciles two arrays' dimensions before elementwise arithmetic.

    1. Same-named dimensions must agree on dimtype and dimscale.
    2. Their labels are intersected (order from x). An operand holding
       labels outside the intersection is trimmed, with a notice.
       Empty intersection → EmptyIntersectionError.
       strict=True fails instead of trimming.
    3. A dimension found in one operand only must have length 1 there;
       it is dropped. Otherwise MismatchedDimensionsError.
    4. Both buffers are permuted to x's dimension order.

Result variant:
    Counts (+ - *) Counts   → Counts
    Counts / Counts         → Values
    any Values operand      → Values
    array ⊕ scalar          → same variant as the array
"""

from typing import List, Optional, Tuple

import numpy as np

from demarray import config
from demarray.array import Counts, DemographicArray, Values, is_scalar
from demarray.dimensions import ArrayMetadata
from demarray.errors import (
    EmptyIntersectionError,
    IncompatibleDimscaleError,
    MismatchedDimensionsError,
)
from demarray.notices import Notice, NoticeKind, emit


OPERATORS = {
    '+': np.add,
    '-': np.subtract,
    '*': np.multiply,
    '/': np.true_divide,
}


def align_pair(
    x: DemographicArray,
    y: DemographicArray,
    strict: bool = False,
    operands: Tuple[str, str] = ('x', 'y'),
) -> Tuple[np.ndarray, np.ndarray, ArrayMetadata, List[Notice]]:
    """
    Make two arrays conformant.

    Args:
        x: Left operand. Its dimension and label order wins.
        y: Right operand.
        strict: Fail rather than trim shared dimensions.
        operands: Names used for x and y in notices and errors.

    Returns:
        (x_data, y_data, metadata, notices) with both buffers shaped
        like metadata.
    """
    x_name, y_name = operands
    notices: List[Notice] = []
    x_data = np.asarray(x.data)
    y_data = np.asarray(y.data)
    shared = [n for n in x.names if n in y.names]
    dims = []

    for name in shared:
        dx = x.dimension(name)
        dy = y.dimension(name)
        if dx.dimtype is not dy.dimtype or dx.dimscale is not dy.dimscale:
            raise IncompatibleDimscaleError(
                f"Dimension '{name}' is {dx.dimtype.value}/{dx.dimscale.value} in "
                f"{x_name} but {dy.dimtype.value}/{dy.dimscale.value} in {y_name}",
                name,
            )

        y_keys = dy.keys
        y_pos = {key: i for i, key in enumerate(y_keys)}
        x_idx = [i for i, key in enumerate(dx.keys) if key in y_pos]
        if not x_idx:
            raise EmptyIntersectionError(
                f"Dimension '{name}' has no labels in common between {x_name} and {y_name}",
                name,
            )
        y_idx = [y_pos[dx.keys[i]] for i in x_idx]

        for operand, dim, idx in ((x_name, dx, x_idx), (y_name, dy, y_idx)):
            if len(idx) == dim.size:
                continue
            keep = set(idx)
            dropped = [c for i, c in enumerate(dim.categories) if i not in keep]
            if strict:
                raise MismatchedDimensionsError(
                    f"Dimension '{name}' of {operand} has labels {dropped} not found "
                    f"in the other operand",
                    name,
                )
            notices.append(emit(
                NoticeKind.TRIMMED,
                name,
                operand=operand,
                detail=f"dropped {dropped}; kept {len(idx)} of {dim.size} categories",
            ))

        dims.append(dx.take(x_idx))
        x_data = np.take(x_data, x_idx, axis=x.metadata.axis(name))
        y_data = np.take(y_data, y_idx, axis=y.metadata.axis(name))

    x_data = _drop_unmatched(x, x_data, shared, x_name)
    y_data = _drop_unmatched(y, y_data, shared, y_name)

    # after dropping, x is already in shared order; y needs permuting
    y_remaining = [n for n in y.names if n in shared]
    y_data = np.transpose(y_data, [y_remaining.index(n) for n in shared])

    return x_data, y_data, ArrayMetadata(tuple(dims)), notices


def _drop_unmatched(
    array: DemographicArray,
    data: np.ndarray,
    shared: List[str],
    operand: str,
) -> np.ndarray:
    extra = [n for n in array.names if n not in shared]
    for name in extra:
        size = array.dimension(name).size
        if size != 1:
            raise MismatchedDimensionsError(
                f"Dimension '{name}' of {operand} (length {size}) has no counterpart "
                f"in the other operand",
                name,
            )
    axes = tuple(array.metadata.axis(n) for n in extra)
    return np.squeeze(data, axis=axes) if axes else data


def result_class(x, y, op: str):
    """Variant of x op y."""
    if is_scalar(x):
        return type(y)
    if is_scalar(y):
        return type(x)
    if isinstance(x, Values) or isinstance(y, Values):
        return Values
    if op == '/':
        return Values
    return Counts


def apply_operator(x, y, op: str, strict: Optional[bool] = None) -> DemographicArray:
    """
    Elementwise x op y over aligned arrays (or an array and a scalar).

    Args:
        x, y: DemographicArray or real number; at least one array.
        op: One of '+', '-', '*', '/'.
        strict: Fail instead of trimming. Defaults to config 'align.strict'.
    """
    if op not in OPERATORS:
        raise ValueError(f"Unknown operator: {op}. Available: {list(OPERATORS)}")
    x_is_array = isinstance(x, DemographicArray)
    y_is_array = isinstance(y, DemographicArray)
    if not (x_is_array or is_scalar(x)) or not (y_is_array or is_scalar(y)):
        raise TypeError(
            f"Unsupported operands for '{op}': {type(x).__name__}, {type(y).__name__}"
        )
    if strict is None:
        strict = config.get('align.strict', False)

    func = OPERATORS[op]
    cls = result_class(x, y, op)

    with np.errstate(divide='ignore', invalid='ignore'):
        if not y_is_array:
            return cls(func(x.data, float(y)), x.metadata)
        if not x_is_array:
            return cls(func(float(x), y.data), y.metadata)
        x_data, y_data, metadata, notices = align_pair(x, y, strict=strict)
        return cls(func(x_data, y_data), metadata, notices)
