"""
Coercion
========
Moving demographic arrays in and out of other shapes.

    to_counts / to_values        change the variant, nothing else
    to_labeled / from_labeled    plain buffer + labels, no dimtype/dimscale
    to_frame                     long table, one row per cell
    from_frame                   cross-tabulate a long table into an array

Long tables are polars DataFrames; pandas DataFrames are accepted on input
and produced on request.

Usage:
    df = to_frame(popn, midpoints='age')
    # shape: (n, 3)  columns: age (f64), sex (str), count (f64)

    popn = from_frame(df, measure='count', dimscales={'age': 'Points'})
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd
import polars as pl

from demarray import config
from demarray.array import Counts, DemographicArray, Values, make_array
from demarray.dimensions import Dimscale


# =================================================================
# Variant coercion
# =================================================================

def to_counts(x: DemographicArray) -> Counts:
    """Same buffer and metadata, tagged Counts."""
    return x.to_counts()


def to_values(x: DemographicArray) -> Values:
    """Same buffer and metadata, tagged Values."""
    return x.to_values()


# =================================================================
# Generic labeled buffer
# =================================================================

@dataclass
class LabeledArray:
    """N-dimensional numbers with labels per axis and no semantics."""
    data: np.ndarray
    dimnames: Dict[str, List[Any]] = field(default_factory=dict)

    def __post_init__(self):
        self.data = np.asarray(self.data, dtype=float)
        expected = tuple(len(v) for v in self.dimnames.values())
        if self.data.shape != expected:
            raise ValueError(
                f"Data has shape {self.data.shape} but labels imply {expected}"
            )


def to_labeled(x: DemographicArray) -> LabeledArray:
    """Drop dimtypes and dimscales, keep canonical labels."""
    return LabeledArray(
        data=np.array(x.data),
        dimnames={d.name: list(d.categories) for d in x.dimensions},
    )


def from_labeled(
    labeled: LabeledArray,
    kind: str = 'counts',
    dimtypes: Optional[Mapping[str, str]] = None,
    dimscales: Optional[Mapping[str, str]] = None,
) -> DemographicArray:
    """Add dimtypes and dimscales by inference."""
    return make_array(kind, labeled.data, labeled.dimnames, dimtypes, dimscales)


# =================================================================
# Long tables
# =================================================================

def measure_column(x: DemographicArray) -> str:
    """Default measure column name for the array's variant."""
    if isinstance(x, Values):
        return config.get('frames.values_column', 'value')
    return config.get('frames.counts_column', 'count')


def _midpoint_names(x: DemographicArray, midpoints) -> List[str]:
    scalar_scales = (Dimscale.POINTS, Dimscale.INTERVALS)
    if midpoints is True:
        return [d.name for d in x.dimensions if d.dimscale in scalar_scales]
    if not midpoints:
        return []
    names = [midpoints] if isinstance(midpoints, str) else list(midpoints)
    for name in names:
        x.metadata.axis(name)
    return names


def to_frame(
    x: DemographicArray,
    midpoints: Union[bool, str, Sequence[str]] = False,
    as_pandas: bool = False,
    measure: Optional[str] = None,
) -> Union[pl.DataFrame, pd.DataFrame]:
    """
    One row per cell, one column per dimension plus the measure.

    Args:
        x: Array to flatten.
        midpoints: True for every Points/Intervals dimension, or the
            name(s) of dimensions whose labels become midpoint numbers.
        as_pandas: Return a pandas DataFrame instead of polars.
        measure: Measure column name. Defaults 'count' / 'value'.

    Returns:
        Long-format DataFrame, rows in C order of the buffer.
    """
    measure = measure or measure_column(x)
    use_mid = set(_midpoint_names(x, midpoints))
    shape = x.shape
    grids = np.indices(shape).reshape(len(shape), -1) if shape else np.zeros((0, 1), int)

    columns: Dict[str, Any] = {}
    for axis, dim in enumerate(x.dimensions):
        idx = grids[axis]
        if dim.name in use_mid:
            columns[dim.name] = dim.midpoints()[idx]
        else:
            cats = np.array(dim.categories, dtype=object)
            columns[dim.name] = cats[idx].tolist()
    columns[measure] = np.asarray(x.data).reshape(-1)

    if as_pandas:
        return pd.DataFrame(columns)
    return pl.DataFrame(columns)


def from_frame(
    df: Union[pl.DataFrame, pd.DataFrame],
    measure: str,
    kind: str = 'counts',
    dimtypes: Optional[Mapping[str, str]] = None,
    dimscales: Optional[Mapping[str, str]] = None,
    dimensions: Optional[Sequence[str]] = None,
) -> DemographicArray:
    """
    Cross-tabulate a long table. Repeated combinations are summed;
    combinations never observed are zero.

    Args:
        df: polars or pandas DataFrame.
        measure: Column holding the numbers.
        kind: 'counts' or 'values'.
        dimensions: Dimension columns, in order. Default: every other column.
    """
    if isinstance(df, pd.DataFrame):
        df = pl.DataFrame({c: df[c].tolist() for c in df.columns})
    if measure not in df.columns:
        raise KeyError(f"Unknown column: {measure}. Available: {df.columns}")
    if dimensions is None:
        dimensions = [c for c in df.columns if c != measure]
    for name in dimensions:
        if name not in df.columns:
            raise KeyError(f"Unknown column: {name}. Available: {df.columns}")

    grouped = df.group_by(list(dimensions), maintain_order=True).agg(
        pl.col(measure).sum()
    )

    dimnames: Dict[str, List[Any]] = {}
    codes: List[np.ndarray] = []
    for name in dimensions:
        labels = df[name].unique(maintain_order=True).to_list()
        dimnames[name] = labels
        lookup = {label: i for i, label in enumerate(labels)}
        codes.append(np.array([lookup[v] for v in grouped[name].to_list()], dtype=int))

    shape = tuple(len(v) for v in dimnames.values())
    data = np.zeros(shape, dtype=float)
    data[tuple(codes)] = grouped[measure].cast(pl.Float64).to_numpy()
    return make_array(kind, data, dimnames, dimtypes, dimscales)