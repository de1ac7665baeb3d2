"""
demarray - Demographic Arrays
=============================

Cross-tabulated counts and values whose dimensions know what they are
(age, time, sex, region, ...) and how their labels read (points,
intervals, categories, ...).

Usage:
    import demarray as da

    popn = da.counts(
        [[510, 490], [480, 470], [300, 350]],
        dimnames={'age': ['0-14', '15-64', '65+'], 'sex': ['Female', 'Male']},
    )
    deaths = da.counts(...)
    rates = deaths / popn                                 # Values
    total = da.collapse_dimension(popn, dimension='sex')  # Counts by age
    mean_rate = da.collapse_dimension(rates, margin='sex', weights=popn)
    adults = da.subset(popn, age=da.ge(15))
"""

__version__ = '0.1.0'

from demarray.array import Counts, DemographicArray, Values, counts, make_array, values
from demarray.align import align_pair, apply_operator
from demarray.bind import dbind
from demarray.collapse import (
    collapse_categories,
    collapse_dimension,
    collapse_intervals,
    collapse_iterations,
    collapse_origin_dest,
)
from demarray.dimensions import (
    COMPATIBILITY,
    ArrayMetadata,
    Dimension,
    Dimscale,
    Dimtype,
    validate,
)
from demarray.errors import (
    AmbiguousDimscaleError,
    DemographicArrayError,
    EmptyIntersectionError,
    EmptyResultError,
    IncompatibleDimscaleError,
    IncompatibleDimtypeError,
    MismatchedDimensionsError,
    MissingWeightsError,
    NonContiguousIntervalsError,
    NonMonotonicBindError,
    ParseError,
)
from demarray.filters import Filter, In, Where, between, eq, ge, gt, le, lt, ne
from demarray.frames import (
    LabeledArray,
    from_frame,
    from_labeled,
    to_counts,
    to_frame,
    to_labeled,
    to_values,
)
from demarray.inference import infer_dimension, infer_dimtype
from demarray.notices import Notice, NoticeKind
from demarray.subset import slab, subset, subset_labels

__all__ = [
    '__version__',
    # Arrays
    'DemographicArray',
    'Counts',
    'Values',
    'counts',
    'values',
    'make_array',
    # Metadata
    'Dimension',
    'Dimtype',
    'Dimscale',
    'ArrayMetadata',
    'COMPATIBILITY',
    'validate',
    'infer_dimension',
    'infer_dimtype',
    # Operations
    'align_pair',
    'apply_operator',
    'collapse_dimension',
    'collapse_intervals',
    'collapse_categories',
    'collapse_origin_dest',
    'collapse_iterations',
    'dbind',
    'subset',
    'subset_labels',
    'slab',
    # Filters
    'Filter',
    'In',
    'Where',
    'lt',
    'le',
    'gt',
    'ge',
    'eq',
    'ne',
    'between',
    # Coercion
    'LabeledArray',
    'to_counts',
    'to_values',
    'to_labeled',
    'from_labeled',
    'to_frame',
    'from_frame',
    # Notices and errors
    'Notice',
    'NoticeKind',
    'DemographicArrayError',
    'ParseError',
    'AmbiguousDimscaleError',
    'IncompatibleDimtypeError',
    'IncompatibleDimscaleError',
    'MismatchedDimensionsError',
    'EmptyIntersectionError',
    'MissingWeightsError',
    'NonMonotonicBindError',
    'NonContiguousIntervalsError',
    'EmptyResultError',
]
