"""Tests for coercion to and from tables and labeled buffers."""

import numpy as np
import pandas as pd
import polars as pl
import pytest

from demarray import Counts, Values, counts, values
from demarray.frames import (
    LabeledArray,
    from_frame,
    from_labeled,
    to_counts,
    to_frame,
    to_labeled,
    to_values,
)


def _make_popn():
    return counts(
        [[10, 12], [8, 9], [5, 7]],
        dimnames={'age': ['0-4', '5-9', '10+'], 'sex': ['Female', 'Male']},
    )


# ============================================================
# to_frame
# ============================================================

class TestToFrame:

    def test_long_format(self):
        popn = _make_popn()
        df = to_frame(popn)
        assert isinstance(df, pl.DataFrame)
        assert df.columns == ['age', 'sex', 'count']
        assert df.height == 6
        assert df['count'].to_list() == [10, 12, 8, 9, 5, 7]
        assert df['age'].to_list()[:2] == ['0-4', '0-4']
        assert df['sex'].to_list()[:2] == ['female', 'male']

    def test_midpoints(self):
        popn = _make_popn()
        df = to_frame(popn, midpoints='age')
        assert df['age'].to_list() == [2.5, 2.5, 7.5, 7.5, 12.5, 12.5]
        assert df['sex'].dtype == pl.Utf8

    def test_midpoints_all_numeric(self):
        popn = _make_popn()
        df = to_frame(popn, midpoints=True)
        assert df['age'].dtype == pl.Float64
        assert df['sex'].dtype == pl.Utf8

    def test_values_measure(self):
        popn = _make_popn()
        df = to_frame(popn.to_values())
        assert 'value' in df.columns

    def test_pandas(self):
        popn = _make_popn()
        df = popn.to_frame(as_pandas=True)
        assert isinstance(df, pd.DataFrame)
        assert len(df) == 6
        assert df['count'].sum() == 51

    def test_unknown_midpoint_dimension(self):
        popn = _make_popn()
        with pytest.raises(KeyError):
            to_frame(popn, midpoints='region')


# ============================================================
# from_frame
# ============================================================

class TestFromFrame:

    def test_zero_fill(self):
        df = pl.DataFrame({
            'region': ['a', 'b', 'a'],
            'sex': ['female', 'female', 'male'],
            'count': [1, 2, 3],
        })
        x = from_frame(df, measure='count')
        assert isinstance(x, Counts)
        assert x.dimnames() == {'region': ('a', 'b'), 'sex': ('female', 'male')}
        np.testing.assert_array_equal(x.data, [[1, 3], [2, 0]])

    def test_repeats_summed(self):
        df = pl.DataFrame({
            'region': ['a', 'b', 'a', 'a'],
            'count': [1, 2, 3, 4],
        })
        x = from_frame(df, measure='count')
        np.testing.assert_array_equal(x.data, [8, 2])

    def test_pandas_input(self):
        df = pd.DataFrame({'time': [2000, 2010], 'rate': [0.1, 0.2]})
        x = from_frame(df, measure='rate', kind='values')
        assert isinstance(x, Values)
        assert x.dimnames()['time'] == ('2000', '2010')

    def test_dimensions_subset_sums_rest(self):
        df = pl.DataFrame({
            'region': ['a', 'a', 'b'],
            'sex': ['female', 'male', 'male'],
            'count': [1, 2, 3],
        })
        x = from_frame(df, measure='count', dimensions=['region'])
        np.testing.assert_array_equal(x.data, [3, 3])

    def test_round_trip(self):
        popn = _make_popn()
        back = from_frame(to_frame(popn), measure='count')
        assert back.metadata == popn.metadata
        np.testing.assert_array_equal(back.data, popn.data)

    def test_unknown_column(self):
        popn = _make_popn()
        with pytest.raises(KeyError):
            from_frame(to_frame(popn), measure='deaths')


# ============================================================
# Labeled buffers and variants
# ============================================================

class TestLabeled:

    def test_round_trip(self):
        popn = _make_popn()
        labeled = to_labeled(popn)
        assert labeled.dimnames == {'age': ['0-4', '5-9', '10+'], 'sex': ['female', 'male']}
        back = from_labeled(labeled)
        assert back.metadata == popn.metadata

    def test_round_trip_single_year_periods(self):
        x = counts([1, 2, 3], dimnames={'time': [2008, 2009, 2010]},
                   dimscales={'time': 'Intervals'})
        back = from_labeled(to_labeled(x))
        assert back.metadata == x.metadata

    def test_shape_checked(self):
        with pytest.raises(ValueError):
            LabeledArray(np.zeros((2, 2)), {'region': ['a', 'b']})

    def test_variant_coercion(self):
        popn = _make_popn()
        assert isinstance(to_values(popn), Values)
        assert isinstance(to_counts(values([1.0], dimnames={'region': ['a']})), Counts)
