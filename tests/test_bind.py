"""Tests for binding arrays along a dimension."""

import numpy as np
import pytest

from demarray import Counts, counts
from demarray.bind import dbind
from demarray.dimensions import Dimscale, Dimtype
from demarray.errors import (
    IncompatibleDimscaleError,
    MismatchedDimensionsError,
    NonContiguousIntervalsError,
    NonMonotonicBindError,
)
from demarray.filters import ge, lt
from demarray.subset import subset


def _make_popn():
    return counts(
        [[10, 12], [8, 9], [5, 7]],
        dimnames={'age': ['0-4', '5-9', '10+'], 'sex': ['Female', 'Male']},
    )


# ============================================================
# Inverse of subset
# ============================================================

class TestBindSubsetInverse:

    def test_intervals(self):
        popn = _make_popn()
        young = subset(popn, age=lt(10))
        old = subset(popn, age=ge(10))
        both = dbind(young, old, along='age')
        assert isinstance(both, Counts)
        assert both.metadata == popn.metadata
        np.testing.assert_array_equal(both.data, popn.data)

    def test_categories(self):
        x = counts([1, 2, 3], dimnames={'region': ['a', 'b', 'c']})
        both = dbind(subset(x, region=['a']), subset(x, region=['b', 'c']), along='region')
        assert both.metadata == x.metadata
        np.testing.assert_array_equal(both.data, x.data)

    def test_sex(self):
        popn = _make_popn()
        female = subset(popn, sex=['female'])
        male = subset(popn, sex=['male'])
        assert female.dimension('sex').dimtype is Dimtype.STATE
        both = dbind(female, male, along='sex')
        assert both.dimension('sex').dimtype is Dimtype.SEX
        assert both.dimension('sex').dimscale is Dimscale.SEXES
        assert both.metadata == popn.metadata
        np.testing.assert_array_equal(both.data, popn.data)

    def test_iterations_renumbered(self):
        sims = counts([1, 2, 3, 4, 5], dimnames={'iteration': [1, 2, 3, 4, 5]})
        first = subset(sims, iteration=[1, 2])
        rest = subset(sims, iteration=[3, 4, 5])
        assert rest.dimension('iteration').labels == (1, 2, 3)
        both = dbind(first, rest, along='iteration')
        assert both.dimension('iteration').labels == (1, 2, 3, 4, 5)
        np.testing.assert_array_equal(both.data, sims.data)


# ============================================================
# Along-dimension rules
# ============================================================

class TestAlongRules:

    def test_overlapping_intervals(self):
        popn = _make_popn()
        young = subset(popn, age=lt(10))
        with pytest.raises(NonMonotonicBindError):
            dbind(young, young, along='age')

    def test_gap_between_intervals(self):
        popn = _make_popn()
        first = subset(popn, age=['0-4'])
        last = subset(popn, age=['10+'])
        with pytest.raises(NonContiguousIntervalsError) as exc:
            dbind(first, last, along='age')
        assert exc.value.dimensions == ('age',)

    def test_points_must_increase(self):
        x = counts([1, 2], dimnames={'time': [2000, 2010]})
        y = counts([3], dimnames={'time': [2005]}, dimscales={'time': 'Points'})
        with pytest.raises(NonMonotonicBindError):
            dbind(x, y, along='time')

    def test_points_in_order(self):
        x = counts([1, 2], dimnames={'time': [2000, 2010]})
        y = counts([3], dimnames={'time': [2020]}, dimscales={'time': 'Points'})
        both = dbind(x, y, along='time')
        assert both.dimnames()['time'] == ('2000', '2010', '2020')

    def test_shared_categories(self):
        x = counts([1, 2], dimnames={'region': ['a', 'b']})
        y = counts([3], dimnames={'region': ['b']})
        with pytest.raises(MismatchedDimensionsError):
            dbind(x, y, along='region')

    def test_dimscale_differs(self):
        x = counts([1, 2], dimnames={'age': ['0-4', '5-9']})
        y = counts([3], dimnames={'age': [12.5]})
        with pytest.raises(IncompatibleDimscaleError):
            dbind(x, y, along='age')


# ============================================================
# Operand checks
# ============================================================

class TestOperands:

    def test_other_dimensions_reordered(self):
        x = counts([[1, 2]], dimnames={'region': ['a'], 'eth': ['p', 'q']})
        y = counts([[4, 3]], dimnames={'region': ['b'], 'eth': ['q', 'p']})
        both = dbind(x, y, along='region')
        assert both.dimnames()['eth'] == ('p', 'q')
        np.testing.assert_array_equal(both.data, [[1, 2], [3, 4]])

    def test_other_dimensions_transposed(self):
        x = counts([[1, 2]], dimnames={'region': ['a'], 'eth': ['p', 'q']})
        y = counts([[3], [4]], dimnames={'eth': ['p', 'q'], 'region': ['b']})
        both = dbind(x, y, along='region')
        assert both.names == ('region', 'eth')
        np.testing.assert_array_equal(both.data, [[1, 2], [3, 4]])

    def test_other_labels_differ(self):
        x = counts([[1, 2]], dimnames={'region': ['a'], 'eth': ['p', 'q']})
        y = counts([[3, 4]], dimnames={'region': ['b'], 'eth': ['p', 'r']})
        with pytest.raises(MismatchedDimensionsError):
            dbind(x, y, along='region')

    def test_mixed_variants(self):
        popn = _make_popn()
        with pytest.raises(TypeError):
            dbind(subset(popn, age=lt(10)), subset(popn, age=ge(10)).to_values(), along='age')

    def test_missing_along(self):
        popn = _make_popn()
        with pytest.raises(MismatchedDimensionsError):
            dbind(popn, popn, along='region')

    def test_single_operand(self):
        popn = _make_popn()
        with pytest.raises(ValueError):
            dbind(popn, along='age')
