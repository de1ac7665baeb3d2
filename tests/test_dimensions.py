"""Tests for the dimension model: compatibility table, label invariants, pairs."""

import math

import numpy as np
import pytest

from demarray.dimensions import (
    COMPATIBILITY,
    ArrayMetadata,
    Dimscale,
    Dimtype,
    pair_partner,
    validate,
)
from demarray.errors import (
    EmptyResultError,
    IncompatibleDimtypeError,
    MismatchedDimensionsError,
    NonContiguousIntervalsError,
    ParseError,
)


# ============================================================
# Compatibility table
# ============================================================

class TestCompatibility:

    def test_table_is_immutable(self):
        with pytest.raises(TypeError):
            COMPATIBILITY[Dimtype.AGE] = frozenset({Dimscale.CATEGORIES})

    def test_every_dimtype_listed(self):
        assert set(COMPATIBILITY) == set(Dimtype)

    def test_cohort_only_intervals(self):
        assert COMPATIBILITY[Dimtype.COHORT] == frozenset({Dimscale.INTERVALS})

    def test_age_points_allowed(self):
        dim = validate('age', 'age', 'Points', [0, 10, 20])
        assert dim.dimscale is Dimscale.POINTS

    def test_state_refuses_intervals(self):
        with pytest.raises(IncompatibleDimtypeError) as exc:
            validate('region', 'state', 'Intervals', [0, 1, 2])
        assert exc.value.dimensions == ('region',)

    def test_cohort_refuses_points(self):
        with pytest.raises(IncompatibleDimtypeError):
            validate('cohort', 'cohort', 'Points', [2000, 2005])

    def test_unknown_dimtype(self):
        with pytest.raises(ValueError):
            validate('x', 'colour', 'Categories', ['a'])


# ============================================================
# Label invariants per dimscale
# ============================================================

class TestLabelInvariants:

    def test_intervals_need_increasing_breaks(self):
        with pytest.raises(ParseError):
            validate('age', 'age', 'Intervals', [0, 10, 5])

    def test_intervals_need_two_breaks(self):
        with pytest.raises(ParseError):
            validate('age', 'age', 'Intervals', [0])

    def test_points_must_be_finite(self):
        with pytest.raises(ParseError):
            validate('time', 'time', 'Points', [2000, math.inf])

    def test_categories_distinct(self):
        with pytest.raises(ParseError):
            validate('region', 'state', 'Categories', ['a', 'b', 'a'])

    def test_sex_exact_labels(self):
        dim = validate('sex', 'sex', 'Sexes', ['Male', 'FEMALE'])
        assert dim.labels == ('male', 'female')

    def test_sex_extra_label(self):
        with pytest.raises(IncompatibleDimtypeError):
            validate('sex', 'sex', 'Sexes', ['female', 'male', 'other'])

    def test_triangles_canonicalised(self):
        dim = validate('triangle', 'triangle', 'Triangles', ['upper', 'LOWER'])
        assert dim.labels == ('Upper', 'Lower')

    def test_triangles_unknown(self):
        with pytest.raises(ParseError):
            validate('triangle', 'triangle', 'Triangles', ['Middle'])

    def test_iterations_contiguous(self):
        assert validate('iteration', 'iterations', 'Iterations', [1, 2, 3]).size == 3
        with pytest.raises(ParseError):
            validate('iteration', 'iterations', 'Iterations', [1, 3])

    def test_quantiles_in_unit_interval(self):
        with pytest.raises(ParseError):
            validate('quantile', 'quantiles', 'Quantiles', [0.5, 1.0])
        with pytest.raises(ParseError):
            validate('quantile', 'quantiles', 'Quantiles', [0.5, 0.25])


# ============================================================
# Derived fields
# ============================================================

class TestDimension:

    def test_interval_size_and_categories(self):
        dim = validate('age', 'age', 'Intervals', [0, 5, 10, math.inf])
        assert dim.size == 3
        assert dim.categories == ('0-4', '5-9', '10+')

    def test_midpoints_open_interval_borrows_width(self):
        dim = validate('age', 'age', 'Intervals', [0, 5, 10, math.inf])
        np.testing.assert_allclose(dim.midpoints(), [2.5, 7.5, 12.5])

    def test_points_midpoints_are_points(self):
        dim = validate('time', 'time', 'Points', [2000, 2005])
        np.testing.assert_allclose(dim.midpoints(), [2000, 2005])

    def test_index_of_any_notation(self):
        dim = validate('age', 'age', 'Intervals', [0, 5, 10])
        assert dim.index_of('5-9') == 1
        assert dim.index_of('[5,10)') == 1

    def test_index_of_unknown(self):
        dim = validate('region', 'state', 'Categories', ['a', 'b'])
        with pytest.raises(ParseError):
            dim.index_of('z')

    def test_take_reslices_breaks(self):
        dim = validate('age', 'age', 'Intervals', [0, 5, 10, 15])
        assert dim.take([1, 2]).labels == (5, 10, 15)

    def test_take_gap_rejected(self):
        dim = validate('age', 'age', 'Intervals', [0, 5, 10, 15])
        with pytest.raises(NonContiguousIntervalsError):
            dim.take([0, 2])

    def test_take_renumbers_iterations(self):
        dim = validate('iteration', 'iterations', 'Iterations', [1, 2, 3, 4])
        assert dim.take([1, 3]).labels == (1, 2)

    def test_take_single_sex_becomes_state(self):
        dim = validate('sex', 'sex', 'Sexes', ['female', 'male'])
        lone = dim.take([0])
        assert lone.dimtype is Dimtype.STATE
        assert lone.dimscale is Dimscale.CATEGORIES
        assert lone.labels == ('female',)

    def test_take_nothing(self):
        dim = validate('region', 'state', 'Categories', ['a'])
        with pytest.raises(EmptyResultError):
            dim.take([])


# ============================================================
# Metadata
# ============================================================

def _regions(name, dimtype, labels):
    return validate(name, dimtype, 'Categories', labels)


class TestArrayMetadata:

    def test_shape(self):
        meta = ArrayMetadata((
            validate('age', 'age', 'Intervals', [0, 5, 10]),
            _regions('region', 'state', ['a', 'b', 'c']),
        ))
        assert meta.shape == (2, 3)
        assert meta.axis('region') == 1

    def test_unknown_dimension(self):
        meta = ArrayMetadata((_regions('region', 'state', ['a']),))
        with pytest.raises(KeyError):
            meta.dimension('age')

    def test_duplicate_names(self):
        dim = _regions('region', 'state', ['a'])
        with pytest.raises(MismatchedDimensionsError):
            ArrayMetadata((dim, dim))

    def test_origin_destination_must_match(self):
        with pytest.raises(IncompatibleDimtypeError) as exc:
            ArrayMetadata((
                _regions('reg_orig', 'origin', ['a', 'b']),
                _regions('reg_dest', 'destination', ['a', 'c']),
            ))
        assert set(exc.value.dimensions) == {'reg_orig', 'reg_dest'}

    def test_pair_order_may_differ(self):
        meta = ArrayMetadata((
            _regions('reg_orig', 'origin', ['a', 'b']),
            _regions('reg_dest', 'destination', ['b', 'a']),
        ))
        assert pair_partner(meta.dimensions, meta.dimension('reg_orig')).name == 'reg_dest'

    def test_pairs_checked_independently(self):
        meta = ArrayMetadata((
            _regions('reg_orig', 'origin', ['a', 'b']),
            _regions('reg_dest', 'destination', ['a', 'b']),
            _regions('eth_parent', 'parent', ['x', 'y', 'z']),
            _regions('eth_child', 'child', ['x', 'y', 'z']),
        ))
        assert meta.shape == (2, 2, 3, 3)

    def test_lone_origin_allowed(self):
        meta = ArrayMetadata((_regions('reg_orig', 'origin', ['a', 'b']),))
        assert meta.ndim == 1

    def test_unsuffixed_pair_must_match(self):
        with pytest.raises(IncompatibleDimtypeError):
            ArrayMetadata((
                _regions('from', 'origin', ['a', 'b']),
                _regions('to', 'destination', ['a', 'c']),
            ))

    def test_unsuffixed_lone_members_pair(self):
        meta = ArrayMetadata((
            _regions('from', 'origin', ['a', 'b']),
            _regions('to', 'destination', ['b', 'a']),
        ))
        assert pair_partner(meta.dimensions, meta.dimension('from')).name == 'to'
        assert pair_partner(meta.dimensions, meta.dimension('to')).name == 'from'
