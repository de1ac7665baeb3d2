"""Tests for label grammars and canonical formatting."""

import math
from datetime import date

import pytest

from demarray.errors import ParseError
from demarray.labels import (
    LabelForm,
    as_interval,
    as_point,
    breaks_from_intervals,
    decimal_year,
    format_interval,
    format_quantile,
    parse_iteration,
    parse_label,
    parse_quantile,
)


# ============================================================
# Parsing
# ============================================================

class TestParseLabel:

    def test_integer_range(self):
        p = parse_label("10-19")
        assert p.form is LabelForm.RANGE
        assert as_interval(p) == (10.0, 20.0)
        assert as_point(p) is None

    def test_open_upper(self):
        p = parse_label("90+")
        assert p.form is LabelForm.OPEN_UPPER
        assert as_interval(p) == (90.0, math.inf)

    def test_open_lower(self):
        assert as_interval(parse_label("<0")) == (-math.inf, 0.0)

    def test_half_open(self):
        assert as_interval(parse_label("[0.5,1)")) == (0.5, 1.0)

    def test_bare_integer_is_point_and_interval(self):
        p = parse_label("2008")
        assert p.form is LabelForm.INTEGER
        assert as_point(p) == 2008.0
        assert as_interval(p) == (2008.0, 2009.0)

    def test_python_int(self):
        assert parse_label(7).form is LabelForm.INTEGER

    def test_integer_valued_float(self):
        assert parse_label(2008.0).form is LabelForm.INTEGER

    def test_decimal_is_point_only(self):
        p = parse_label("2008.5")
        assert p.form is LabelForm.NUMBER
        assert as_interval(p) is None
        assert as_point(p) == 2008.5

    def test_iso_date(self):
        p = parse_label("2008-07-02")
        assert p.form is LabelForm.DATE
        assert as_point(p) == pytest.approx(2008.5)

    def test_reversed_range_unparseable(self):
        assert parse_label("19-10") is None

    def test_words_unparseable(self):
        assert parse_label("young") is None
        assert parse_label(True) is None


class TestDecimalYear:

    def test_first_day(self):
        assert decimal_year(date(2010, 1, 1)) == 2010.0

    def test_leap_year_midpoint(self):
        assert decimal_year(date(2008, 7, 2)) == pytest.approx(2008.5)


class TestQuantileAndIteration:

    def test_percent(self):
        assert parse_quantile("2.5%") == pytest.approx(0.025)

    def test_probability(self):
        assert parse_quantile("0.5") == 0.5
        assert parse_quantile(0.975) == 0.975

    def test_unreadable_quantile(self):
        assert parse_quantile("median") is None

    def test_iteration(self):
        assert parse_iteration("3") == 3
        assert parse_iteration(0) is None
        assert parse_iteration("1.5") is None


# ============================================================
# Joining and formatting
# ============================================================

class TestBreaksFromIntervals:

    def test_sorts_and_joins(self):
        breaks, order = breaks_from_intervals('age', [(5, 10), (0, 5), (10, math.inf)])
        assert breaks == (0, 5, 10, math.inf)
        assert order == [1, 0, 2]

    def test_overlap_rejected(self):
        with pytest.raises(ParseError) as exc:
            breaks_from_intervals('age', [(0, 10), (5, 15)])
        assert exc.value.dimensions == ('age',)

    def test_gap_rejected(self):
        with pytest.raises(ParseError):
            breaks_from_intervals('age', [(0, 5), (10, 15)])


class TestFormatting:

    def test_range(self):
        assert format_interval(0, 5) == "0-4"

    def test_single_year(self):
        assert format_interval(2008, 2009) == "2008"

    def test_single_year_explicit(self):
        label = format_interval(2008, 2009, bare_single=False)
        assert label == "[2008,2009)"
        assert parse_label(label).form is LabelForm.HALF_OPEN

    def test_open_ends(self):
        assert format_interval(90, math.inf) == "90+"
        assert format_interval(-math.inf, 0) == "<0"

    def test_decimal_bounds(self):
        assert format_interval(0.5, 1) == "[0.5,1)"

    def test_round_trip(self):
        for lo, hi in [(0, 5), (90, math.inf), (-math.inf, 0), (0.5, 1.0), (7, 8)]:
            assert as_interval(parse_label(format_interval(lo, hi))) == (lo, hi)

    def test_quantile(self):
        assert format_quantile(0.025) == "2.5%"
        assert format_quantile(0.5) == "50%"
