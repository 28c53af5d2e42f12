"""Unit tests for TotalsFormatter."""

from datetime import date

import pytest

from tripjournal.core.models import Classification, Totals
from tripjournal.reporting.formatter import TotalsFormatter, get_labels


@pytest.fixture
def formatter():
    return TotalsFormatter(locale="sv", unit="km")


def _totals(**overrides) -> Totals:
    defaults = dict(
        total_distance=250.04,
        total_business_distance=100.0,
        total_private_distance=50.0,
        unclassified_distance=100.04,
        total_duration=300,
        total_business_duration=125,
        total_private_duration=59,
        unclassified_duration=116,
    )
    defaults.update(overrides)
    return Totals(**defaults)


# ------------------------------------------------------------------
# format_duration
# ------------------------------------------------------------------

class TestFormatDuration:
    def test_zero(self):
        assert TotalsFormatter.format_duration(0) == "0:00"

    def test_minutes_only(self):
        assert TotalsFormatter.format_duration(59) == "0:59"

    def test_hours_and_minutes(self):
        assert TotalsFormatter.format_duration(125) == "2:05"

    def test_exactly_one_hour(self):
        assert TotalsFormatter.format_duration(60) == "1:00"

    def test_hours_not_padded(self):
        assert TotalsFormatter.format_duration(6005) == "100:05"

    def test_negative_treated_as_zero(self):
        assert TotalsFormatter.format_duration(-10) == "0:00"

    def test_every_minute_count_below_10000(self):
        for m in range(10000):
            text = TotalsFormatter.format_duration(m)
            hours, rem = text.split(":")
            assert len(rem) == 2
            assert int(hours) * 60 + int(rem) == m


# ------------------------------------------------------------------
# Distances, labels, dates
# ------------------------------------------------------------------

class TestFormatDistance:
    def test_one_decimal(self, formatter):
        assert formatter.format_distance(12.345) == "12.3 km"

    def test_zero(self, formatter):
        assert formatter.format_distance(0) == "0.0 km"

    def test_custom_decimals(self, formatter):
        assert formatter.format_distance(18.4, 2) == "18.40 km"

    def test_unit(self):
        assert TotalsFormatter(unit="mi").format_distance(3) == "3.0 mi"


def test_classification_labels(formatter):
    assert formatter.classification_label(Classification.BUSINESS) == "Tjänsteresa"
    assert formatter.classification_label(Classification.PRIVATE) == "Privat resa"
    assert formatter.classification_label(Classification.UNCLASSIFIED) == ""


def test_format_date_swedish(formatter):
    assert formatter.format_date(date(2024, 5, 6)) == "MÅNDAG 6 MAJ"


def test_format_date_english():
    assert TotalsFormatter(locale="en").format_date(date(2024, 5, 4)) == "SATURDAY 4 MAY"


def test_unknown_locale_falls_back_to_swedish():
    assert get_labels("xx") is get_labels("sv")


# ------------------------------------------------------------------
# format_totals
# ------------------------------------------------------------------

class TestFormatTotals:
    def test_figures(self, formatter):
        view = formatter.format_totals(_totals())
        assert view.total_distance == "250.0 km"
        assert view.business_distance == "100.0 km"
        assert view.private_distance == "50.0 km"
        assert view.total_duration == "5:00"
        assert view.business_duration == "2:05"
        assert view.private_duration == "0:59"

    def test_positive_unclassified_shown(self, formatter):
        view = formatter.format_totals(_totals())
        assert view.unclassified_distance == "100.0 km"
        assert view.unclassified_duration == "1:56"
        assert view.has_unclassified

    def test_zero_unclassified_suppressed(self, formatter):
        view = formatter.format_totals(_totals(unclassified_distance=0.0, unclassified_duration=0))
        assert view.unclassified_distance is None
        assert view.unclassified_duration is None
        assert not view.has_unclassified

    def test_negative_unclassified_suppressed(self, formatter):
        view = formatter.format_totals(_totals(unclassified_distance=-0.01, unclassified_duration=-1))
        assert not view.has_unclassified

    def test_only_one_unclassified_figure(self, formatter):
        view = formatter.format_totals(_totals(unclassified_distance=0.0, unclassified_duration=3))
        assert view.unclassified_distance is None
        assert view.unclassified_duration == "0:03"


class TestFormatTotalsText:
    def test_includes_labels(self, formatter):
        text = formatter.format_totals_text(_totals())
        assert "Total körsträcka: 250.0 km" in text
        assert "Varav tjänsteresor: 2:05" in text
        assert "Oklassificerad sträcka: 100.0 km" in text
        assert "Oklassificerad tid: 1:56" in text

    def test_omits_zero_unclassified(self, formatter):
        text = formatter.format_totals_text(_totals(unclassified_distance=0, unclassified_duration=0))
        assert "Oklassificerad" not in text
