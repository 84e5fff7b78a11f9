"""Tests for the availability summary."""

from datetime import datetime

from raobt.availability import covers_window, summarize_availability


class TestSummarizeAvailability:
    """Tests for summarize_availability."""

    def test_counts(self, make_profile):
        """Test sounding and day counts per year."""
        profiles = [make_profile(year=2012, month=12, day=31, hour=12),
                    make_profile(year=2013, month=1, day=1, hour=0),
                    make_profile(year=2013, month=1, day=1, hour=12),
                    make_profile(year=2013, month=1, day=2, hour=0)]
        summary = summarize_availability(profiles)

        assert summary['num_total_soundings'] == 4
        assert summary['available_years'] == [2012, 2013]
        assert summary['num_soundings_per_year'] == {2012: 1, 2013: 3}
        assert summary['num_days_per_year'] == {2012: 1, 2013: 2}
        assert summary['first_time'] == datetime(2012, 12, 31, 12)
        assert summary['last_time'] == datetime(2013, 1, 2, 0)

    def test_empty(self):
        """Test the summary of no soundings."""
        summary = summarize_availability([])
        assert summary['num_total_soundings'] == 0
        assert summary['available_years'] == []
        assert summary['first_time'] is None


class TestCoversWindow:
    """Tests for covers_window."""

    def test_inside(self, make_profile):
        """Test a window within the data."""
        profiles = [make_profile(day=1), make_profile(day=5)]
        assert covers_window(profiles, datetime(2013, 1, 1, 0), datetime(2013, 1, 5, 0))

    def test_outside(self, make_profile):
        """Test windows reaching past either end."""
        profiles = [make_profile(day=2), make_profile(day=5)]
        assert not covers_window(profiles, datetime(2013, 1, 1, 0), datetime(2013, 1, 5, 0))
        assert not covers_window(profiles, datetime(2013, 1, 2, 0), datetime(2013, 1, 5, 12))

    def test_empty(self):
        """Test that no data covers nothing."""
        assert not covers_window([], datetime(2013, 1, 1, 0), datetime(2013, 1, 1, 0))
