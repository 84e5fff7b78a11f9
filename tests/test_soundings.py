"""Tests for FSL sounding parsing and download."""

from datetime import datetime

import pytest
import requests

import raobt.soundings as soundings
from raobt.errors import InvalidArgument, ServiceUnavailable, SoundingParseError
from raobt.soundings import (
    FslFileProvider,
    RaobSoundingProvider,
    fetch_sounding_profiles,
    parse_fsl_soundings,
    read_fsl_file,
)
from raobt.updat import format_level


class TestParseFsl:
    """Tests for parsing FSL text."""

    def test_sorted_by_time(self, sample_fsl):
        """Test that soundings come back in time order."""
        profiles = parse_fsl_soundings(sample_fsl)
        assert [p.timestamp for p in profiles] == [datetime(2013, 1, 1, 0), datetime(2013, 1, 2, 12)]

    def test_level_count(self, sample_fsl):
        """Test that the declared line count is kept."""
        profiles = parse_fsl_soundings(sample_fsl)
        assert [p.level_count for p in profiles] == [9, 7]

    def test_level_scaling(self, sample_fsl):
        """Test unit scaling of level values."""
        surface = parse_fsl_soundings(sample_fsl)[0].levels[0]
        assert surface.pressure == pytest.approx(1006.0)
        assert surface.height == 93.0
        assert surface.temperature == pytest.approx(-1.1)
        assert surface.wind_direction == 250.0
        assert surface.wind_speed == pytest.approx(2.6)

    def test_missing_values(self, sample_fsl):
        """Test that 99999 becomes a missing value."""
        level = parse_fsl_soundings(sample_fsl)[0].levels[2]
        assert level.pressure == pytest.approx(925.0)
        assert level.temperature is None
        assert level.wind_direction is None
        assert level.wind_speed is None

    def test_missing_values_in_updat_line(self, sample_fsl):
        """Test that missing FSL values are written as UP.DAT sentinels."""
        level = parse_fsl_soundings(sample_fsl)[0].levels[2]
        assert ",".join(format_level(level)) == "    925.0,   780,999.9,999,999.9"

    def test_level_without_height_dropped(self, sample_fsl):
        """Test that levels without a height are not kept."""
        profile = parse_fsl_soundings(sample_fsl)[0]
        assert len(profile.levels) == 4
        assert all(level.pressure != pytest.approx(850.0) for level in profile.levels)

    def test_knots(self):
        """Test conversion of wind speeds reported in knots."""
        text = ("    254      0      1      1    2013\n"
                "      2    900    480   2010      5  99999      3\n"
                "      3           ALB                99999     kt\n"
                "      9  10060     93    -11    -34    250     10\n")
        level = parse_fsl_soundings(text)[0].levels[0]
        assert level.wind_speed == pytest.approx(5.14444)

    def test_numeric_month(self):
        """Test a header with a numeric month."""
        profiles = parse_fsl_soundings("    254     12     15      7    2013\n")
        assert profiles[0].timestamp == datetime(2013, 7, 15, 12)

    def test_empty(self):
        """Test text without soundings."""
        assert parse_fsl_soundings("") == []

    def test_unknown_line_type(self, sample_fsl):
        """Test that unknown line types are rejected."""
        with pytest.raises(SoundingParseError):
            parse_fsl_soundings(sample_fsl + "     42      1      2\n")

    def test_data_before_header(self):
        """Test that levels need a sounding header."""
        with pytest.raises(SoundingParseError):
            parse_fsl_soundings("      4  10000    138    -37    -59    255     31\n")

    def test_non_integer_field(self):
        """Test that non-integer fields are rejected."""
        with pytest.raises(SoundingParseError):
            parse_fsl_soundings("    254      0      1      JAN    2013\n      4  10000    abc    -37    -59    255     31\n")

    def test_short_level_line(self):
        """Test that level lines need all seven fields."""
        with pytest.raises(SoundingParseError):
            parse_fsl_soundings("    254      0      1      JAN    2013\n      4  10000    138\n")

    def test_invalid_date(self):
        """Test that impossible dates are rejected."""
        with pytest.raises(SoundingParseError):
            parse_fsl_soundings("    254      0     31      FEB    2013\n")


class TestReadFsl:
    """Tests for reading FSL files."""

    def test_read_file(self, sample_fsl, tmp_path):
        """Test reading a local file."""
        path = tmp_path / "72518.fsl"
        path.write_text(sample_fsl)
        assert len(read_fsl_file(path)) == 2

    def test_file_provider_range(self, sample_fsl, tmp_path):
        """Test that the file provider limits soundings to the requested range."""
        path = tmp_path / "72518.fsl"
        path.write_text(sample_fsl)
        profiles = FslFileProvider(path).fetch_sounding_profiles(None, datetime(2013, 1, 2, 0),
                                                                 datetime(2013, 1, 3, 0))
        assert [p.timestamp for p in profiles] == [datetime(2013, 1, 2, 12)]


class TestFetchSoundings:
    """Tests for downloading soundings."""

    def test_fetch(self, monkeypatch, fake_response, sample_fsl, make_station):
        """Test the query sent to the archive and the parsed result."""
        calls = []

        def fake_get(url, params=None, stream=False, timeout=None):
            calls.append(params)
            return fake_response("<HTML><PRE>\n" + sample_fsl + "</PRE></HTML>")

        monkeypatch.setattr(soundings.requests, "get", fake_get)
        station = make_station(0, wban="14735", wmo="72518")
        profiles = fetch_sounding_profiles(station, datetime(2013, 1, 1, 0), datetime(2013, 1, 2, 12))

        assert len(profiles) == 2
        assert calls[0]['StationIDs'] == "72518"
        assert calls[0]['bdate'] == "2013010100"
        assert calls[0]['edate'] == "2013010212"

    def test_provider(self, monkeypatch, fake_response, sample_fsl, make_station):
        """Test the archive-backed provider."""
        monkeypatch.setattr(soundings.requests, "get", lambda *args, **kwargs: fake_response(sample_fsl))
        profiles = RaobSoundingProvider().fetch_sounding_profiles(make_station(0), datetime(2013, 1, 1, 0),
                                                                  datetime(2013, 1, 2, 12))
        assert len(profiles) == 2

    def test_unavailable(self, monkeypatch, fake_response):
        """Test the maintenance page."""
        monkeypatch.setattr(soundings.requests, "get",
                            lambda *args, **kwargs: fake_response("Service Temporarily Unavailable"))
        with pytest.raises(ServiceUnavailable):
            fetch_sounding_profiles("72518", datetime(2013, 1, 1, 0), datetime(2013, 1, 2, 0))

    def test_http_503(self, monkeypatch, fake_response):
        """Test an HTTP 503 answer."""
        monkeypatch.setattr(soundings.requests, "get",
                            lambda *args, **kwargs: fake_response("", status_code=503))
        with pytest.raises(ServiceUnavailable):
            fetch_sounding_profiles("72518", datetime(2013, 1, 1, 0), datetime(2013, 1, 2, 0))

    def test_connection_error(self, monkeypatch):
        """Test a transport failure."""
        def fake_get(*args, **kwargs):
            raise requests.exceptions.Timeout("timed out")

        monkeypatch.setattr(soundings.requests, "get", fake_get)
        with pytest.raises(ServiceUnavailable):
            fetch_sounding_profiles("72518", datetime(2013, 1, 1, 0), datetime(2013, 1, 2, 0))

    def test_reversed_range(self):
        """Test that the end must not precede the start."""
        with pytest.raises(InvalidArgument):
            fetch_sounding_profiles("72518", datetime(2013, 1, 2, 0), datetime(2013, 1, 1, 0))
