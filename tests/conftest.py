"""Shared fixtures for raobt tests."""

from datetime import datetime

import pytest
import requests

from raobt.models import LevelRecord, SoundingProfile, StationRecord
from raobt.stations import StationCatalog

SAMPLE_PAGE = """<HTML>
<HEAD><TITLE>RAOB query</TITLE></HEAD>
<BODY>
<FORM ACTION="GetRaobs.cgi">
<SELECT NAME="stationids" MULTIPLE SIZE="10">
<OPTION> ALB  14735 72518 42.75 -73.80 00093  ALBANY NY US

<OPTION> YYZ        71624 43.68 -79.63 00173  TORONTO (PEARSON) ON CA

<OPTION>       94240 72201 24.55 -81.78 00002  KEY WEST FL US

<OPTION> YYT        71801 47.67 -52.75 00140  ST. JOHN'S/TORBAY NF CA

</SELECT>
</FORM>
</BODY>
</HTML>
"""

SAMPLE_FSL = """\
    254     12      2      JAN    2013
      1  14735  72518  42.75 73.80W    93  99999
      2    900    480   2010      7  99999      3
      3           ALB                99999     ms
      9  10080     93    -25    -40    200     15
      4  10000    150    -45    -60    210     40
      4   5000   5580   -230   -290    260    180
    254      0      1      JAN    2013
      1  14735  72518  42.75 73.80W    93  99999
      2    900    480   2010      9  99999      3
      3           ALB                99999     ms
      9  10060     93    -11    -34    250     26
      4  10000    138    -37    -59    255     31
      5   9250    780  99999  99999  99999  99999
      6   8500  99999    -90   -120    270     80
      4   5000   5600   -215   -300    280    150
"""


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, text="", status_code=200, headers=None):
        self.text = text
        self.content = text.encode("utf-8")
        self.status_code = status_code
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def sample_page():
    return SAMPLE_PAGE


@pytest.fixture
def sample_fsl():
    return SAMPLE_FSL


@pytest.fixture
def make_station():
    def factory(index=0, **overrides):
        fields = dict(init=f"S{index:02d}",
                      wban=str(10000 + index),
                      wmo=str(70000 + index),
                      latitude=40.0,
                      longitude=-75.0,
                      elevation=100.0,
                      name=f"STATION {index}",
                      region="NY",
                      country="US")
        fields.update(overrides)
        return StationRecord(**fields)
    return factory


@pytest.fixture
def sample_catalog(make_station):
    return StationCatalog([
        make_station(0, init="ALB", wban="14735", wmo="72518", latitude=42.75, longitude=-73.80,
                     elevation=93.0, name="ALBANY", region="NY", country="US"),
        make_station(1, init="YYZ", wban="", wmo="71624", latitude=43.68, longitude=-79.63,
                     elevation=173.0, name="TORONTO (PEARSON)", region="ON", country="CA"),
        make_station(2, init="", wban="94240", wmo="72201", latitude=24.55, longitude=-81.78,
                     elevation=2.0, name="KEY WEST", region="FL", country="US"),
        make_station(3, init="DEN", wban="23062", wmo="72469", latitude=39.77, longitude=-104.87,
                     elevation=1611.0, name="DENVER/STAPLETON", region="CO", country="US"),
        make_station(4, init="BUF", wban="14733", wmo="72528", latitude=42.93, longitude=-78.73,
                     elevation=218.0, name="BUFFALO", region="NY", country="US"),
    ])


@pytest.fixture
def make_profile():
    def factory(year=2013, month=1, day=1, hour=0, levels=None, level_count=None):
        if levels is None:
            levels = [LevelRecord(1000.0, 100.0, 15.0, 270.0, 5.5),
                      LevelRecord(850.0, 1500.0, 5.0, 280.0, 10.0),
                      LevelRecord(700.0, 3000.0, -5.0, 290.0, 15.2)]
        if level_count is None:
            level_count = len(levels) + 4
        return SoundingProfile(timestamp=datetime(year, month, day, hour),
                               level_count=level_count,
                               levels=tuple(levels))
    return factory
