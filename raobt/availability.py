from datetime import datetime
from typing import Dict, Sequence

import numpy as np

from raobt.models import SoundingProfile


def summarize_availability(profiles: Sequence[SoundingProfile]) -> Dict:
    """
    Summarize which soundings are available in a sequence of profiles.

    Parameters
    ----------
    profiles : Sequence[SoundingProfile]
        Soundings sorted by time.

    Returns
    -------
    Dict
        {
            'num_total_soundings': int,
            'available_years': [year, ...],
            'num_soundings_per_year': {year: count},
            'num_days_per_year': {year: count of distinct days},
            'first_time': datetime or None,
            'last_time': datetime or None,
        }

    Examples
    --------
    >>> summary = summarize_availability(read_fsl_file("72518.fsl"))
    >>> summary['num_soundings_per_year']
    {2012: 730, 2013: 728}
    """
    availability = np.array([[p.year, p.month, p.day, p.hour] for p in profiles], dtype=int).reshape(-1, 4)

    if len(availability) == 0:
        return {
            'num_total_soundings': 0,
            'available_years': [],
            'num_soundings_per_year': {},
            'num_days_per_year': {},
            'first_time': None,
            'last_time': None,
        }

    years, counts = np.unique(availability[:, 0], return_counts=True)
    year_soundings = {int(year): int(count) for year, count in zip(years, counts)}

    year_days = {}
    for year in years:
        year_data = availability[availability[:, 0] == year]
        day_of_year = year_data[:, 1] * 100 + year_data[:, 2]
        year_days[int(year)] = int(len(np.unique(day_of_year)))

    return {
        'num_total_soundings': int(len(availability)),
        'available_years': [int(year) for year in years],
        'num_soundings_per_year': year_soundings,
        'num_days_per_year': year_days,
        'first_time': profiles[0].timestamp,
        'last_time': profiles[-1].timestamp,
    }


def covers_window(profiles: Sequence[SoundingProfile], start: datetime, end: datetime) -> bool:
    """Whether the soundings span the whole window from ``start`` to ``end``."""
    if len(profiles) == 0:
        return False
    return profiles[0].timestamp <= start and end <= profiles[-1].timestamp
