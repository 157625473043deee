"""The output row type of the reshaping step."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class DailyKwhRow:
    """One case's energy figure for one day; shift_hour is "YYYYMMDD"."""

    caseid: str
    plant_name: str | None
    shift_hour: str
    daily_kwh: Decimal | None