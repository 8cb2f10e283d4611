"""
Statistics engine
=================

`StatisticsEngine` answers the regional questions asked of one or more
Datasets (typically one per year of the same pollutant):

1) Filter records by area ("All", or the bounded region by name)
2) Average level (missing/negative values ignored)
3) Average location of the filtered cells, as lat/lon
4) Peak cells (deduplicated across datasets, highest first)
5) Year-over-year trend of the regional average
6) Nearest cell to a grid coordinate, within a tolerance

Every query has a defined result on empty input (0.0, LatLon(0, 0), [],
None); nothing here raises because there is no data.

Tie-breaking:
- peaks: records with equal values keep the order in which they were
  first seen across the held datasets;
- nearest: the first record found at the smallest distance wins.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional, Sequence
import logging
import math

from .models import Dataset, Record
from .geo import CoordinateMapper, LatLon

logger = logging.getLogger(__name__)

AREA_ALL = "All"
DEFAULT_UNITS = "ug m-3"
DEFAULT_TOLERANCE = 1000.0  # 1km


class TrendPoint(NamedTuple):
    year: int
    average: float


class PeakEntry(NamedTuple):
    record: Record
    location: LatLon


class AverageSummary(NamedTuple):
    level: float
    location: LatLon


@dataclass
class StatisticsEngine:
    """Aggregate statistics over a list of Datasets.

    The engine stores:
    - datasets: held in the order given (trend points follow this order)
    - area: "All" or the mapper's region name
    - pollutant: label used for series names

    Datasets are only read, never modified.
    """
    datasets: Optional[List[Dataset]] = None
    area: str = AREA_ALL
    pollutant: Optional[str] = None
    mapper: CoordinateMapper = field(default_factory=CoordinateMapper)

    def __post_init__(self) -> None:
        self.datasets = list(self.datasets) if self.datasets is not None else []
        if self.pollutant is None:
            self.pollutant = self.datasets[0].pollutant if self.datasets else "Unknown"
        self._check_area(self.area)

    # ---------------- Selection ----------------
    def areas(self) -> List[str]:
        return [AREA_ALL, self.mapper.region.name]

    def _check_area(self, area: str) -> None:
        if area not in self.areas():
            raise ValueError(f"area must be one of: {', '.join(self.areas())} (got {area!r})")

    def set_area(self, area: str) -> None:
        self._check_area(area)
        self.area = area

    def set_pollutant(self, pollutant: str) -> None:
        self.pollutant = pollutant

    def units(self) -> str:
        return self.datasets[0].units if self.datasets else DEFAULT_UNITS

    def series_name(self) -> str:
        return f"{self.pollutant} Levels ({self.area})"

    # ---------------- Filtering ----------------
    def filter_by_area(self, records: Iterable[Record], area: Optional[str] = None) -> List[Record]:
        """Keep the records that belong to the selected area, in order."""
        area = self.area if area is None else area
        self._check_area(area)
        if area == AREA_ALL:
            return list(records)
        inside = self.mapper.is_within_region
        return [r for r in records if inside(r.x, r.y)]

    def filtered_data(self) -> List[Record]:
        """Area-filtered records of every held dataset, concatenated."""
        out: List[Record] = []
        for ds in self.datasets:
            out.extend(self.filter_by_area(ds.records))
        return out

    def has_data(self) -> bool:
        return any(self.filter_by_area(ds.records) for ds in self.datasets)

    # ---------------- Aggregates ----------------
    @staticmethod
    def average(records: Iterable[Record]) -> float:
        """Mean of the non-negative values; 0.0 if there are none."""
        total = 0.0
        count = 0
        for r in records:
            if r.value >= 0:
                total += r.value
                count += 1
        return total / count if count else 0.0

    def average_location(self) -> LatLon:
        """Lat/lon of the mean Easting/Northing of the filtered data.

        LatLon(0, 0) means "no location" (nothing to average).
        """
        data = self.filtered_data()
        if not data:
            return LatLon(0.0, 0.0)
        mean_e = sum(r.x for r in data) / len(data)
        mean_n = sum(r.y for r in data) / len(data)
        return self.mapper.to_lat_lon(mean_e, mean_n)

    def average_summary(self) -> Optional[AverageSummary]:
        """Average level and location, or None when the view holds no data."""
        data = self.filtered_data()
        if not data:
            return None
        return AverageSummary(self.average(data), self.average_location())

    def peak_entries(self, n: int = 3) -> List[Record]:
        """Up to `n` distinct records with the highest values, highest first."""
        unique = dict.fromkeys(self.filtered_data())  # keeps first-seen order
        valid = [r for r in unique if r.value >= 0]
        # sorted() stays stable with reverse=True, so ties keep first-seen order
        ranked = sorted(valid, key=lambda r: r.value, reverse=True)
        return ranked[:max(n, 0)]

    def peak_summaries(self, n: int = 3) -> List[PeakEntry]:
        return [PeakEntry(r, self.mapper.to_lat_lon(r.x, r.y)) for r in self.peak_entries(n)]

    def trend_series(self, pollutant: Optional[str] = None, area: Optional[str] = None) -> List[TrendPoint]:
        """One (year, average) point per held dataset, in the order held.

        `pollutant`, when given, limits the series to datasets of that
        pollutant (case-insensitive); `area` overrides the selected area.
        Both apply to this call only.
        """
        wanted = pollutant.strip().lower() if pollutant is not None else None
        return [TrendPoint(ds.year_number(), self.average(self.filter_by_area(ds.records, area)))
                for ds in self.datasets
                if wanted is None or ds.pollutant.strip().lower() == wanted]

    # ---------------- Point lookup ----------------
    def nearest_record(self, easting: float, northing: float,
                       tolerance: float = DEFAULT_TOLERANCE) -> Optional[Record]:
        """Closest filtered record within `tolerance` metres, or None."""
        closest: Optional[Record] = None
        best = math.inf
        for r in self.filtered_data():
            d = math.hypot(r.x - easting, r.y - northing)
            # strict < keeps the first record found on ties
            if d <= tolerance and d < best:
                best = d
                closest = r
        if closest is not None:
            logger.debug("Closest record at E=%d N=%d, distance=%.1f", closest.x, closest.y, best)
        return closest

    def nearest_value(self, easting: float, northing: float,
                      tolerance: float = DEFAULT_TOLERANCE) -> Optional[float]:
        """Value of the closest record within tolerance; None means no match."""
        rec = self.nearest_record(easting, northing, tolerance)
        return rec.value if rec is not None else None


def peak_labels(engine: StatisticsEngine, n: int = 3) -> Sequence[str]:
    """Human-readable peak lines, e.g. 'Grid 67890: 20.00 ug m-3 (Lat: ..., Lon: ...)'."""
    units = engine.units()
    return [f"Grid {p.record.grid_code}: {p.record.value:.2f} {units} ({p.location})"
            for p in engine.peak_summaries(n)]
