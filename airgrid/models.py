"""
Data model (Record, Dataset)
============================

Each row of a pollution grid file becomes one `Record`:

    gridcode, x (Easting), y (Northing), value

Records are immutable (`frozen=True`) so that:
- a record can be shared by reference between a nationwide dataset and any
  region-filtered view of it, and
- structural equality/hash works, which the peak ranking relies on to
  deduplicate records that appear in more than one dataset.

A `Dataset` holds the records of one file plus its descriptive metadata and
keeps a running min/max of the valid values seen so far.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence
import math

# Stored for any field that could not be read (and for "no value" cells)
MISSING_VALUE = -1


@dataclass(frozen=True)
class Record:
    """Immutable record for one grid cell measurement."""
    grid_code: int
    x: int
    y: int
    value: float

    def is_missing(self) -> bool:
        """True if the cell carries no usable pollution value."""
        return self.value < 0


def _to_int(s) -> int:
    """Convert a field to int, returning MISSING_VALUE if invalid."""
    try: return int(str(s).strip())
    except (TypeError, ValueError): return MISSING_VALUE


def _to_float(s) -> float:
    """Convert a field to float, returning MISSING_VALUE if invalid."""
    try: v = float(str(s).strip())
    except (TypeError, ValueError): return float(MISSING_VALUE)
    # "nan" and "inf" parse in Python but are not readable values
    return v if math.isfinite(v) else float(MISSING_VALUE)


class Dataset:
    """All the data points from one pollution data file.

    `min_value` starts at +inf and `max_value` at 0. Both only move when a
    valid (non-missing) value is added. An all-missing dataset therefore
    reports max 0 and min +inf.
    """

    def __init__(self, pollutant: str, year: str, metric: str, units: str) -> None:
        self._pollutant = pollutant
        self._year = year
        self._metric = metric
        self._units = units
        self._records: List[Record] = []
        self._min_value = math.inf
        self._max_value = 0.0

    @property
    def pollutant(self) -> str:
        return self._pollutant

    @property
    def year(self) -> str:
        return self._year

    @property
    def metric(self) -> str:
        return self._metric

    @property
    def units(self) -> str:
        return self._units

    @property
    def records(self) -> Sequence[Record]:
        return self._records

    @property
    def min_value(self) -> float:
        return self._min_value

    @property
    def max_value(self) -> float:
        return self._max_value

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def year_number(self) -> int:
        """Year label as an int (MISSING_VALUE when it is not a number)."""
        return _to_int(self._year)

    def has_bounds(self) -> bool:
        """True once at least one valid value has been added."""
        return not math.isinf(self._min_value)

    def add_data(self, fields: Sequence[str]) -> Record:
        """Add one row of four string fields: gridcode, x, y, value.

        Unreadable fields are stored as MISSING_VALUE; this never raises.
        """
        value = _to_float(fields[3])
        rec = Record(_to_int(fields[0]), _to_int(fields[1]), _to_int(fields[2]), value)
        self._records.append(rec)

        if value != MISSING_VALUE:
            if value < self._min_value:
                self._min_value = value
            if value > self._max_value:
                self._max_value = value
        return rec

    def copy_empty(self) -> Dataset:
        """New, empty Dataset with the same metadata and min/max bounds."""
        out = Dataset(self._pollutant, self._year, self._metric, self._units)
        out._min_value = self._min_value
        out._max_value = self._max_value
        return out

    def replace_records(self, records: Iterable[Record]) -> None:
        """Replace the whole record sequence.

        Used once, right after construction, to narrow a dataset down to a
        region. The min/max bounds are left as they were.
        """
        self._records = list(records)

    def describe(self) -> str:
        return (f"Dataset: Pollutant: {self._pollutant}, Year: {self._year}, "
                f"Metric: {self._metric}, Units: {self._units} ({len(self._records)} data points)")

    def __repr__(self) -> str:
        return f"Dataset({self._pollutant!r}, {self._year!r}, n={len(self._records)})"
