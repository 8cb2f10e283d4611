"""
Grid index (display cells -> records)
=====================================

`GridIndex` lays the records of one Dataset onto a fixed COLUMNS x ROWS
array of display cells, so "what is in cell (col, row)?" is an O(1) lookup.

    col = (easting  - region.left) / 1000
    row = (region.top - northing)  / 1000     (row grows southward)

Both divisions truncate toward zero. Points whose cell falls outside the
array are skipped. When two records land on the same cell the later one
wins (no averaging).

The index also keeps the value bounds of the loaded dataset and splits them
into five equal-width bands for whoever paints the map.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
import logging

import numpy as np

from .models import Dataset, Record
from .geo import GRID_RESOLUTION, LONDON, Region

logger = logging.getLogger(__name__)

BAND_COUNT = 5


@dataclass(frozen=True)
class DisplayGrid:
    """Size of the display array, independent of the data's resolution."""
    columns: int = 43
    rows: int = 24


class GridIndex:
    """Dense cell array for one loaded Dataset."""

    def __init__(self, grid: DisplayGrid = DisplayGrid(), region: Region = LONDON,
                 resolution: int = GRID_RESOLUTION) -> None:
        self.grid = grid
        self.region = region
        self.resolution = resolution
        self._cells = np.empty((grid.columns, grid.rows), dtype=object)
        self.dataset: Optional[Dataset] = None
        self.min_value = 0.0
        self.max_value = 0.0
        self.band_width = 0.0

    @property
    def columns(self) -> int:
        return self.grid.columns

    @property
    def rows(self) -> int:
        return self.grid.rows

    def reset(self) -> None:
        """Clear every cell and forget the loaded dataset."""
        self._cells.fill(None)
        self.dataset = None
        self.min_value = 0.0
        self.max_value = 0.0
        self.band_width = 0.0

    def load(self, dataset: Dataset) -> int:
        """Reset, then index every record of `dataset`.

        Returns the number of records that landed inside the grid.
        """
        self.reset()
        self.dataset = dataset
        # an all-missing dataset has no finite bounds; leave them at 0
        if dataset.has_bounds():
            self.min_value = dataset.min_value
            self.max_value = dataset.max_value
            self.band_width = (self.max_value - self.min_value) / BAND_COUNT

        placed = 0
        for rec in dataset.records:
            cell = self.cell_for(rec.x, rec.y)
            if cell is None:
                continue
            col, row = cell
            self._cells[col, row] = rec
            placed += 1
        logger.debug("Indexed %d of %d records for %s %s", placed, len(dataset),
                     dataset.pollutant, dataset.year)
        return placed

    def cell_for(self, easting: int, northing: int) -> Optional[Tuple[int, int]]:
        """Return (col, row) for a grid coordinate, or None if off the array."""
        col = int((easting - self.region.left) / self.resolution)
        row = int((self.region.top - northing) / self.resolution)
        if 0 <= col < self.grid.columns and 0 <= row < self.grid.rows:
            return col, row
        return None

    def cell_at(self, col: int, row: int) -> Optional[Record]:
        """Record stored in (col, row), or None for an empty/out-of-range cell."""
        if not (0 <= col < self.grid.columns and 0 <= row < self.grid.rows):
            return None
        return self._cells[col, row]

    def lookup(self, col: int, row: int) -> Optional[float]:
        """Pollution value of a cell; None if empty or the value is missing."""
        rec = self.cell_at(col, row)
        if rec is None or rec.is_missing():
            return None
        return rec.value

    def occupied(self) -> Iterator[Tuple[Tuple[int, int], Record]]:
        """Yield ((col, row), record) for every filled cell, column by column."""
        for col in range(self.grid.columns):
            for row in range(self.grid.rows):
                rec = self._cells[col, row]
                if rec is not None:
                    yield (col, row), rec

    def band_for(self, value: float) -> int:
        """Colour band 1..5 of a value.

        Band k (1-4) holds values up to and including min + width*k; band 5
        takes everything above that, float residue included.
        """
        for k in range(1, BAND_COUNT):
            if value <= self.min_value + self.band_width * k:
                return k
        return BAND_COUNT

    def values_array(self) -> np.ndarray:
        """Values as a (rows, columns) float array, NaN where there is no value."""
        out = np.full((self.grid.rows, self.grid.columns), np.nan, dtype=float)
        for (col, row), rec in self.occupied():
            if not rec.is_missing():
                out[row, col] = rec.value
        return out


def build_grid_index(dataset: Dataset, grid: DisplayGrid = DisplayGrid(),
                     region: Region = LONDON) -> GridIndex:
    """Build a GridIndex for `dataset` in one call."""
    idx = GridIndex(grid=grid, region=region)
    idx.load(dataset)
    return idx
