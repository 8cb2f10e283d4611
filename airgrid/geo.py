"""
Region & coordinate mapping
===========================

The analysis region is one fixed rectangle of the British national grid
(Easting/Northing, metres). Its four edges are paired with the latitude and
longitude of the same corners, and `CoordinateMapper` converts between the
two spaces by plain linear interpolation inside that box.

Coordinates outside the box are clamped to its edges, never extrapolated.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import NamedTuple, Tuple

# Native resolution of the data: one value per 1km x 1km cell
GRID_RESOLUTION = 1000


class LatLon(NamedTuple):
    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"Lat: {self.latitude:.6f}, Lon: {self.longitude:.6f}"


@dataclass(frozen=True)
class Region:
    """A named rectangle with calibrated lat/lon corners."""
    name: str
    left: int
    right: int
    top: int
    bottom: int
    min_lat: float      # at bottom
    max_lat: float      # at top
    min_lon: float      # at left
    max_lon: float      # at right


LONDON = Region(
    name="London",
    left=510394,
    right=553297,
    top=193305,
    bottom=168504,
    min_lat=51.395246,
    max_lat=51.627741,
    min_lon=-0.40653443,
    max_lon=0.20205370,
)


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


@dataclass(frozen=True)
class CoordinateMapper:
    """Stateless transform between grid coordinates and lat/lon."""
    region: Region = field(default=LONDON)

    def to_lat_lon(self, easting: float, northing: float) -> LatLon:
        """Map Easting/Northing to latitude/longitude.

        Each axis is clamped to the region first, so the result is always
        inside the calibrated lat/lon box.
        """
        r = self.region
        e = _clamp(easting, r.left, r.right)
        n = _clamp(northing, r.bottom, r.top)

        # fraction of the way across each axis, 0.0 at bottom/left, 1.0 at top/right
        tn = (n - r.bottom) / (r.top - r.bottom)
        te = (e - r.left) / (r.right - r.left)
        # weighted form so the calibration corners come back exactly
        lat = r.min_lat * (1.0 - tn) + r.max_lat * tn
        lon = r.min_lon * (1.0 - te) + r.max_lon * te
        return LatLon(lat, lon)

    def is_within_region(self, easting: float, northing: float) -> bool:
        """Inclusive bounds check, no clamping."""
        r = self.region
        return r.left <= easting <= r.right and r.bottom <= northing <= r.top

    def cell_origin(self, col: int, row: int, resolution: int = GRID_RESOLUTION) -> Tuple[int, int]:
        """Easting/Northing of a display cell (rows grow southward)."""
        r = self.region
        return r.left + col * resolution, r.top - row * resolution
