"""
Dataset loader (PCM CSV -> Dataset)
===================================

This module reads DEFRA PCM style pollution grid files and turns them into
`Dataset` objects. A file looks like:

    Pollutant,NO2
    Year,2023
    Metric,Annual Mean
    Units,ug m-3
    gridcode,x,y,no22023
    544,510500,168500,MISSING
    545,511500,168500,23.41
    ...

Key ideas:
- The lines before the `gridcode,...` header are `label,value` metadata.
- Data rows are read with pandas as plain strings; turning them into numbers
  (and unreadable ones into the missing sentinel) is `Dataset.add_data`'s job.
- Region filtering builds a *new* Dataset, so a nationwide dataset and its
  region view can be kept side by side.
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple, Union
import logging

import pandas as pd

from .models import Dataset
from .geo import CoordinateMapper, LONDON, Region

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

HEADER_FIELD = "gridcode"
METADATA_KEYS = ("pollutant", "year", "metric", "units")

# pollutant label -> (sub directory, file name pattern)
DATA_FILES = {
    "no2": ("NO2", "mapno2{year}.csv"),
    "pm10": ("pm10", "mappm10{year}g.csv"),
    "pm25": ("pm2.5", "mappm25{year}g.csv"),
    "pm2.5": ("pm2.5", "mappm25{year}g.csv"),
}


class DataFileError(ValueError):
    pass


def _norm(s: str) -> str:
    return str(s).strip().strip("\"").strip(":").strip().lower()


def parse_rows(rows: Iterable[Sequence[str]], pollutant: str, year: str,
               metric: str = "", units: str = "") -> Dataset:
    """Build a Dataset from rows that are already split into four fields."""
    ds = Dataset(pollutant, year, metric, units)
    for row in rows:
        ds.add_data(row)
    return ds


def _read_prelude(path: Path) -> Tuple[int, Dict[str, str]]:
    """Return (header line number, metadata) of a PCM file."""
    meta: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8-sig") as f:
        for lineno, line in enumerate(f):
            fields = [p.strip() for p in line.rstrip("\r\n").split(",")]
            if _norm(fields[0]) == HEADER_FIELD:
                return lineno, meta
            key = _norm(fields[0])
            if key in METADATA_KEYS and len(fields) >= 2:
                meta[key] = fields[1].strip("\"")
    raise DataFileError(f"No '{HEADER_FIELD},x,y,...' header row found in {path}")


def load_pcm_csv(path: PathLike, region_only: bool = False, *,
                 region: Region = LONDON, **overrides: str) -> Dataset:
    """Load one PCM grid file.

    `overrides` (pollutant=, year=, metric=, units=) replace or fill in the
    metadata read from the file. With `region_only=True` the returned
    Dataset holds only the records inside `region`.
    """
    unknown = set(overrides) - set(METADATA_KEYS)
    if unknown:
        raise TypeError(f"Unexpected metadata override(s): {', '.join(sorted(unknown))}")

    path = Path(path)
    header_line, meta = _read_prelude(path)
    meta.update({k: v for k, v in overrides.items() if v is not None})

    try:
        df = pd.read_csv(path, skiprows=header_line, dtype=str, keep_default_na=False,
                         encoding="utf-8-sig")
    except pd.errors.ParserError as e:
        raise DataFileError(f"Malformed data rows in {path}: {e}") from e
    if df.shape[1] < 4:
        raise DataFileError(f"Expected 4 columns (gridcode, x, y, value) in {path}, got {df.shape[1]}")

    ds = parse_rows(df.iloc[:, :4].itertuples(index=False, name=None),
                    pollutant=meta.get("pollutant", ""), year=meta.get("year", ""),
                    metric=meta.get("metric", ""), units=meta.get("units", ""))
    logger.info("Loaded %d records from %s", len(ds), path)

    if region_only:
        ds = restrict_to_region(ds, region)
    return ds


def restrict_to_region(dataset: Dataset, region: Region = LONDON) -> Dataset:
    """New Dataset with only the records inside `region`.

    Metadata and min/max bounds are carried over from the source; the source
    dataset is left untouched.
    """
    inside = CoordinateMapper(region).is_within_region
    out = dataset.copy_empty()
    out.replace_records(r for r in dataset.records if inside(r.x, r.y))
    logger.debug("Restricted %s %s to %s: %d of %d records", dataset.pollutant, dataset.year,
                 region.name, len(out), len(dataset))
    return out


def data_file_path(root: PathLike, pollutant: str, year: Union[str, int]) -> Path:
    """Location of a pollutant/year file under a data root directory."""
    key = pollutant.strip().lower()
    if key not in DATA_FILES:
        raise ValueError(f"Unknown pollutant {pollutant!r}; expected one of: no2, pm10, pm25")
    sub, pattern = DATA_FILES[key]
    return Path(root) / sub / pattern.format(year=year)


def load_years(root: PathLike, pollutant: str, years: Iterable[Union[str, int]],
               region_only: bool = False, *, region: Region = LONDON) -> List[Dataset]:
    """Load one Dataset per year, in the order given.

    Years whose file is missing or holds no records are skipped.
    """
    out: List[Dataset] = []
    for y in years:
        path = data_file_path(root, pollutant, y)
        if not path.exists():
            logger.warning("No data file for %s %s at %s", pollutant, y, path)
            continue
        ds = load_pcm_csv(path, region_only, region=region, year=str(y))
        if not len(ds):
            logger.warning("Data file %s holds no records", path)
            continue
        out.append(ds)
    return out
