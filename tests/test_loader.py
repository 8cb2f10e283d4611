import pytest

from airgrid.loader import (DataFileError, data_file_path, load_pcm_csv, load_years,
                            parse_rows, restrict_to_region)
from airgrid.models import MISSING_VALUE, Record

PCM_TEXT = """Pollutant,NO2
Year,2023
Metric,Annual Mean
Units,ug m-3
gridcode,x,y,no22023
544,510500,168600,MISSING
545,520000,180000,23.5
546,400000,100000,41.0
547,530000,190000,12.25
"""


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_rows_builds_dataset():
    ds = parse_rows([("1", "520000", "180000", "4.0"), ("2", "x", "180000", "")], "PM10", "2019")
    assert ds.pollutant == "PM10"
    assert list(ds) == [Record(1, 520000, 180000, 4.0), Record(2, MISSING_VALUE, 180000, -1.0)]
    assert ds.max_value == 4.0


def test_load_pcm_csv_reads_metadata_and_rows(tmp_path):
    ds = load_pcm_csv(_write(tmp_path / "mapno22023.csv", PCM_TEXT))
    assert (ds.pollutant, ds.year, ds.metric, ds.units) == ("NO2", "2023", "Annual Mean", "ug m-3")
    assert len(ds) == 4
    assert ds.records[0] == Record(544, 510500, 168600, -1.0)
    assert ds.records[3] == Record(547, 530000, 190000, 12.25)
    assert (ds.min_value, ds.max_value) == (12.25, 41.0)


def test_load_pcm_csv_region_only(tmp_path):
    ds = load_pcm_csv(_write(tmp_path / "mapno22023.csv", PCM_TEXT), region_only=True)
    assert [r.grid_code for r in ds] == [544, 545, 547]
    # bounds still describe the whole file
    assert ds.max_value == 41.0


def test_overrides_fill_metadata(tmp_path):
    text = "gridcode,x,y,value\n1,520000,180000,3.0\n"
    ds = load_pcm_csv(_write(tmp_path / "bare.csv", text), pollutant="PM10", year="2018")
    assert (ds.pollutant, ds.year, ds.metric) == ("PM10", "2018", "")
    assert len(ds) == 1


def test_missing_header_raises(tmp_path):
    with pytest.raises(DataFileError):
        load_pcm_csv(_write(tmp_path / "bad.csv", "Pollutant,NO2\n1,2,3,4\n"))


def test_too_few_columns_raises(tmp_path):
    with pytest.raises(DataFileError):
        load_pcm_csv(_write(tmp_path / "narrow.csv", "gridcode,x,y\n1,2,3\n"))


def test_restrict_to_region_leaves_source_untouched(tmp_path):
    full = load_pcm_csv(_write(tmp_path / "mapno22023.csv", PCM_TEXT))
    london = restrict_to_region(full)
    assert len(full) == 4
    assert len(london) == 3
    assert london.records[0] is full.records[0]
    assert (london.pollutant, london.year) == (full.pollutant, full.year)


@pytest.mark.parametrize("pollutant, year, expected", [
    ("NO2", 2023, "NO2/mapno22023.csv"),
    ("pm10", "2019", "pm10/mappm102019g.csv"),
    ("PM25", 2020, "pm2.5/mappm252020g.csv"),
    ("PM2.5", 2021, "pm2.5/mappm252021g.csv"),
])
def test_data_file_path(tmp_path, pollutant, year, expected):
    assert data_file_path(tmp_path, pollutant, year) == tmp_path / expected


def test_data_file_path_unknown_pollutant(tmp_path):
    with pytest.raises(ValueError):
        data_file_path(tmp_path, "SO2", 2023)


def test_load_years_skips_missing_and_empty(tmp_path):
    _write(data_file_path(tmp_path, "NO2", 2021), PCM_TEXT.replace("2023", "2021"))
    _write(data_file_path(tmp_path, "NO2", 2022), "gridcode,x,y,no22022\n")
    _write(data_file_path(tmp_path, "NO2", 2023), PCM_TEXT)
    loaded = load_years(tmp_path, "NO2", [2023, 2020, 2022, 2021])
    assert [ds.year for ds in loaded] == ["2023", "2021"]


def test_ragged_data_row_raises_data_file_error(tmp_path):
    text = "gridcode,x,y,value\n1,520000,180000,3.0\n2,521000,180000,4.0,extra,fields\n"
    with pytest.raises(DataFileError):
        load_pcm_csv(_write(tmp_path / "ragged.csv", text))


def test_unknown_override_is_rejected(tmp_path):
    path = _write(tmp_path / "mapno22023.csv", PCM_TEXT)
    with pytest.raises(TypeError):
        load_pcm_csv(path, polutant="NO2")
