import pytest

from airgrid.models import Dataset, Record


@pytest.fixture
def two_records():
    # both inside the London rectangle
    return [Record(12345, 520000, 180000, 10.0), Record(67890, 530000, 190000, 20.0)]


@pytest.fixture
def yearly_datasets(two_records):
    ds_2023 = Dataset("NO2", "2023", "Annual Mean", "ug m-3")
    ds_2023.replace_records(two_records)
    ds_2022 = Dataset("NO2", "2022", "Annual Mean", "ug m-3")
    ds_2022.replace_records(two_records)
    return [ds_2023, ds_2022]
