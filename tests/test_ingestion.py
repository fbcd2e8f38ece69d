"""Unit tests for uploaded file ingestion."""

import pandas as pd
import pytest

from saidistat.errors import IngestionError
from saidistat.ingestion import ColumnStatistics, describe_column, ingest_file, load_dataset


def test_dataset_summary(survey_dataset):
    assert survey_dataset.file_name == "survey.csv"
    assert survey_dataset.row_count == 6
    assert survey_dataset.column_count == 4
    assert survey_dataset.columns == ["age", "sex", "group", "score"]
    assert len(survey_dataset.preview) == 5
    assert survey_dataset.preview[0]["sex"] == "M"
    assert survey_dataset.preview[1]["score"] is None
    assert len(survey_dataset.frame) == 6


def test_numeric_column(survey_dataset):
    age = survey_dataset.column("age")
    assert age.is_numeric
    assert age.count == 6
    assert age.missing == 0
    assert age.mean == pytest.approx(42.83)
    assert age.median == pytest.approx(41.5)
    assert age.min == 29
    assert age.max == 60
    assert age.frequencies == []


def test_missing_values_are_counted(survey_dataset):
    score = survey_dataset.column("score")
    assert score.count == 5
    assert score.missing == 1


def test_text_column(survey_dataset):
    sex = survey_dataset.column("sex")
    assert sex.type == "text"
    assert sex.mode == "F"
    assert [(f.value, f.count, f.percentage) for f in sex.frequencies] == [("F", 4, 66.67), ("M", 2, 33.33)]
    assert sex.mean is None


def test_numeric_columns(survey_dataset):
    assert survey_dataset.numeric_columns == ["age", "score"]


def test_unknown_column(survey_dataset):
    with pytest.raises(KeyError):
        survey_dataset.column("weight")


def test_mostly_numeric_text_is_numeric():
    stats = describe_column(pd.Series(["1", "2", "x"], name="mixed"))
    assert stats.type == "numeric"
    assert stats.count == 3
    assert stats.mean == pytest.approx(1.5)


def test_blank_strings_are_missing():
    stats = describe_column(pd.Series(["a", " ", None, "a"], name="label"))
    assert stats.count == 2
    assert stats.missing == 2
    assert stats.mode == "a"


def test_column_statistics_round_trip(survey_dataset):
    sex = survey_dataset.column("sex")
    assert ColumnStatistics.from_dict(sex.to_dict()) == sex


@pytest.mark.parametrize("file_name, content", [
    ("survey.txt", b"a,b\n1,2\n"),
    ("survey.sav", b"\x00\x01"),
    ("empty.csv", b""),
    ("header_only.csv", b"a,b\n"),
])
def test_unreadable_files(file_name, content):
    with pytest.raises(IngestionError):
        load_dataset(file_name, content)


def test_extension_is_case_insensitive(survey_csv):
    assert ingest_file("SURVEY.CSV", survey_csv).row_count == 6
