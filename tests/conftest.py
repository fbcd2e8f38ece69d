"""Shared fixtures for the saidistat tests."""

import pytest

from saidistat import store
from saidistat.ingestion import ingest_file

SURVEY_CSV = (
    "age,sex,group,score\n"
    "34,M,A,12.5\n"
    "45,F,A,\n"
    "29,F,A,10\n"
    "51,M,B,14\n"
    "38,F,B,11\n"
    "60,F,B,9\n"
).encode("utf-8")


@pytest.fixture
def survey_csv():
    return SURVEY_CSV


@pytest.fixture
def survey_dataset():
    return ingest_file("survey.csv", SURVEY_CSV)


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "saidistat-test.db")
    store.init_db(path)
    return path
