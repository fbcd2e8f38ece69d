"""Tests for the SQLite account and saved-analysis store."""

import pytest

from saidistat import store
from saidistat.errors import InvalidInputError

RESULT = {"type": "frequency", "statistics": []}


def test_register_and_login(db_path):
    assert store.create_user("amina", "s3cret", db_path=db_path) is True
    user_id = store.authenticate_user("amina", "s3cret", db_path=db_path)
    assert isinstance(user_id, int)


def test_duplicate_username(db_path):
    store.create_user("amina", "s3cret", db_path=db_path)
    assert store.create_user("amina", "other", db_path=db_path) is False


def test_wrong_password_or_unknown_user(db_path):
    store.create_user("amina", "s3cret", db_path=db_path)
    assert store.authenticate_user("amina", "wrong", db_path=db_path) is None
    assert store.authenticate_user("nobody", "s3cret", db_path=db_path) is None


def test_password_is_hashed(db_path):
    store.create_user("amina", "s3cret", db_path=db_path)
    conn = store.get_connection(db_path)
    (password_hash,) = conn.execute("SELECT password_hash FROM users").fetchone()
    conn.close()
    assert password_hash != "s3cret"
    assert password_hash.startswith("$2")


@pytest.mark.parametrize("username, password", [("", "x"), ("amina", "")])
def test_credentials_are_required(db_path, username, password):
    with pytest.raises(InvalidInputError):
        store.create_user(username, password, db_path=db_path)


def test_save_and_reload_analysis(db_path):
    analysis_id = store.save_analysis(1, " Malaria survey ", "frequency", "survey.csv", ["age", "sex"], RESULT,
                                      db_path=db_path)
    record = store.get_saved_analysis(1, analysis_id, db_path=db_path)
    assert record["analysis_name"] == "Malaria survey"
    assert record["analysis_type"] == "frequency"
    assert record["file_name"] == "survey.csv"
    assert record["selected_variables"] == ["age", "sex"]
    assert record["results"] == RESULT
    assert record["created_at"]


def test_missing_file_name_is_recorded_as_unknown(db_path):
    analysis_id = store.save_analysis(1, "x", "frequency", None, [], RESULT, db_path=db_path)
    assert store.get_saved_analysis(1, analysis_id, db_path=db_path)["file_name"] == "Unknown"


def test_analysis_name_is_required(db_path):
    with pytest.raises(InvalidInputError):
        store.save_analysis(1, "   ", "frequency", "survey.csv", [], RESULT, db_path=db_path)


def test_list_is_newest_first_and_per_user(db_path):
    first = store.save_analysis(1, "first", "frequency", "a.csv", [], RESULT, db_path=db_path)
    second = store.save_analysis(1, "second", "frequency", "b.csv", [], RESULT, db_path=db_path)
    store.save_analysis(2, "other user", "frequency", "c.csv", [], RESULT, db_path=db_path)
    assert [r["id"] for r in store.list_saved_analyses(1, db_path=db_path)] == [second, first]
    assert store.get_saved_analysis(2, first, db_path=db_path) is None


def test_delete_only_own_analysis(db_path):
    analysis_id = store.save_analysis(1, "mine", "frequency", "a.csv", [], RESULT, db_path=db_path)
    assert store.delete_saved_analysis(2, analysis_id, db_path=db_path) is False
    assert store.delete_saved_analysis(1, analysis_id, db_path=db_path) is True
    assert store.list_saved_analyses(1, db_path=db_path) == []
