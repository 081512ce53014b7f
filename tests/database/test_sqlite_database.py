import pytest

from core.database import DatabaseFactory, SQLiteDatabase
from utils.exceptions import DuplicateKeyError, RecordValidationError, StoreUnavailableError


def _user(name: str):
    return {"username": name, "password_hash": "x", "role": "user"}


def test_factory_types(tmp_path):
    file_db = DatabaseFactory.create_database({"type": "sqlite", "path": str(tmp_path / "db" / "test.db")})
    assert isinstance(file_db, SQLiteDatabase)
    assert (tmp_path / "db").is_dir()

    memory_db = DatabaseFactory.create_database({"type": "memory"})
    assert memory_db.db_path == ":memory:"

    with pytest.raises(ValueError):
        DatabaseFactory.create_database({"type": "postgres"})


def test_crud_and_filters(db):
    ids = [db.insert("users", _user(name)) for name in ("a", "b", "c")]
    assert db.count("users") == 3
    assert db.find_one("users", {"id": ids[1]})["username"] == "b"
    assert [r["username"] for r in db.find("users", {"id__lt": ids[2]}, order_by="id DESC")] == ["b", "a"]
    assert [r["username"] for r in db.find("users", {"id__gt": ids[0]}, order_by="id ASC", limit=1)] == ["b"]
    assert db.count("users", {"id__gt": ids[0]}) == 2

    assert db.update("users", {"id": ids[0]}, {"role": "admin"}) == 1
    assert db.find_one("users", {"id": ids[0]})["role"] == "admin"
    assert db.delete("users", {"id": ids[2]}) == 1
    assert db.delete("users", {"id": ids[2]}) == 0


def test_unique_violation_raises_duplicate_key(db):
    db.insert("users", _user("a"))
    with pytest.raises(DuplicateKeyError):
        db.insert("users", _user("a"))
    assert db.count("users") == 1


def test_foreign_key_violation_is_a_validation_error(db):
    with pytest.raises(RecordValidationError):
        db.insert("ip_whitelist", {"ip_address": "10.0.0.1", "description": "x", "created_at": "2024-01-01", "created_by": 999})
    assert db.count("ip_whitelist") == 0


def test_bad_statement_raises_store_unavailable(db):
    with pytest.raises(StoreUnavailableError):
        db.insert("no_such_table", {"x": 1})


def test_rejects_unsafe_identifiers_and_order(db):
    with pytest.raises(ValueError):
        db.find("users; DROP TABLE users", {})
    with pytest.raises(ValueError):
        db.find("users", order_by="id; DROP TABLE users")
    with pytest.raises(ValueError):
        db.find("users", {"id__in": [1]})


def test_ping(db):
    assert db.ping() is True
