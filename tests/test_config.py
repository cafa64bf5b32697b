import json

import pytest

from gator.config import CONFIG_FILE_NAME, Config, config_file_path, read


def test_config_file_path_is_in_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert config_file_path() == tmp_path / ".gatorconfig.json"
    assert config_file_path().name == CONFIG_FILE_NAME


def test_read_uses_json_keys(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text('{"db_url": "sqlite.db", "current_username": "alice"}')
    config = read(path)
    assert config.db_url == "sqlite.db"
    assert config.current_user_name == "alice"
    assert config.path == path


def test_read_missing_fields_default_to_empty(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text('{"db_url": "x.db", "other": 1}')
    config = read(path)
    assert config.db_url == "x.db"
    assert config.current_user_name == ""


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read(tmp_path / "absent.json")


def test_read_invalid_json_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        read(path)


def test_read_non_object_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        read(path)


def test_read_wrong_field_type_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text('{"db_url": 5}')
    with pytest.raises(ValueError):
        read(path)


def test_set_user_writes_compact_json(tmp_path):
    path = tmp_path / "cfg.json"
    config = Config(db_url="db.sqlite", path=path)
    config.set_user("bob")
    assert config.current_user_name == "bob"
    assert path.read_text() == '{"db_url":"db.sqlite","current_username":"bob"}'


def test_write_then_read_round_trip(tmp_path):
    path = tmp_path / "cfg.json"
    original = Config(db_url="data.db", current_user_name="carol", path=path)
    original.write()
    loaded = read(path)
    assert loaded == original
    assert json.loads(path.read_text()) == {
        "db_url": "data.db",
        "current_username": "carol",
    }


def test_write_defaults_to_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    Config(db_url="home.db").set_user("dave")
    loaded = read()
    assert loaded.db_url == "home.db"
    assert loaded.current_user_name == "dave"