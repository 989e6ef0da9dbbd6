import json

import pytest

from gristsync.config import SourceType, SyncSettings
from gristsync.errors import ConfigurationError
from gristsync.extractors.api_extractor import RestExtractor
from gristsync.extractors.file_extractor import FileExtractor, StaticExtractor
from gristsync.models.sync import SyncMode


def _settings(**overrides):
    data = {
        "destination": {"doc_id": "doc1", "table_id": "People"},
        "source": {"type": "rest", "url": "https://api.example.com/people"},
        "mapping": [{"destination_column": "Email", "source_path": "email"}],
        "sync": {"mode": "upsert", "unique_key": "Email"},
    }
    data.update(overrides)
    return data


def test_full_settings():
    settings = SyncSettings.from_dict(_settings())
    config = settings.sync_config()

    assert config.mode == SyncMode.UPSERT
    assert config.unique_key == "Email"
    assert config.auto_create_columns is True
    assert [m.source_path for m in settings.field_mappings()] == ["email"]
    assert isinstance(settings.source.create_extractor(), RestExtractor)


def test_mapping_dict_shorthand():
    settings = SyncSettings.from_dict(_settings(mapping={"Email": "email", "City": "address.city"}))
    assert [(m.destination_column, m.source_path) for m in settings.field_mappings()] == [
        ("Email", "email"),
        ("City", "address.city"),
    ]


def test_destination_from_url_explicit_fields_win():
    settings = SyncSettings.from_dict(_settings(destination={
        "url": "https://grist.example.com/o/team/doc/abc/p/3",
        "table_id": "Contacts",
    }))
    destination = settings.destination
    assert (destination.doc_id, destination.table_id, destination.api_url) == (
        "abc", "Contacts", "https://grist.example.com",
    )


@pytest.mark.parametrize(
    "destination",
    [
        {"table_id": "People"},
        {"doc_id": "doc1"},
        {"url": "not-a-url", "table_id": "People"},
    ],
)
def test_invalid_destination(destination):
    with pytest.raises(ConfigurationError):
        SyncSettings.from_dict(_settings(destination=destination))


def test_invalid_mode_and_sources():
    with pytest.raises(ConfigurationError):
        SyncSettings.from_dict(_settings(sync={"mode": "replace"}))
    with pytest.raises(ConfigurationError):
        SyncSettings.from_dict(_settings(source={"type": "rest"}))
    with pytest.raises(ConfigurationError):
        SyncSettings.from_dict(_settings(source={"type": "file"}))


def test_mode_is_case_insensitive():
    assert SyncSettings.from_dict(_settings(sync={"mode": "ADD"})).sync_config().mode == SyncMode.ADD


def test_token_resolution(monkeypatch):
    monkeypatch.setenv("GRIST_API_TOKEN", "from-env")
    monkeypatch.setenv("MY_TOKEN", "expanded")

    settings = SyncSettings.from_dict(_settings())
    assert settings.destination.token() == "from-env"

    settings = SyncSettings.from_dict(_settings(destination={
        "doc_id": "d", "table_id": "t", "api_token": "${MY_TOKEN}",
    }))
    assert settings.destination.token() == "expanded"
    assert settings.destination.create_client().api_token == "expanded"


def test_source_types(tmp_path):
    settings = SyncSettings.from_dict(_settings(source={"type": "file", "path": str(tmp_path / "x.json")}))
    assert isinstance(settings.source.create_extractor(), FileExtractor)

    settings = SyncSettings.from_dict(_settings(source={"type": "inline", "records": [{"a": 1}]}))
    assert settings.source.type == SourceType.INLINE
    assert isinstance(settings.source.create_extractor(), StaticExtractor)


def test_load_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(_settings()))
    assert SyncSettings.load(path).destination.doc_id == "doc1"

    with pytest.raises(ConfigurationError):
        SyncSettings.load(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{")
    with pytest.raises(ConfigurationError):
        SyncSettings.load(broken)
