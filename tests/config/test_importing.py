from __future__ import annotations

import pytest

from bulkimport.config import ConfigurationError, ImportConfig, get_import_config
from bulkimport.domain.model import NarrowerSort, UpdateMode

ENV_NAMES = (
    "BULKIMPORT_ENTITY_CHUNK_SIZE",
    "BULKIMPORT_RECORD_ID_CHUNK_SIZE",
    "BULKIMPORT_NARROWERS_SORT",
    "BULKIMPORT_UPDATE_MODE",
    "BULKIMPORT_MAX_RECORDS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment() -> None:
    config = get_import_config()

    assert config == ImportConfig()
    assert config.entity_chunk_size == 100
    assert config.record_id_chunk_size == 10_000
    assert config.narrowers_sort is NarrowerSort.BY_ID


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BULKIMPORT_ENTITY_CHUNK_SIZE", "25")
    monkeypatch.setenv("BULKIMPORT_NARROWERS_SORT", "Alpha")
    monkeypatch.setenv("BULKIMPORT_UPDATE_MODE", "append")

    config = get_import_config()

    assert config.entity_chunk_size == 25
    assert config.narrowers_sort is NarrowerSort.BY_LABEL
    assert config.update_mode is UpdateMode.APPEND


def test_unknown_enum_value_lists_the_choices(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BULKIMPORT_NARROWERS_SORT", "random")

    with pytest.raises(ConfigurationError) as exc:
        get_import_config()

    assert "BULKIMPORT_NARROWERS_SORT" in str(exc.value)


def test_chunk_sizes_must_be_positive() -> None:
    with pytest.raises(ConfigurationError):
        ImportConfig(entity_chunk_size=0)
