"""Tests for the model catalog."""

import pytest

from openanakin.core import ModelCatalog
from openanakin.core.exceptions import ModelNotFoundError


def test_lookup_returns_app_id():
    catalog = ModelCatalog({"gpt-4o": 10001, "gpt-4o-mini": 10002})
    assert catalog.app_id("gpt-4o") == 10001
    assert catalog.app_id("gpt-4o-mini") == 10002


def test_unknown_model_raises():
    catalog = ModelCatalog({"gpt-4o": 10001})
    with pytest.raises(ModelNotFoundError) as exc_info:
        catalog.app_id("GPT-4O")
    assert exc_info.value.model == "GPT-4O"


def test_invalid_app_ids_are_skipped(caplog):
    catalog = ModelCatalog({"ok": 1, "text": "10001", "flag": True, "none": None})
    assert catalog.names() == ["ok"]
    assert "Skipping model 'text'" in caplog.text


def test_container_protocol():
    catalog = ModelCatalog({"a": 1, "b": 2})
    assert "a" in catalog
    assert "c" not in catalog
    assert len(catalog) == 2
    assert list(catalog) == ["a", "b"]


def test_empty_catalog():
    catalog = ModelCatalog()
    assert len(catalog) == 0
    with pytest.raises(ModelNotFoundError):
        catalog.app_id("anything")
