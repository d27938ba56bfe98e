"""Tests for scheduler settings and their storage."""

import json

import pytest
from pydantic import ValidationError

from roundtable.config import DEFAULTS, load_settings


def test_defaults():
    assert DEFAULTS.context_window == 15
    assert DEFAULTS.generation_timeout == 60.0
    assert DEFAULTS.settle_delay > 0


def test_load_none_gives_defaults():
    assert load_settings(None) == DEFAULTS


def test_unknown_keys_ignored():
    s = load_settings({"turn_delay": 3, "font_size": 12})
    assert s.turn_delay == 3
    assert not hasattr(s, "font_size")


def test_negative_delay_rejected():
    with pytest.raises(ValidationError):
        load_settings({"turn_delay": -1})


def test_get_config_without_file(store):
    assert store.get_config() == DEFAULTS


def test_update_config_merges_and_persists(store):
    store.update_config({"turn_delay": 0.25})
    result = store.update_config({"context_window": 5})
    assert result.turn_delay == 0.25
    assert result.context_window == 5

    raw = json.loads((store.base_path / "config.json").read_text())
    assert raw["context_window"] == 5
    assert store.get_config() == result


def test_invalid_update_not_written(store):
    with pytest.raises(ValidationError):
        store.update_config({"context_window": -3})
    assert not (store.base_path / "config.json").exists()
