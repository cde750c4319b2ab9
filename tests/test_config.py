import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from wa_relay.config import RelayConfig, load_config
from wa_relay.dispatcher import DEFAULT_FAILURE_NOTICE


def test_defaults():
    cfg = RelayConfig()
    assert cfg.gateway_url == "http://127.0.0.1:8080"
    assert cfg.session_file == Path.home() / ".wa-relay" / "session.json"
    assert cfg.timeout == 5
    assert cfg.reconnect_time == 30
    assert cfg.trigger_tag == "!bot"
    assert cfg.test_mode is False
    assert cfg.reply_delay == 0
    assert cfg.failure_notice == DEFAULT_FAILURE_NOTICE


def test_session_file_expands_home():
    cfg = RelayConfig(session_file="~/relay/session.json")
    assert cfg.session_file == Path.home() / "relay" / "session.json"


def test_overrides_skip_none():
    cfg = RelayConfig(trigger_tag="!ops").with_overrides(trigger_tag=None, test_mode=True, timeout=2)
    assert cfg.trigger_tag == "!ops"
    assert cfg.test_mode is True
    assert cfg.timeout == 2


@pytest.mark.parametrize("field, value", [("timeout", 0), ("reconnect_time", -1), ("trigger_tag", "")])
def test_overrides_are_validated(field, value):
    with pytest.raises(ValidationError):
        RelayConfig().with_overrides(**{field: value})


def test_load_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"trigger_tag": "!ops", "reconnect_time": 10, "gateway_url": "http://gw:9000"}))

    cfg = load_config(path)

    assert cfg.trigger_tag == "!ops"
    assert cfg.reconnect_time == 10
    assert cfg.gateway_url == "http://gw:9000"


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "nope.json") == RelayConfig()


@pytest.mark.parametrize("content", ["{not json", json.dumps({"timeout": -5})])
def test_invalid_file_falls_back_with_warning(tmp_path, caplog, content):
    path = tmp_path / "config.json"
    path.write_text(content)

    assert load_config(path) == RelayConfig()
    assert "ignoring invalid config" in caplog.text
