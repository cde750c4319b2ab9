"""
Relay configuration — ~/.wa-relay/config.json, overridden by CLI options.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from wa_relay.connection import DEFAULT_RECONNECT_TIME, DEFAULT_TRIGGER_TAG
from wa_relay.dispatcher import DEFAULT_FAILURE_NOTICE
from wa_relay.transport.http import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".wa-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"


class RelayConfig(BaseModel):
    gateway_url: str = DEFAULT_BASE_URL
    session_file: Path = CONFIG_DIR / "session.json"
    timeout: float = Field(default=5.0, gt=0)
    reconnect_time: float = Field(default=DEFAULT_RECONNECT_TIME, ge=0)
    trigger_tag: str = Field(default=DEFAULT_TRIGGER_TAG, min_length=1)
    test_mode: bool = False
    reply_delay: float = Field(default=0.0, ge=0)
    failure_notice: str = DEFAULT_FAILURE_NOTICE

    @field_validator("session_file")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    def with_overrides(self, **overrides: Any) -> "RelayConfig":
        """Return a copy with every non-None override applied and validated."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        return RelayConfig.model_validate({**self.model_dump(), **updates})


def load_config(path: Optional[Path] = None) -> RelayConfig:
    path = path or CONFIG_FILE
    try:
        raw = json.loads(path.read_text())
    except FileNotFoundError:
        return RelayConfig()
    except json.JSONDecodeError as e:
        logger.warning("ignoring invalid config %s: %s", path, e)
        return RelayConfig()
    try:
        return RelayConfig.model_validate(raw)
    except ValidationError as e:
        logger.warning("ignoring invalid config %s: %s", path, e)
        return RelayConfig()

