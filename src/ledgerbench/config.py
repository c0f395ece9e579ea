from __future__ import annotations

import logging
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Keys:
    WORKSPACE = "workspace"

    FLOW_SKIP_START = "flow-skip-start"
    FLOW_SKIP_INIT = "flow-skip-init"
    FLOW_SKIP_INSTALL = "flow-skip-install"
    FLOW_SKIP_TEST = "flow-skip-test"
    FLOW_SKIP_END = "flow-skip-end"

    FLOW_ONLY_START = "flow-only-start"
    FLOW_ONLY_INIT = "flow-only-init"
    FLOW_ONLY_INSTALL = "flow-only-install"
    FLOW_ONLY_TEST = "flow-only-test"
    FLOW_ONLY_END = "flow-only-end"

    PROGRESS_BAR = "progress-bar"


_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE_STRINGS:
            return True
        if v in _FALSE_STRINGS:
            return False
        raise ValueError(f"Cannot interpret '{value}' as a boolean")
    return bool(value)


class Config:
    """Key/value settings threaded explicitly through the engine and workers."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._values.setdefault(Keys.WORKSPACE, os.getcwd())

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return _to_bool(self._values.get(key, default))

    def set(self, key: str, value: Any) -> None:
        logger.debug(f"Config set: {key}={value!r}")
        self._values[key] = value

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    @classmethod
    def from_env(
        cls,
        prefix: str = "LEDGERBENCH_",
        dotenv_path: str | None = None,
        environ: dict[str, str] | None = None,
    ) -> "Config":
        """Build a config from ``PREFIX_SOME_KEY`` variables, after loading a .env file."""
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path, override=False)
            environ = dict(os.environ)

        values: dict[str, Any] = {}
        for name, value in environ.items():
            if not name.startswith(prefix):
                continue
            key = name[len(prefix):].lower().replace("_", "-")
            if key and key != "log-level":
                values[key] = value
        logger.debug(f"Loaded {len(values)} settings from environment")
        return cls(values)


class FlowOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    perform_start: bool = True
    perform_init: bool = True
    perform_install: bool = True
    perform_test: bool = True
    perform_end: bool = True

    @property
    def needs_connector(self) -> bool:
        return self.perform_init or self.perform_install or self.perform_test

    @classmethod
    def from_config(cls, config: Config) -> "FlowOptions":
        only = {
            "start": config.get_bool(Keys.FLOW_ONLY_START),
            "init": config.get_bool(Keys.FLOW_ONLY_INIT),
            "install": config.get_bool(Keys.FLOW_ONLY_INSTALL),
            "test": config.get_bool(Keys.FLOW_ONLY_TEST),
            "end": config.get_bool(Keys.FLOW_ONLY_END),
        }
        if any(only.values()):
            return cls(**{f"perform_{phase}": flag for phase, flag in only.items()})

        return cls(
            perform_start=not config.get_bool(Keys.FLOW_SKIP_START),
            perform_init=not config.get_bool(Keys.FLOW_SKIP_INIT),
            perform_install=not config.get_bool(Keys.FLOW_SKIP_INSTALL),
            perform_test=not config.get_bool(Keys.FLOW_SKIP_TEST),
            perform_end=not config.get_bool(Keys.FLOW_SKIP_END),
        )
