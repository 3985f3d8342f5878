"""pagehand configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from pagehand.models import DEFAULT_MAX_AFFORDANCES, DEFAULT_VIEWPORT, DEFAULT_WAIT_TIMEOUT_MS


class PagehandConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


@dataclass
class PagehandConfig:
    """Configuration for a pagehand session."""

    base_url: str = ""

    # Paths
    project_dir: Path = field(default_factory=lambda: Path(".pagehand"))
    intents_file: Path | None = None
    tool_log: Path | None = None

    # Behavior
    headless: bool = True
    viewport: tuple[int, int] = DEFAULT_VIEWPORT
    max_affordances: int = DEFAULT_MAX_AFFORDANCES
    wait_timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS

    @classmethod
    def from_file(cls, config_path: Path) -> PagehandConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise PagehandConfigError(
                f"Config file not found: {config_path}\n\n"
                "To fix: create .pagehand/config.yaml (base_url, headless, viewport, intents_file)"
            )
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise PagehandConfigError(f"Config file must be a YAML mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> PagehandConfig:
        """Create config from a dictionary."""
        config = cls()
        config.project_dir = project_dir

        if "base_url" in data:
            config.base_url = str(data["base_url"] or "")
        if "intents_file" in data and data["intents_file"]:
            config.intents_file = project_dir / data["intents_file"]
        if "tool_log" in data and data["tool_log"]:
            config.tool_log = project_dir / data["tool_log"]

        if "headless" in data:
            config.headless = bool(data["headless"])
        if "max_affordances" in data:
            config.max_affordances = int(data["max_affordances"])
            if config.max_affordances <= 0:
                raise PagehandConfigError(
                    f"max_affordances must be a positive integer, got: {data['max_affordances']!r}"
                )
        if "wait_timeout_ms" in data:
            config.wait_timeout_ms = int(data["wait_timeout_ms"])
        if "viewport" in data:
            vp = data["viewport"]
            if isinstance(vp, dict):
                config.viewport = (vp.get("width", 1280), vp.get("height", 720))

        return config

    def load_catalog(self):
        """Load the configured intent taxonomy, or an empty catalog if none is set."""
        from pagehand.engine.intents import IntentCatalog

        if self.intents_file is None:
            return IntentCatalog()
        return read_intent_catalog(self.intents_file)


def read_intent_catalog(path: Path):
    """Load an intent taxonomy file, raising PagehandConfigError on any problem."""
    from pagehand.engine.intents import IntentCatalog

    if not path.is_file():
        raise PagehandConfigError(
            f"Intents file not found: {path}\n\n"
            "To fix: point intents_file in config.yaml at an existing YAML or JSON taxonomy"
        )
    try:
        return IntentCatalog.from_file(path)
    except yaml.YAMLError as exc:
        raise PagehandConfigError(
            f"Invalid YAML in intents file {path}: {exc}\n\n"
            "To fix: check the file for indentation or unclosed brackets"
        ) from exc
    except ValueError as exc:
        # json.JSONDecodeError is a ValueError too
        raise PagehandConfigError(
            f"Invalid intents file {path}: {exc}\n\n"
            "To fix: the file must look like 'intents: {category: {intent_name: {fields: ..., actions: ...}}}'"
        ) from exc
