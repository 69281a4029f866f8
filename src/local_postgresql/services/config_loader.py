"""Configuration loader for local-postgresql."""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from local_postgresql.errors import ConfigError


class ConfigLoader:
    """Loads YAML configuration files into flat, dotted-key overrides."""

    KEY_PREFIX = "local.postgresql."

    SUPPORTED_KEYS = {
        "engaged",
        "container.image",
        "container.name",
        "container.port",
        "container.log.follow",
        "container.startup.timeout",
        "database.name",
        "database.username",
        "database.password",
        "database.application.username",
        "database.application.password",
        "database.init.script",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigError("Config file must contain a YAML mapping at the root.")

        values = self.flatten(parsed)

        unknown = sorted(set(values.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigError(f"Unknown configuration keys: {unknown_list}")

        return values

    def flatten(
        self,
        mapping: Mapping[str, Any],
        parent: str = "",
        flat: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if flat is None:
            flat = {}
        for key, value in mapping.items():
            full_key = f"{parent}.{key}" if parent else str(key)
            if isinstance(value, dict):
                self.flatten(value, full_key, flat)
            else:
                if full_key.startswith(self.KEY_PREFIX):
                    full_key = full_key[len(self.KEY_PREFIX):]
                if full_key in flat:
                    raise ConfigError(f"Configuration key defined twice: {full_key}")
                flat[full_key] = value
        return flat
