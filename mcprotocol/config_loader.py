# mcprotocol/config_loader.py
"""
Config loader for PLC endpoints and logging.

Reads YAML files from a config directory:

    plc.yml       plcs: [{name, host, port, variant, timeout}]
    logging.yml   logging: {log_dir, level, console}

A default plc.yml is written when none exists.
"""

from pathlib import Path
from typing import Any

import yaml

from mcprotocol.logging_system import configure_logging, get_logger

__all__ = ["ConfigLoader", "VARIANTS"]

VARIANTS = ("alive", "explicit")

logger = get_logger(__name__)


class ConfigLoader:
    """Loads and validates client configuration files."""

    def __init__(self, config_dir="config"):
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load_all(self) -> dict[str, Any]:
        """Load all configuration files and merge them."""
        config = {}

        plc_path = self.config_dir / "plc.yml"
        if plc_path.exists():
            with open(plc_path) as f:
                plc_data = yaml.safe_load(f) or {}
                config["plcs"] = plc_data.get("plcs", [])
        else:
            config["plcs"] = self._create_default_plcs()
            self._save_plcs(config["plcs"])

        for entry in config["plcs"]:
            self._validate_plc(entry)

        logging_path = self.config_dir / "logging.yml"
        defaults = self._default_logging()
        if logging_path.exists():
            with open(logging_path) as f:
                logging_data = (yaml.safe_load(f) or {}).get("logging", {})
            config["logging"] = {
                key: logging_data.get(key, value) for key, value in defaults.items()
            }
        else:
            config["logging"] = defaults

        return config

    def get_plc(self, name: str) -> dict[str, Any]:
        """Return the PLC entry with the given name.

        Raises:
            KeyError: If no entry has that name
        """
        for entry in self.load_all()["plcs"]:
            if entry.get("name") == name:
                return entry
        raise KeyError(f"No PLC named {name!r} in {self.config_dir / 'plc.yml'}")

    def apply_logging(self) -> dict[str, Any]:
        """Apply logging.yml settings to the global logger factory."""
        settings = self.load_all()["logging"]
        configure_logging(
            log_dir=settings["log_dir"],
            level=settings["level"],
            console=settings["console"],
        )
        return settings

    def _validate_plc(self, entry: dict[str, Any]) -> None:
        name = entry.get("name", "<unnamed>")
        host = entry.get("host")
        port = entry.get("port")
        variant = entry.get("variant", "alive")
        timeout = entry.get("timeout")

        if not host:
            raise ValueError(f"PLC {name}: host cannot be empty")
        if not isinstance(port, int) or not (0 < port < 65536):
            raise ValueError(f"PLC {name}: port must be 1-65535, got {port!r}")
        if variant not in VARIANTS:
            raise ValueError(
                f"PLC {name}: variant must be one of {VARIANTS}, got {variant!r}"
            )
        if timeout is not None and (
            not isinstance(timeout, (int, float)) or timeout <= 0
        ):
            raise ValueError(f"PLC {name}: timeout must be > 0, got {timeout!r}")

    def _create_default_plcs(self) -> list[dict[str, Any]]:
        """Create default PLC configuration."""
        return [
            {
                "name": "local_plc",
                "host": "127.0.0.1",
                "port": 5000,
                "variant": "alive",
                "timeout": None,
            },
        ]

    def _default_logging(self) -> dict[str, Any]:
        return {
            "log_dir": None,
            "level": "INFO",
            "console": True,
        }

    def _save_plcs(self, plcs: list[dict[str, Any]]) -> None:
        """Save PLC configuration to file."""
        plc_path = self.config_dir / "plc.yml"
        with open(plc_path, "w") as f:
            yaml.dump({"plcs": plcs}, f, default_flow_style=False)
        logger.info(f"Created default PLC config at {plc_path}")
