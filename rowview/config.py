"""
Configuration management for rowview.

Provides a hierarchical configuration system with sensible defaults.
Supports both global (~/.config/rowview/config.toml) and local (rowview.toml)
configurations.
"""
import os
import logging
import tomli
import tomli_w
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, fields, asdict

logger = logging.getLogger(__name__)

ENV_PREFIX = "ROWVIEW_"
_TRUE_WORDS = ("true", "1", "yes", "on")


def user_config_file() -> Path:
    return Path.home() / ".config" / "rowview" / "config.toml"


@dataclass
class RowviewConfig:
    """
    rowview configuration with sensible defaults.

    Configuration hierarchy (highest to lowest priority):
    1. Command-line arguments
    2. Environment variables (ROWVIEW_*)
    3. Explicit config file (--config)
    4. Local config file (./rowview.toml or ./.rowviewrc)
    5. User config file (~/.config/rowview/config.toml)
    6. System defaults
    """

    # View state storage
    state_dir: str = field(default="~/.config/rowview/state")
    state_prefix: str = field(default="rowview-table-")

    # Display settings
    output_format: str = field(default="table")  # table, json
    color_output: bool = field(default=True)
    max_cell_width: int = field(default=40)
    show_empty_groups: bool = field(default=True)  # option buckets with no rows

    log_level: str = field(default="WARNING")

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "RowviewConfig":
        """
        Load configuration from files and environment.

        Args:
            config_file: Specific config file to load (applied after the search)

        Returns:
            Merged configuration object
        """
        config = cls()

        user_config_path = user_config_file()
        if user_config_path.exists():
            config._merge(cls._load_toml(user_config_path), str(user_config_path))

        # First local file found wins
        local_paths = [
            Path.cwd() / "rowview.toml",
            Path.cwd() / ".rowviewrc",
        ]

        for path in local_paths:
            if path.exists():
                config._merge(cls._load_toml(path), str(path))
                break

        if config_file and config_file.exists():
            config._merge(cls._load_toml(config_file), str(config_file))

        config._apply_env_vars()
        config._expand_paths()

        return config

    @staticmethod
    def _load_toml(path: Path) -> Dict[str, Any]:
        with open(path, "rb") as f:
            return tomli.load(f)

    def _set(self, key: str, value: Any, source: str):
        """Set one known key, coercing to the type of its default; bad values are logged and skipped."""
        current = getattr(self, key)
        try:
            # bool before int: bool is an int subclass
            if isinstance(current, bool):
                if isinstance(value, str):
                    value = value.strip().lower() in _TRUE_WORDS
                elif not isinstance(value, bool):
                    raise ValueError(f"expected a boolean, got {value!r}")
            elif isinstance(current, int):
                if isinstance(value, bool):
                    raise ValueError(f"expected an integer, got {value!r}")
                value = int(value)
            else:
                value = str(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring {key} from {source}: {e}")
            return
        setattr(self, key, value)

    def _merge(self, data: Dict[str, Any], source: str):
        """Merge a parsed TOML table; unknown keys are ignored."""
        for key, value in data.items():
            if key in _KEYS:
                self._set(key, value, source)

    def _apply_env_vars(self):
        """Apply ROWVIEW_<KEY> variables, e.g. ROWVIEW_MAX_CELL_WIDTH=60."""
        for key in _KEYS:
            value = os.environ.get(ENV_PREFIX + key.upper())
            if value is not None:
                self._set(key, value, ENV_PREFIX + key.upper())

    def _expand_paths(self):
        """Expand ~ and environment variables in paths."""
        self.state_dir = os.path.expanduser(os.path.expandvars(self.state_dir))

    def save(self, path: Optional[Path] = None):
        """
        Save current configuration to TOML file.

        Args:
            path: Path to save to (defaults to user config)
        """
        if path is None:
            path = user_config_file()

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "wb") as f:
            tomli_w.dump(asdict(self), f)

    def get_state_dir(self) -> Path:
        """Resolved directory of the view state store."""
        path = Path(self.state_dir)
        if not path.is_absolute():
            path = Path.cwd() / path
        return path


_KEYS = tuple(f.name for f in fields(RowviewConfig))


# Global configuration instance
_config: Optional[RowviewConfig] = None


def get_config(reload: bool = False, config_file: Optional[Path] = None) -> RowviewConfig:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload configuration from files
        config_file: Specific config file to load

    Returns:
        Global configuration instance
    """
    global _config
    if _config is None or reload:
        _config = RowviewConfig.load(config_file)
    return _config


def init_config(config_file: Optional[Path] = None, **kwargs) -> RowviewConfig:
    """
    Initialize configuration with command-line overrides.

    Args:
        config_file: Config file given on the command line (forces a reload)
        **kwargs: Other configuration overrides; None values are skipped

    Returns:
        Configured instance
    """
    config = get_config(reload=config_file is not None, config_file=config_file)

    for key, value in kwargs.items():
        if hasattr(config, key) and value is not None:
            setattr(config, key, value)

    return config
