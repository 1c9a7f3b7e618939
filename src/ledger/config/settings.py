from dataclasses import dataclass, fields
from pathlib import Path
import json
from typing import Dict, Any, Optional

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (in project root, gitignored)
PROJECT_ROOT = Path(__file__).parents[3]
USER_CONFIG_DIR = PROJECT_ROOT / "config"

class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'ledger.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = USER_CONFIG_DIR / config_name
        if user_config_path.exists():
            with open(user_config_path) as f:
                return json.load(f)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            with open(default_config_path) as f:
                return json.load(f)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_ledger_config() -> Dict[str, Any]:
        """Load the ledger settings file"""
        return ConfigLoader.load_config('ledger.json')


@dataclass(frozen=True)
class LedgerSettings:
    """
    Runtime settings for the ledger.

    Attributes:
        db_path: SQLite database file
        page_size: Default number of transactions per page
        display_window: Maximum rows a listing renders at once
        recent_limit: Number of recent transactions included in stats
    """
    db_path: Path = Path("data/ledger.db")
    page_size: int = 10
    display_window: int = 20
    recent_limit: int = 5

    def __post_init__(self):
        for name in ("page_size", "display_window", "recent_limit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"Setting '{name}' must be a positive integer, got {value!r}")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "LedgerSettings":
        """
        Build settings from a config dict, ignoring keys it doesn't know.

        Raises:
            ValueError: If a numeric setting is not a positive integer
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in config.items() if key in known}
        if "db_path" in values:
            values["db_path"] = Path(values["db_path"])
        return cls(**values)

    @classmethod
    def load(cls, config: Optional[Dict[str, Any]] = None) -> "LedgerSettings":
        """
        Load settings from ConfigLoader, or from the given dict.

        Example (testing):
            settings = LedgerSettings.load({"page_size": 5})
        """
        if config is None:
            config = ConfigLoader.load_ledger_config()
        return cls.from_config(config)
