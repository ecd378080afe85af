"""
CLI Configuration Management
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_API_URL = "http://localhost:8080/api/v1"

# Saved to config.json; everything else is per-invocation
PERSISTED_FIELDS = ("api_base_url", "access_token", "refresh_token", "username", "role")


@dataclass
class CLIConfig:
    """Configuration for the OpsFinder CLI"""

    # API settings
    api_base_url: str = DEFAULT_API_URL
    timeout: float = 30.0

    # Authentication (populated after login)
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    username: Optional[str] = None
    role: Optional[str] = None

    # Output settings
    verbose: bool = False

    # Paths
    config_dir: str = field(default_factory=lambda: str(Path.home() / ".opsfinder"))

    @property
    def config_file(self) -> Path:
        return Path(self.config_dir) / "config.json"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def load_from_file(self, config_path: Optional[str] = None) -> None:
        """Load configuration from JSON file"""
        path = Path(config_path) if config_path else self.config_file
        if path.exists():
            with open(path) as f:
                data = json.load(f)
                for key, value in data.items():
                    if key in PERSISTED_FIELDS:
                        setattr(self, key, value)

    def save_to_file(self, config_path: Optional[str] = None) -> None:
        """Save configuration to JSON file (owner-readable only)"""
        path = Path(config_path) if config_path else self.config_file
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump({key: getattr(self, key) for key in PERSISTED_FIELDS}, f, indent=2)
        try:
            os.chmod(path, 0o600)
        except OSError:
            pass

    def clear_credentials(self) -> None:
        self.access_token = None
        self.refresh_token = None
        self.username = None
        self.role = None

    @classmethod
    def load_default(cls, config_dir: Optional[str] = None) -> "CLIConfig":
        """Load default configuration from user config directory"""
        config = cls(config_dir=config_dir) if config_dir else cls()
        config.load_from_file()

        # Override with environment variables
        config._load_from_env()

        return config

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        env_mappings = {
            "OPSFINDER_API_URL": "api_base_url",
            "OPSFINDER_TIMEOUT": ("timeout", float),
            "OPSFINDER_VERBOSE": ("verbose", lambda x: x.lower() == "true"),
        }

        for env_var, mapping in env_mappings.items():
            value = os.environ.get(env_var)
            if value:
                if isinstance(mapping, tuple):
                    attr, converter = mapping
                    setattr(self, attr, converter(value))
                else:
                    setattr(self, mapping, value)
