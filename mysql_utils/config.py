"""
Configuration loading for MySQL Utils.
"""

import configparser
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import ConnectionSettings

DEFAULT_CONFIG_PATH = Path('~/.config/mysql-utils/config.yaml')
DEFAULT_MYCNF_PATH = Path('~/.my.cnf')


class ConfigLoader:
    """Loads configuration from YAML file."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([^}]+)\}')

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path
        self.config = self._load_config()

    @classmethod
    def default(cls) -> "ConfigLoader":
        """Load the per-user configuration file if there is one."""
        path = DEFAULT_CONFIG_PATH.expanduser()
        return cls(str(path) if path.is_file() else None)

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        if self.config_path is None:
            return {}

        with open(self.config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(f"Configuration file '{self.config_path}' must contain a mapping")

        return self._resolve_env_vars(config)

    def _resolve_env_vars(self, obj: Any) -> Any:
        """Recursively resolve environment variables in config."""
        if isinstance(obj, str):
            matches = self.ENV_VAR_PATTERN.findall(obj)
            for match in matches:
                env_value = os.environ.get(match, '')
                obj = obj.replace(f'${{{match}}}', env_value)
            return obj
        elif isinstance(obj, dict):
            return {k: self._resolve_env_vars(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._resolve_env_vars(item) for item in obj]
        return obj

    def get_connection_settings(self) -> dict[str, Any]:
        """Get connection settings."""
        return self.config.get('connection') or {}

    def get_logging_settings(self) -> dict[str, Any]:
        """Get logging settings."""
        return self.config.get('logging') or {}

    def get_query_settings(self) -> dict[str, Any]:
        """Get query output settings."""
        return self.config.get('query') or {}


def read_mycnf(path: Optional[Path] = None) -> dict[str, Any]:
    """Read the [client] section of a MySQL option file.

    Returns an empty dict when the file or section does not exist.
    """
    path = (path or DEFAULT_MYCNF_PATH).expanduser()
    if not path.is_file():
        return {}

    parser = configparser.ConfigParser(
        allow_no_value=True,
        inline_comment_prefixes=('#', ';'),
        interpolation=None
    )
    parser.read(path)
    if not parser.has_section('client'):
        return {}

    client = {}
    for key in ('user', 'password', 'host', 'port'):
        value = parser.get('client', key, fallback=None)
        if value is not None:
            client[key] = value.strip().strip('"\'')
    return client


def resolve_connection_settings(
    host: Optional[str] = None,
    port: Optional[int] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    database: Optional[str] = None,
    config: Optional[dict[str, Any]] = None,
    mycnf_path: Optional[Path] = None
) -> ConnectionSettings:
    """
    Merge connection settings with priority: arguments > config file > ~/.my.cnf > defaults.

    The option file is only consulted when username or password is still unset.
    """
    config = config or {}
    host = host or config.get('host')
    port = port or config.get('port')
    # Unset ${VAR} references resolve to '', which must not block ~/.my.cnf
    username = username or config.get('username') or None
    if password is None:
        password = config.get('password') or None

    if username is None or password is None:
        client = read_mycnf(mycnf_path)
        username = username or client.get('user')
        if password is None:
            password = client.get('password')
        host = host or client.get('host')
        port = port or client.get('port')

    defaults = ConnectionSettings()
    return ConnectionSettings(
        host=host or defaults.host,
        port=int(port or defaults.port),
        username=username,
        password=password,
        database=database
    )
