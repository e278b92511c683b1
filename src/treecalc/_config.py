"""Configuration loading from pyproject.toml and the environment."""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_DATABASE_URL = "sqlite:///treecalc.db"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000

ENV_DATABASE_URL = "TREECALC_DATABASE_URL"
ENV_HOST = "TREECALC_HOST"
ENV_PORT = "TREECALC_PORT"

_SQLITE_FILE_PREFIX = "sqlite:///"


class ConfigError(Exception):
    """Error in treecalc configuration."""


@dataclass(slots=True, frozen=True)
class TreecalcConfig:
    """Configuration for the service and the CLI.

    Relative SQLite paths in pyproject.toml are resolved from the project root
    (directory containing pyproject.toml).
    """

    database_url: str = DEFAULT_DATABASE_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    echo_sql: bool = False
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def _resolve_database_url(url: str, project_root: Path) -> str:
    """Anchor a relative SQLite file path at the project root."""
    if not url.startswith(_SQLITE_FILE_PREFIX):
        return url
    db_path = url.removeprefix(_SQLITE_FILE_PREFIX)
    if not db_path or db_path == ":memory:" or Path(db_path).is_absolute():
        return url
    return f"{_SQLITE_FILE_PREFIX}{project_root / db_path}"


def load_config(pyproject_path: Path) -> TreecalcConfig:
    """Load and validate [tool.treecalc] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed TreecalcConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("treecalc", {})
    if not section:
        return TreecalcConfig(project_root=project_root)

    database_url = section.get("database_url", DEFAULT_DATABASE_URL)
    if not isinstance(database_url, str):
        msg = "Invalid [tool.treecalc].database_url: expected string"
        raise ConfigError(msg)

    host = section.get("host", DEFAULT_HOST)
    if not isinstance(host, str):
        msg = "Invalid [tool.treecalc].host: expected string"
        raise ConfigError(msg)

    port = section.get("port", DEFAULT_PORT)
    # bool is a subclass of int
    if not isinstance(port, int) or isinstance(port, bool):
        msg = "Invalid [tool.treecalc].port: expected integer"
        raise ConfigError(msg)

    echo_sql = section.get("echo_sql", False)
    if not isinstance(echo_sql, bool):
        msg = "Invalid [tool.treecalc].echo_sql: expected boolean"
        raise ConfigError(msg)

    return TreecalcConfig(
        database_url=_resolve_database_url(database_url, project_root),
        host=host,
        port=port,
        echo_sql=echo_sql,
        project_root=project_root,
    )


def apply_environment(config: TreecalcConfig, environ: Mapping[str, str] | None = None) -> TreecalcConfig:
    """Override config values from TREECALC_* environment variables.

    Raises:
        ConfigError: If TREECALC_PORT is not an integer.

    """
    env = os.environ if environ is None else environ

    if database_url := env.get(ENV_DATABASE_URL):
        config = replace(config, database_url=database_url)
    if host := env.get(ENV_HOST):
        config = replace(config, host=host)
    if port := env.get(ENV_PORT):
        try:
            config = replace(config, port=int(port))
        except ValueError as e:
            msg = f"Invalid {ENV_PORT}: expected integer, got {port!r}"
            raise ConfigError(msg) from e
    return config


def get_config() -> TreecalcConfig:
    """Get config from pyproject.toml in current directory or parents, then the environment.

    Returns:
        TreecalcConfig (defaults if no pyproject.toml or no [tool.treecalc] section)

    """
    pyproject_path = find_pyproject_toml()
    config = TreecalcConfig() if pyproject_path is None else load_config(pyproject_path)
    return apply_environment(config)
