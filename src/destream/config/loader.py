"""
Unified configuration loader with priority resolution.

Root directory (DESTREAM_ROOT):
- macOS/Linux: ~/.destream
- Windows: %APPDATA%\\destream
- Override: DESTREAM_ROOT environment variable

Value priority (highest to lowest):
1. Environment variable (DESTREAM_TOKEN_CACHE) - token cache path only
2. Project config (.destream/config.yaml)
3. User config ({root_dir}/config.yaml)
4. Defaults (config/defaults.py)

Example config.yaml:

    token_cache: ~/.destream/.token_cache
    seconds_per_chunk: 60
    login:
      idp_url_prefix: https://sts.example.edu
    timeouts:
      redirect: 20
    session_probe:
      attempts: 5
      delay: 3
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from destream.config import defaults

logger = logging.getLogger(__name__)


class ConfigSource(Enum):
    """Source of the configuration value."""

    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True)
class LoginPolicy:
    """Endpoints, timeouts and retry policy of the login/refresh flows.

    Timeouts and delays are in seconds.
    """

    login_url: str = defaults.LOGIN_URL
    video_url_template: str = defaults.VIDEO_URL_TEMPLATE
    idp_url_prefix: str = defaults.IDP_URL_PREFIX
    provider_login_prefix: str = defaults.PROVIDER_LOGIN_PREFIX
    app_root_suffix: str = defaults.APP_ROOT_SUFFIX
    prompt_timeout: float = defaults.PROMPT_TIMEOUT
    redirect_timeout: float = defaults.REDIRECT_TIMEOUT
    refresh_timeout: float = defaults.REFRESH_TIMEOUT
    probe_attempts: int = defaults.SESSION_PROBE_ATTEMPTS
    probe_delay: float = defaults.SESSION_PROBE_DELAY

    def video_url(self, video_id: str) -> str:
        """Platform page URL for a video id."""
        return self.video_url_template.format(video_id=video_id)


@dataclass(frozen=True)
class DestreamConfig:
    """Resolved destream configuration."""

    root_dir: Path
    token_cache: Path
    chrome_data_dir: Path
    source: ConfigSource
    seconds_per_chunk: float = defaults.SECONDS_PER_CHUNK
    token_min_validity: int = defaults.TOKEN_MIN_VALIDITY
    login: LoginPolicy = field(default_factory=LoginPolicy)

    def __repr__(self) -> str:
        return (
            f"DestreamConfig(root_dir={self.root_dir!r}, "
            f"token_cache={self.token_cache!r}, source={self.source.value!r})"
        )


def _load_yaml_config(config_path: Path) -> dict[str, Any] | None:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file.

    Returns:
        Parsed config dict, or None if file doesn't exist or fails to parse.
    """
    if not config_path.exists():
        return None

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
            if config is None:
                return {}
            if not isinstance(config, dict):
                logger.warning(f"Config file {config_path} is not a valid YAML dict")
                return None
            return config
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return None


def _resolve_path(value: Any, config_path: Path | None) -> Path | None:
    """Resolve a path value, relative paths relative to the config file."""
    if not value:
        return None

    path = Path(str(value)).expanduser()
    if not path.is_absolute() and config_path is not None:
        return (config_path.parent / path).resolve()
    return path.resolve()


def _find_project_config() -> Path | None:
    """Find project-level config by walking up from cwd.

    Returns:
        Path to .destream/config.yaml if found, None otherwise.
    """
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        config_path = parent / ".destream" / "config.yaml"
        if config_path.exists():
            return config_path
    return None


def _get_root_dir() -> Path:
    """Get the destream root directory.

    Priority:
    1. DESTREAM_ROOT environment variable
    2. Platform-specific default:
       - Windows: %APPDATA%\\destream
       - macOS/Linux: ~/.destream

    Returns:
        Path to the root directory (may not exist yet).
    """
    env_root = os.environ.get("DESTREAM_ROOT")
    if env_root:
        return Path(env_root).expanduser().resolve()

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "destream"
        return Path.home() / "AppData" / "Roaming" / "destream"
    return Path.home() / ".destream"


def _get_user_config_path() -> Path:
    """Get the user-level config path ({root_dir}/config.yaml)."""
    return _get_root_dir() / "config.yaml"


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(f"Ignoring config section {name!r}: expected a mapping")
        return {}
    return value


def _build_login_policy(config: dict[str, Any]) -> LoginPolicy:
    """Build the LoginPolicy from the merged config dict."""
    login = _section(config, "login")
    timeouts = _section(config, "timeouts")
    probe = _section(config, "session_probe")
    base = LoginPolicy()

    try:
        return LoginPolicy(
            login_url=login.get("url", base.login_url),
            video_url_template=login.get("video_url", base.video_url_template),
            idp_url_prefix=login.get("idp_url_prefix", base.idp_url_prefix),
            provider_login_prefix=login.get(
                "provider_login_prefix", base.provider_login_prefix
            ),
            app_root_suffix=login.get("app_root_suffix", base.app_root_suffix),
            prompt_timeout=float(timeouts.get("prompt", base.prompt_timeout)),
            redirect_timeout=float(timeouts.get("redirect", base.redirect_timeout)),
            refresh_timeout=float(timeouts.get("refresh", base.refresh_timeout)),
            probe_attempts=max(1, int(probe.get("attempts", base.probe_attempts))),
            probe_delay=float(probe.get("delay", base.probe_delay)),
        )
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid login/timeouts config, using defaults: {e}")
        return base


def _merged_config() -> tuple[dict[str, Any], Path | None, ConfigSource]:
    """Merge user and project config; project keys win.

    Returns:
        (merged dict, path of the most specific config file, its source)
    """
    merged: dict[str, Any] = {}
    origin: Path | None = None
    source = ConfigSource.DEFAULT

    user_config_path = _get_user_config_path()
    user_config = _load_yaml_config(user_config_path)
    if user_config:
        merged.update(user_config)
        origin, source = user_config_path, ConfigSource.USER

    project_config_path = _find_project_config()
    if project_config_path:
        project_config = _load_yaml_config(project_config_path)
        if project_config:
            merged.update(project_config)
            origin, source = project_config_path, ConfigSource.PROJECT

    return merged, origin, source


def _resolve_config() -> DestreamConfig:
    """Resolve configuration from all sources in priority order.

    Returns:
        Resolved DestreamConfig.
    """
    root_dir = _get_root_dir()
    config, origin, source = _merged_config()

    token_cache = _resolve_path(config.get("token_cache"), origin)
    env_token_cache = os.environ.get("DESTREAM_TOKEN_CACHE")
    if env_token_cache:
        token_cache = Path(env_token_cache).expanduser().resolve()
        source = ConfigSource.ENV
        logger.debug(f"Using token cache from DESTREAM_TOKEN_CACHE: {token_cache}")
    if token_cache is None:
        token_cache = root_dir / defaults.TOKEN_CACHE_FILENAME

    chrome_data_dir = _resolve_path(config.get("chrome_data_dir"), origin)
    if chrome_data_dir is None:
        chrome_data_dir = root_dir / defaults.CHROME_DATA_DIRNAME

    try:
        seconds_per_chunk = float(config.get("seconds_per_chunk", defaults.SECONDS_PER_CHUNK))
        if seconds_per_chunk <= 0:
            raise ValueError("must be positive")
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid seconds_per_chunk, using default: {e}")
        seconds_per_chunk = defaults.SECONDS_PER_CHUNK

    try:
        token_min_validity = int(config.get("token_min_validity", defaults.TOKEN_MIN_VALIDITY))
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid token_min_validity, using default: {e}")
        token_min_validity = defaults.TOKEN_MIN_VALIDITY

    if origin:
        logger.debug(f"Loaded config from {origin}")

    return DestreamConfig(
        root_dir=root_dir,
        token_cache=token_cache,
        chrome_data_dir=chrome_data_dir,
        source=source,
        seconds_per_chunk=seconds_per_chunk,
        token_min_validity=token_min_validity,
        login=_build_login_policy(config),
    )


@lru_cache(maxsize=1)
def get_config() -> DestreamConfig:
    """Get resolved destream configuration.

    Results are cached - configuration is resolved once per process.
    To force re-resolution (e.g., after env change), use clear_config_cache().
    """
    return _resolve_config()


def get_root_dir(ensure_exists: bool = True) -> Path:
    """Get the resolved root directory.

    Args:
        ensure_exists: If True (default), create the directory if it doesn't exist.
    """
    root_dir = get_config().root_dir
    if ensure_exists:
        root_dir.mkdir(parents=True, exist_ok=True)
    return root_dir


def clear_config_cache() -> None:
    """Clear the cached configuration."""
    get_config.cache_clear()
