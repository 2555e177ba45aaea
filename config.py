"""
Configuration for the cPanel trash cleaner.

Values are resolved in this order: command-line flags, environment variables
(a local .env file is loaded with python-dotenv), an optional JSON config
file, then the defaults below.
"""

import os
import json
import getpass
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Mapping, Dict, Any
from urllib.parse import urlparse

from dotenv import load_dotenv

logger = logging.getLogger("cptrash.config")

CONFIG_FILE = "cptrash.json"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_DEPTH = 64
TRASH_DIR_NAME = ".trash"


class ConfigError(Exception):
    pass


@dataclass
class Timings:
    """Fixed delays (seconds) and retry counts used while driving the File Manager."""
    # Stabilization
    stable_poll_interval: float = 0.1
    stable_checks: int = 3
    stable_max_polls: int = 50
    settle_delay: float = 0.15
    stabilize_retries: int = 3
    stabilize_backoff: float = 0.5
    stabilize_fallback_delay: float = 0.2
    # Listing
    list_pre_delay: float = 0.15
    empty_retries: int = 3
    empty_retry_delay: float = 0.5
    # Selection / deletion
    after_select_delay: float = 0.15
    after_delete_action_delay: float = 0.15
    after_confirm_delay: float = 0.5
    single_pre_delay: float = 0.3
    single_retry_delay: float = 0.5
    single_before_delete_delay: float = 0.2
    single_after_delete_delay: float = 0.3
    # Traversal
    folder_retry_delay: float = 0.5
    before_bulk_delete_delay: float = 0.2
    after_bulk_delete_delay: float = 0.15
    # Navigation / login
    navigation_timeout_ms: int = 60000
    verification_timeout_ms: int = 30000
    after_verification_delay: float = 2.0
    login_form_timeout_ms: int = 3000
    login_timeout_ms: int = 60000
    launch_timeout_ms: int = 60000

    @classmethod
    def instant(cls) -> "Timings":
        """Same retry counts, no waiting. Used by tests."""
        zeroed = {f.name: 0 for f in fields(cls) if f.type in ("float", float)}
        return cls(**zeroed)

    def merged(self, overrides: Mapping[str, Any]) -> "Timings":
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            logger.warning(f"Ignoring unknown timing keys: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if k in known})


@dataclass
class CleanerConfig:
    cpanel_url: str = ""
    username: str = ""
    password: str = ""
    headless: Optional[bool] = None  # None means "ask"
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    browser_path: Optional[str] = None
    dry_run: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
    timings: Timings = field(default_factory=Timings)

    @property
    def trash_root(self) -> str:
        return f"/home/{self.username}/{TRASH_DIR_NAME}"

    @property
    def missing_fields(self):
        return [name for name in ("cpanel_url", "username", "password") if not getattr(self, name)]


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "y", "true", "yes", "on")


def _parse_int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid {name}: {value!r} is not an integer")


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load the optional JSON config file. An explicit path that is missing is an error."""
    explicit = bool(path)
    path = path or CONFIG_FILE
    if not os.path.exists(path):
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return {}
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read config file {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    logger.info(f"Configuration loaded from {path}")
    return data


def load_config(args, environ: Optional[Mapping[str, str]] = None, use_dotenv: bool = True) -> CleanerConfig:
    """Build a CleanerConfig from parsed CLI args, the environment and the config file."""
    if environ is None:
        if use_dotenv:
            load_dotenv()
        environ = os.environ

    file_conf = load_config_file(getattr(args, "config", None) or environ.get("CPTRASH_CONFIG") or None)

    def pick(arg_value, env_key, file_key, default=None):
        if arg_value is not None and arg_value is not False and arg_value != "":
            return arg_value
        if environ.get(env_key):
            return environ[env_key]
        if file_key and file_conf.get(file_key) not in (None, ""):
            return file_conf[file_key]
        return default

    headless = pick(getattr(args, "headless", None), "HEADLESS", "headless")
    config = CleanerConfig(
        cpanel_url=(pick(args.url, "CPANEL_URL", None, "") or "").strip(),
        username=(pick(args.username, "CPANEL_USERNAME", None, "") or "").strip(),
        password=pick(args.password, "CPANEL_PASSWORD", None, ""),
        headless=_parse_bool(headless) if headless is not None else None,
        timeout_ms=_parse_int(pick(args.timeout, "TIMEOUT", "timeout", DEFAULT_TIMEOUT_MS), "timeout"),
        browser_path=pick(args.browser, "BROWSER_PATH", "browser_path"),
        dry_run=bool(args.dry_run),
        max_depth=_parse_int(pick(args.max_depth, "MAX_DEPTH", "max_depth", DEFAULT_MAX_DEPTH), "max depth"),
        timings=Timings().merged(file_conf.get("timings", {})),
    )

    if config.timeout_ms <= 0:
        raise ConfigError("Timeout must be a positive number of milliseconds")
    if config.max_depth < 1:
        raise ConfigError("Max depth must be at least 1")
    if config.cpanel_url and not is_valid_url(config.cpanel_url):
        raise ConfigError(f"Invalid cPanel URL: {config.cpanel_url}")
    return config


def prompt_missing(config: CleanerConfig, input_fn=input, password_fn=getpass.getpass) -> CleanerConfig:
    """Interactively ask for anything the flags, environment and config file left unset."""
    while not config.cpanel_url:
        value = input_fn("cPanel URL (e.g., https://example.com:2083): ").strip()
        if not value:
            print("URL is required")
        elif not is_valid_url(value):
            print("Please enter a valid URL (e.g., https://example.com:2083)")
        else:
            config.cpanel_url = value

    while not config.username:
        config.username = input_fn("cPanel username: ").strip()
        if not config.username:
            print("Username is required")

    while not config.password:
        config.password = password_fn("cPanel password: ")
        if not config.password:
            print("Password is required")

    if config.headless is None:
        answer = input_fn("Run in headless mode (no browser window)? [y/N]: ")
        config.headless = _parse_bool(answer) if answer.strip() else False

    return config
