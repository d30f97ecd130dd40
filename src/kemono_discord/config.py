"""Configuration persistence: load and save the user config file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from kemono_discord.models import (
    CONFIG_APP_NAME,
    DEFAULT_PAGE_SIZE,
    PAGE_SIZE_LIMIT,
    SessionState,
    UserConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# _dict_to_config() returns a valid UserConfig for any input:
#
#   Field               Rule                       Handler
#   ──────────────────  ─────────────────────────  ─────────────────────
#   page_size           1 ≤ x ≤ PAGE_SIZE_LIMIT    clamp_page_size
#   search_debounce_ms  1 ≤ x ≤ 5000               _clamp_int
#   settle_delay_ms     1 ≤ x ≤ 5000               _clamp_int
#   scroll_threshold    0 ≤ x ≤ 100                _clamp_int
#   request_timeout     1 ≤ x ≤ 120                _clamp_int
#   session.last_tab    in TAB_NAMES               SessionState.__post_init__
#   scalar fields       type-checked               _safe_get
#
CONFIG_FILENAME = "config.json"
MIN_DELAY_MS = 1
MAX_DELAY_MS = 5000
MAX_SCROLL_THRESHOLD = 100
MAX_REQUEST_TIMEOUT = 120


def get_config_dir() -> Path:
    """Directory holding config.json and debug.log (platformdirs)."""
    return Path(user_config_dir(CONFIG_APP_NAME))


def get_config_path() -> Path:
    """Get the path to the configuration file.

    - Linux: ~/.config/kemono-discord/config.json
    - macOS: ~/Library/Application Support/kemono-discord/config.json
    - Windows: %APPDATA%/kemono-discord/config.json
    """
    return get_config_dir() / CONFIG_FILENAME


def clamp_page_size(value: Any) -> int:
    """Validate and clamp a page size; non-integers fall back to the default."""
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_PAGE_SIZE
    return max(1, min(value, PAGE_SIZE_LIMIT))


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if expected_type is int and isinstance(value, bool):
        return default
    if not isinstance(value, expected_type):
        return default
    return value


def _clamp_int(data: dict, key: str, default: int, low: int, high: int) -> int:
    return max(low, min(_safe_get(data, key, default, int), high))


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "search_debounce_ms": config.search_debounce_ms,
        "page_size": clamp_page_size(config.page_size),
        "scroll_threshold": config.scroll_threshold,
        "settle_delay_ms": config.settle_delay_ms,
        "request_timeout": config.request_timeout,
        "search_api_url": config.search_api_url,
        "kemono_api_url": config.kemono_api_url,
        "theme_name": config.theme_name,
        "session": {
            "last_tab": config.session.last_tab,
            "last_query": config.session.last_query,
        },
    }


def _parse_session_state(data: dict[str, Any]) -> SessionState:
    """Parse the session state section from config data."""
    session_data = data.get("session", {})
    if not isinstance(session_data, dict):
        session_data = {}
    return SessionState(
        last_tab=_safe_get(session_data, "last_tab", "servers", str),
        last_query=_safe_get(session_data, "last_query", "", str),
    )


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    defaults = UserConfig()
    return UserConfig(
        search_debounce_ms=_clamp_int(
            data, "search_debounce_ms", defaults.search_debounce_ms, MIN_DELAY_MS, MAX_DELAY_MS
        ),
        page_size=clamp_page_size(data.get("page_size", DEFAULT_PAGE_SIZE)),
        scroll_threshold=_clamp_int(
            data, "scroll_threshold", defaults.scroll_threshold, 0, MAX_SCROLL_THRESHOLD
        ),
        settle_delay_ms=_clamp_int(
            data, "settle_delay_ms", defaults.settle_delay_ms, MIN_DELAY_MS, MAX_DELAY_MS
        ),
        request_timeout=_clamp_int(
            data, "request_timeout", defaults.request_timeout, 1, MAX_REQUEST_TIMEOUT
        ),
        search_api_url=_safe_get(data, "search_api_url", defaults.search_api_url, str)
        or defaults.search_api_url,
        kemono_api_url=_safe_get(data, "kemono_api_url", defaults.kemono_api_url, str)
        or defaults.kemono_api_url,
        theme_name=_safe_get(data, "theme_name", defaults.theme_name, str),
        session=_parse_session_state(data),
        version=_safe_get(data, "version", 1, int),
    )


def load_config() -> UserConfig:
    """Load configuration from disk.

    Returns default config if the file doesn't exist or is corrupted; in the
    corrupted case ``config_defaulted`` is set so the UI can say so.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
    return UserConfig(config_defaulted=True)


def save_config(config: UserConfig) -> bool:
    """Save configuration to disk atomically.

    Uses write-to-tempfile + os.replace() so an interrupted write never
    leaves a truncated config behind. Returns True on success.
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_FILENAME",
    "clamp_page_size",
    "get_config_dir",
    "get_config_path",
    "load_config",
    "save_config",
]
