"""
Configuration management for the inline editor.

Settings come from two places:
- Environment variables (a .env file is loaded by app.py)
- config.json next to the executable/project root

The environment always wins over the file.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from src.paths import get_app_dir, get_config_path, get_default_preview_path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# environment variable -> config.json key
_ENV_KEYS = {
    'INLINE_EDIT_PROJECT_ROOT': 'project_root',
    'INLINE_EDIT_API_URL': 'api_url',
    'INLINE_EDIT_TIMEOUT': 'timeout',
    'INLINE_EDIT_PREVIEW_HTML': 'preview_html',
}


@dataclass
class EditorSettings:
    project_root: Path
    api_url: str = ''
    timeout: float = DEFAULT_TIMEOUT
    preview_html: Optional[Path] = None
    allowed_origins: Optional[Tuple[str, ...]] = None  # None: built-in allowlist


def load_config() -> dict:
    """Load configuration from config.json."""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Ignoring unreadable config file {config_path}: {e}")
            return {}
    return {}


def get_setting(env_name: str, default=None):
    """
    Get a single setting.

    Priority:
    1. Environment variable ``env_name``
    2. The matching key in config.json
    """
    env_value = os.environ.get(env_name)
    if env_value:
        return env_value
    return load_config().get(_ENV_KEYS.get(env_name, env_name), default)


def _parse_timeout(value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid timeout {value!r}, using {DEFAULT_TIMEOUT}")
        return DEFAULT_TIMEOUT
    if timeout <= 0:
        logger.warning(f"Invalid timeout {value!r}, using {DEFAULT_TIMEOUT}")
        return DEFAULT_TIMEOUT
    return timeout


def get_settings() -> EditorSettings:
    """Resolve all editor settings."""
    project_root = Path(get_setting('INLINE_EDIT_PROJECT_ROOT') or get_app_dir())
    preview = get_setting('INLINE_EDIT_PREVIEW_HTML')
    allowed = load_config().get('allowed_origins')

    return EditorSettings(
        project_root=project_root,
        api_url=get_setting('INLINE_EDIT_API_URL', '') or '',
        timeout=_parse_timeout(get_setting('INLINE_EDIT_TIMEOUT', DEFAULT_TIMEOUT)),
        preview_html=Path(preview) if preview else get_default_preview_path(),
        allowed_origins=tuple(allowed) if allowed else None,
    )
