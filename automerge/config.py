"""
Configuration for the auto-merge bot.

Settings come either from the environment (optionally populated from a .env
file) or from a JSON config file using the same option names.
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Dict, Optional

from .api_client import DEFAULT_API_URL

TRUE_VALUES = ('true', '1', 'yes')


def _parse_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def _parse_number(name: str, value, default, cast):
    if value is None or value == '':
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        logging.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default


@dataclass
class BotConfig:
    """Options recognized by the bot.

    ``port``, ``webhook_path`` and ``webhook_secret`` belong to the webhook
    listener in front of the bot and are only carried here.
    """
    github_token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    delete_after_merge: bool = False
    mergeable_delay: float = 10.0
    sync_reviews: bool = True
    port: int = 8080
    webhook_path: str = '/'
    webhook_secret: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'BotConfig':
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logging.warning(f"Ignoring unknown config option(s): {', '.join(unknown)}")

        defaults = cls()
        return cls(
            github_token=data.get('github_token') or defaults.github_token,
            api_url=data.get('api_url') or defaults.api_url,
            delete_after_merge=_parse_bool(data.get('delete_after_merge'), defaults.delete_after_merge),
            mergeable_delay=_parse_number('mergeable_delay', data.get('mergeable_delay'),
                                          defaults.mergeable_delay, float),
            sync_reviews=_parse_bool(data.get('sync_reviews'), defaults.sync_reviews),
            port=_parse_number('port', data.get('port'), defaults.port, int),
            webhook_path=data.get('webhook_path') or defaults.webhook_path,
            webhook_secret=data.get('webhook_secret') or defaults.webhook_secret,
        )

    @classmethod
    def from_env(cls, environ: Dict[str, str] = None) -> 'BotConfig':
        """Build a config from environment variables."""
        environ = os.environ if environ is None else environ
        return cls.from_dict({
            'github_token': environ.get('GITHUB_TOKEN'),
            'api_url': environ.get('GITHUB_API_URL'),
            'delete_after_merge': environ.get('DELETE_AFTER_MERGE'),
            'mergeable_delay': environ.get('MERGEABLE_DELAY'),
            'sync_reviews': environ.get('SYNC_REVIEWS'),
            'port': environ.get('PORT'),
            'webhook_path': environ.get('WEBHOOK_PATH'),
            'webhook_secret': environ.get('WEBHOOK_SECRET'),
        })

    @classmethod
    def from_file(cls, config_path: str) -> 'BotConfig':
        """Load a JSON config file, falling back to defaults if it is unusable."""
        if not os.path.exists(config_path):
            logging.warning(f"No config found at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logging.warning(f"Could not load config from {config_path}: {e}")
            return cls()

        if not isinstance(data, dict):
            logging.warning(f"Config in {config_path} is not a JSON object, using defaults")
            return cls()

        logging.info(f"Loaded config from {config_path}")
        return cls.from_dict(data)
