#!/usr/bin/env python3
"""
GitHub Auto Merger
Replays webhook deliveries through the auto-merge bot.

Each input line is a JSON object {"event": <X-GitHub-Event>, "payload": {...}}.
Lines are read from the files given as arguments, or from stdin.
"""

import os
import sys
import json
import logging
from dotenv import load_dotenv

from automerge.bot import AutoMergeBot
from automerge.config import BotConfig

# Configure logging (can be overridden by LOG_LEVEL environment variable)
log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='%(asctime)s %(levelname)s: %(message)s',
    datefmt='%m/%d/%Y %I:%M:%S %p'
)


def load_config() -> BotConfig:
    """Load config from AUTO_MERGE_CONFIG if set, otherwise from the environment."""
    config_path = os.environ.get('AUTO_MERGE_CONFIG')
    if config_path:
        return BotConfig.from_file(config_path)
    return BotConfig.from_env()


def replay(bot: AutoMergeBot, stream, source: str) -> int:
    """Dispatch every delivery in a stream, returning how many were handled."""
    handled = 0
    for line_number, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            delivery = json.loads(line)
            event_name = delivery['event']
            payload = delivery['payload']
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logging.error(f"{source}:{line_number}: invalid delivery: {e}")
            continue

        try:
            bot.dispatch(event_name, payload)
            handled += 1
        except Exception as e:
            logging.error(f"{source}:{line_number}: error handling '{event_name}': {e}", exc_info=True)
    return handled


def main():
    """Main entry point for the script."""
    # Load environment variables from .env file if it exists
    load_dotenv()

    config = load_config()
    if not config.github_token:
        logging.error("GITHUB_TOKEN is required to merge pull requests")
        sys.exit(1)

    bot = AutoMergeBot(config)

    handled = 0
    if len(sys.argv) > 1:
        for path in sys.argv[1:]:
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    handled += replay(bot, f, path)
            except IOError as e:
                logging.error(f"Could not read {path}: {e}")
    else:
        handled = replay(bot, sys.stdin, '<stdin>')

    logging.info(f"Handled {handled} deliveries, waiting for mergeability probes...")
    bot.shutdown(wait=True)
    logging.info(f"{len(bot.store)} pull request(s) still waiting for readiness")


if __name__ == "__main__":
    main()
