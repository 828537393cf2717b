"""Craigslist Harvester — Main Entry Point.

Loads config/settings.yaml, runs one harvest and exits. Exit status is
0 on success and 1 when any stage fails.

Usage:
    python -m harvester.main
    python scripts/run.py
"""

from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import Optional

import yaml

from harvester.config import load_config
from harvester.errors import HarvestError
from harvester.scraper.pipeline import HarvestPipeline
from harvester.utils.logger import get_logger, set_console_level

logger = get_logger(__name__)


def run(settings_path: Optional[Path] = None) -> int:
    """Load configuration, harvest once, and return a process exit code.

    Args:
        settings_path: Override path to settings.yaml.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        logger.info("═══ Loading configuration ═══")
        config = load_config(settings_path)
        set_console_level(config.log_level)

        stats = HarvestPipeline(config).run()
    except HarvestError as e:
        logger.error("Harvest aborted at stage '%s': %s", e.stage or "?", e.message)
        return 1
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Fatal error: %s", e)
        logger.debug(traceback.format_exc())
        return 1

    logger.info("Saved %d listings to %s", stats["listed"], stats["output_path"])
    return 0


def main() -> None:
    """Application entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
