"""Craigslist Harvester — Configuration Loader.

Loads and validates application configuration from a YAML file.
Resolves environment variables referenced via ${VAR_NAME} syntax.
Uses Python dataclasses for type-safe configuration access.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Union

import yaml
from dotenv import load_dotenv

from harvester.models import SearchParameters
from harvester.utils.logger import get_logger

logger = get_logger(__name__)

# ── Path Constants ────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"

# ── Environment Variable Pattern ─────────────────────────
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)}")

Number = Union[int, float]


# ═══════════════════════════════════════════════════════════
# Configuration Dataclasses
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ScraperConfig:
    """Site and transport settings."""

    base_url: str
    search_url: str
    request_delay_seconds: float
    timeout_seconds: float
    user_agents: list[str]


@dataclass(frozen=True)
class FormConfig:
    """Which form to submit and the names of its search fields."""

    form_id: str = "searchform"
    query_field: str = "query"
    min_price_field: str = "minAsk"
    max_price_field: str = "maxAsk"


@dataclass(frozen=True)
class SearchConfig:
    """The search to run."""

    query: str
    min_price: Number
    max_price: Number

    def to_parameters(self) -> SearchParameters:
        return SearchParameters(
            query=self.query,
            min_price=self.min_price,
            max_price=self.max_price,
        )


@dataclass(frozen=True)
class ExtractionConfig:
    """Selectors and offsets used to turn result rows into listings."""

    row_selector: str = "p.row"
    link_selector: str = "a"
    link_index: int = 1
    price_selector: str = "span.price"
    location_selector: str = "span.pnr"
    location_trim_start: int = 3
    location_trim_end: int = 12
    skip_malformed: bool = True
    debug_dump_dir: str = ""


@dataclass(frozen=True)
class OutputConfig:
    """Where results are written."""

    path: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration container."""

    scraper: ScraperConfig
    form: FormConfig
    search: SearchConfig
    extraction: ExtractionConfig
    output: OutputConfig
    log_level: str = "INFO"


# ═══════════════════════════════════════════════════════════
# YAML Loading & Environment Variable Resolution
# ═══════════════════════════════════════════════════════════


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${VAR_NAME} references in YAML values.

    Args:
        value: A string, dict, list, or primitive from parsed YAML.

    Returns:
        The same structure with all ${VAR_NAME} placeholders replaced
        by their environment variable values.

    Raises:
        ValueError: If a referenced environment variable is not set.
    """
    if isinstance(value, str):
        for var_name in ENV_VAR_PATTERN.findall(value):
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(
                    f"Environment variable '${{{var_name}}}' is required but not set. "
                    f"Add it to your .env file or export it in your shell."
                )
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file with UTF-8 encoding.

    Raises:
        FileNotFoundError: If the YAML file does not exist.
        ValueError: If the file is empty.
        yaml.YAMLError: If the file contains invalid YAML.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Configuration file is empty: {path}")

    logger.debug("Loaded configuration from %s", path)
    return data


# ═══════════════════════════════════════════════════════════
# Dataclass Builders
# ═══════════════════════════════════════════════════════════


def _number(value: Any, key: str) -> Number:
    """Coerce a YAML scalar (possibly an env-substituted string) to a number."""
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        return value
    try:
        text = str(value).strip()
        return int(text) if re.fullmatch(r"[+-]?\d+", text) else float(text)
    except ValueError:
        raise ValueError(f"'{key}' must be a number, got {value!r}") from None


def _build_scraper_config(data: dict[str, Any]) -> ScraperConfig:
    """Build a ScraperConfig from the 'scraper' section."""
    _validate_keys(data, ["base_url", "search_url", "request_delay_seconds"], "scraper")

    delay = float(_number(data["request_delay_seconds"], "scraper.request_delay_seconds"))
    if delay < 0:
        raise ValueError(f"scraper.request_delay_seconds must be >= 0, got {delay}")

    user_agents = data.get("user_agents") or []
    if isinstance(user_agents, str):
        user_agents = [user_agents]

    return ScraperConfig(
        base_url=data["base_url"],
        search_url=data["search_url"],
        request_delay_seconds=delay,
        timeout_seconds=float(_number(data.get("timeout_seconds", 30), "scraper.timeout_seconds")),
        user_agents=list(user_agents),
    )


def _build_form_config(data: dict[str, Any]) -> FormConfig:
    """Build a FormConfig from the 'form' section; every key is optional."""
    defaults = FormConfig()
    return FormConfig(
        form_id=data.get("form_id", defaults.form_id),
        query_field=data.get("query_field", defaults.query_field),
        min_price_field=data.get("min_price_field", defaults.min_price_field),
        max_price_field=data.get("max_price_field", defaults.max_price_field),
    )


def _build_search_config(data: dict[str, Any]) -> SearchConfig:
    """Build a SearchConfig from the 'search' section.

    Raises:
        ValueError: If min_price is greater than max_price.
    """
    _validate_keys(data, ["query", "min_price", "max_price"], "search")

    min_price = _number(data["min_price"], "search.min_price")
    max_price = _number(data["max_price"], "search.max_price")
    if min_price > max_price:
        raise ValueError(
            f"search.min_price ({min_price}) must not exceed search.max_price ({max_price})"
        )

    return SearchConfig(
        query=str(data["query"]),
        min_price=min_price,
        max_price=max_price,
    )


def _build_extraction_config(data: dict[str, Any]) -> ExtractionConfig:
    """Build an ExtractionConfig from the 'extraction' section; keys are optional."""
    defaults = ExtractionConfig()
    return ExtractionConfig(
        row_selector=data.get("row_selector", defaults.row_selector),
        link_selector=data.get("link_selector", defaults.link_selector),
        link_index=int(data.get("link_index", defaults.link_index)),
        price_selector=data.get("price_selector", defaults.price_selector),
        location_selector=data.get("location_selector", defaults.location_selector),
        location_trim_start=int(data.get("location_trim_start", defaults.location_trim_start)),
        location_trim_end=int(data.get("location_trim_end", defaults.location_trim_end)),
        skip_malformed=bool(data.get("skip_malformed", defaults.skip_malformed)),
        debug_dump_dir=data.get("debug_dump_dir") or "",
    )


def _validate_keys(data: dict[str, Any], required: list[str], section: str) -> None:
    """Validate that all required keys exist in a config section.

    Raises:
        ValueError: If any required key is missing.
    """
    missing = [key for key in required if key not in data]
    if missing:
        raise ValueError(
            f"Missing required configuration keys in '{section}': {', '.join(missing)}"
        )


def _optional_section(settings: dict[str, Any], section: str, known: list[str]) -> dict[str, Any]:
    """Return an optional section, or {} when it is absent.

    Raises:
        ValueError: If the section is not a mapping or has unknown keys.
    """
    data = settings.get(section)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration section '{section}' must be a mapping")
    unknown = [key for key in data if key not in known]
    if unknown:
        raise ValueError(
            f"Unknown configuration keys in '{section}': {', '.join(unknown)}"
        )
    return data


def _log_level(data: dict[str, Any]) -> str:
    """Read and check the 'logging.level' name."""
    level = str(data.get("level", "INFO")).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"logging.level must be a logging level name, got {level!r}")
    return level


# ═══════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════


def build_config(settings: dict[str, Any]) -> AppConfig:
    """Build a typed AppConfig from an already-resolved settings dict.

    Args:
        settings: Parsed settings with ${VAR} placeholders resolved.

    Returns:
        A fully validated AppConfig instance.

    Raises:
        ValueError: If required sections or fields are missing or invalid.
    """
    _validate_keys(settings, ["scraper", "search", "output"], "settings")
    _validate_keys(settings["output"], ["path"], "output")

    return AppConfig(
        scraper=_build_scraper_config(settings["scraper"]),
        form=_build_form_config(
            _optional_section(settings, "form", [f.name for f in fields(FormConfig)])
        ),
        search=_build_search_config(settings["search"]),
        extraction=_build_extraction_config(
            _optional_section(settings, "extraction", [f.name for f in fields(ExtractionConfig)])
        ),
        output=OutputConfig(path=str(settings["output"]["path"])),
        log_level=_log_level(_optional_section(settings, "logging", ["level"])),
    )


def load_config(
    settings_path: Path | None = None,
    env_path: Path | None = None,
) -> AppConfig:
    """Load the complete application configuration.

    Loads settings.yaml, resolves environment variables, validates all
    required fields, and returns a typed AppConfig instance.

    Args:
        settings_path: Override path to settings.yaml. Defaults to config/settings.yaml.
        env_path: Override path to .env file. Defaults to project root .env.

    Returns:
        A fully validated AppConfig instance.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If required fields are missing or env vars are unset.
    """
    env_file = env_path or (PROJECT_ROOT / ".env")
    load_dotenv(env_file)
    logger.debug("Loaded environment from %s", env_file)

    raw_settings = _load_yaml(settings_path or SETTINGS_PATH)
    config = build_config(_resolve_env_vars(raw_settings))

    logger.info("Configuration loaded successfully")
    logger.debug("Search URL: %s", config.scraper.search_url)
    logger.debug(
        "Search: %r, price %s-%s",
        config.search.query, config.search.min_price, config.search.max_price,
    )
    logger.debug("Output path: %s", config.output.path)

    return config
