"""Runtime settings for nappa-instrument.

Defaults live on InstrumentSettings; config/instrument.yaml overrides
them and NAPPA_INSTRUMENT_* environment variables (read after
``load_dotenv()``) override both.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv

from .constants import ENTRY_METHOD, LIBRARY_PACKAGE, SAMPLE_APP_PACKAGE

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "instrument.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class InstrumentSettings:
    """Tunable knobs of an instrumentation run."""

    library_package: str = LIBRARY_PACKAGE
    sample_app_package: str = SAMPLE_APP_PACKAGE
    entry_method: str = ENTRY_METHOD
    intent_variable: str = "intent"
    # Files (and then classes) whose text lacks these are not scanned for call sites
    file_filter: str = "android.content.Intent"
    class_filter: str = "Intent"
    dialects: List[str] = field(default_factory=lambda: ["java", "kotlin"])
    indent: str = "    "
    dry_run: bool = False
    log_level: str = "INFO"


def load_settings(config_path: Optional[str] = None) -> InstrumentSettings:
    """Build settings from defaults, the YAML config file and the environment.

    Args:
        config_path: Explicit YAML path. Falls back to NAPPA_INSTRUMENT_CONFIG,
            then to config/instrument.yaml at the repository root.
    """
    settings = InstrumentSettings()

    path = Path(config_path or os.getenv("NAPPA_INSTRUMENT_CONFIG") or DEFAULT_CONFIG_PATH)
    if path.exists():
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}
        section = config.get("instrument", config)
        known = {f.name for f in fields(InstrumentSettings)}
        for key, value in section.items():
            if key not in known:
                logger.warning(f"Ignoring unknown setting '{key}' in {path}")
                continue
            setattr(settings, key, value)
    elif config_path:
        logger.warning(f"Config file not found at {path}, using defaults")

    log_level = os.getenv("NAPPA_INSTRUMENT_LOG_LEVEL")
    if log_level:
        settings.log_level = log_level.upper()
    dry_run = os.getenv("NAPPA_INSTRUMENT_DRY_RUN")
    if dry_run:
        settings.dry_run = dry_run.strip().lower() in _TRUE_VALUES

    return settings


_settings: Optional[InstrumentSettings] = None


def get_settings() -> InstrumentSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
