#!/usr/bin/env python3
"""
Configuration Management for jobledger

Handles environment-based configuration with defaults and validation.
Supports multiple environments (development, test, production). Matching
thresholds and import settings are read here once and handed to the engine
explicitly; engine components never reach for the global config themselves.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

UNASSIGNED_PROJECT_ID = "00000000-0000-0000-0000-000000000002"
UNASSIGNED_CLIENT_ID = "00000000-0000-0000-0000-000000000001"


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class MatchingConfig:
    """Confidence thresholds for entity and allocation matching (0-100 scale)."""

    auto_accept_threshold: float = 75.0
    review_threshold: float = 40.0
    project_fuzzy_threshold: float = 85.0
    project_suggestion_threshold: float = 50.0
    bulk_auto_accept_floor: float = 75.0


@dataclass
class ImportConfig:
    """Bulk import settings."""

    auto_create_payees: bool = True
    date_buffer_days: int = 1
    reconciliation_tolerance_cents: int = 1
    # TODO: confirm with product whether labor stays out of the expected duplicate total
    reconciliation_excluded_category: str | None = "labor_internal"
    gas_project_code: str = "001-GAS"
    ga_project_code: str = "002-GA"
    unassigned_project_id: str = UNASSIGNED_PROJECT_ID
    unassigned_client_id: str = UNASSIGNED_CLIENT_ID


@dataclass
class Config:
    """
    Main configuration class for jobledger.

    Loads configuration from environment variables with defaults
    and validation for each environment type.
    """

    environment: Environment

    # Core directories
    data_dir: Path
    store_dir: Path
    reports_dir: Path

    # Component configurations
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    importer: ImportConfig = field(default_factory=ImportConfig)

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("JOBLEDGER_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_jobledger"
            base_dir = Path(os.getenv("JOBLEDGER_DATA_DIR", str(default_test_dir)))
        else:
            base_dir = Path(os.getenv("JOBLEDGER_DATA_DIR", "./data")).expanduser().resolve()

        data_dir = base_dir
        store_dir = data_dir / "store"
        reports_dir = data_dir / "reports"

        for directory in [data_dir, store_dir, reports_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        matching = MatchingConfig(
            auto_accept_threshold=float(os.getenv("JOBLEDGER_AUTO_ACCEPT", "75")),
            review_threshold=float(os.getenv("JOBLEDGER_REVIEW_THRESHOLD", "40")),
            project_fuzzy_threshold=float(os.getenv("JOBLEDGER_PROJECT_FUZZY", "85")),
            project_suggestion_threshold=float(os.getenv("JOBLEDGER_PROJECT_SUGGEST", "50")),
            bulk_auto_accept_floor=float(os.getenv("JOBLEDGER_BULK_FLOOR", "75")),
        )

        excluded = os.getenv("JOBLEDGER_RECONCILE_EXCLUDE", "labor_internal").strip()
        importer = ImportConfig(
            auto_create_payees=os.getenv("JOBLEDGER_AUTO_CREATE_PAYEES", "true").lower() == "true",
            date_buffer_days=int(os.getenv("JOBLEDGER_DATE_BUFFER_DAYS", "1")),
            reconciliation_tolerance_cents=int(os.getenv("JOBLEDGER_RECONCILE_TOLERANCE_CENTS", "1")),
            reconciliation_excluded_category=excluded or None,
            gas_project_code=os.getenv("JOBLEDGER_GAS_PROJECT", "001-GAS"),
            ga_project_code=os.getenv("JOBLEDGER_GA_PROJECT", "002-GA"),
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            store_dir=store_dir,
            reports_dir=reports_dir,
            matching=matching,
            importer=importer,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        for name, path in [
            ("data_dir", self.data_dir),
            ("store_dir", self.store_dir),
            ("reports_dir", self.reports_dir),
        ]:
            if not path.exists():
                errors.append(f"{name} does not exist: {path}")

        for name, value in [
            ("auto_accept_threshold", self.matching.auto_accept_threshold),
            ("review_threshold", self.matching.review_threshold),
            ("project_fuzzy_threshold", self.matching.project_fuzzy_threshold),
            ("project_suggestion_threshold", self.matching.project_suggestion_threshold),
            ("bulk_auto_accept_floor", self.matching.bulk_auto_accept_floor),
        ]:
            if not 0 <= value <= 100:
                errors.append(f"{name} must be between 0 and 100")

        if self.matching.review_threshold > self.matching.auto_accept_threshold:
            errors.append("review_threshold must not exceed auto_accept_threshold")

        if self.importer.date_buffer_days < 0:
            errors.append("date_buffer_days must be non-negative")
        if self.importer.reconciliation_tolerance_cents < 0:
            errors.append("reconciliation_tolerance_cents must be non-negative")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a JSON-friendly dictionary."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, (Path, Enum)):
                result[field_name] = dict(field_value.__dict__)
            elif isinstance(field_value, Path):
                result[field_name] = str(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()
