"""
Configuration module for the Ticket Intake service.

Handles all configuration through environment variables with sane defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv


# Load environment variables from .env file
load_dotenv()


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _int_env(name: str, default: str) -> int:
    """Read an integer environment variable, naming it when malformed."""
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from e


@dataclass(frozen=True)
class ImportConfig:
    """Configuration for bulk ticket imports."""

    # Number of records handed to the ticket service per batch
    batch_size: int = field(
        default_factory=lambda: _int_env("IMPORT_BATCH_SIZE", "100")
    )

    # Maximum accepted upload size in bytes (100 MiB)
    max_file_size: int = field(
        default_factory=lambda: _int_env("IMPORT_MAX_FILE_SIZE", "104857600")
    )


@dataclass(frozen=True)
class SourceConfig:
    """Configuration for fetching import files from remote locations."""

    # Request timeout in seconds
    request_timeout: int = field(
        default_factory=lambda: _int_env("REQUEST_TIMEOUT", "30")
    )


@dataclass(frozen=True)
class OutputConfig:
    """Configuration for output files."""

    output_dir: Path = field(
        default_factory=lambda: Path(os.getenv("OUTPUT_DIR", "./output"))
    )
    report_filename: str = field(
        default_factory=lambda: os.getenv(
            "REPORT_FILENAME",
            "import_report.json"
        )
    )

    @property
    def report_path(self) -> Path:
        """Get full path to the report file."""
        return self.output_dir / self.report_filename


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration aggregating all config sections."""

    imports: ImportConfig = field(default_factory=ImportConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Logging level
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO")
    )

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors = []

        if self.imports.batch_size <= 0:
            errors.append("IMPORT_BATCH_SIZE must be a positive integer")
        if self.imports.max_file_size <= 0:
            errors.append("IMPORT_MAX_FILE_SIZE must be a positive integer")

        if self.source.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be a positive integer")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(
                f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got '{self.log_level}'"
            )

        return errors


def get_config() -> AppConfig:
    """
    Get application configuration.

    Returns:
        AppConfig instance with all settings loaded from environment.
    """
    return AppConfig()
