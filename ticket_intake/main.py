"""
Command-line entry point for the Ticket Intake service.

Commands:
- import: bulk import tickets from a CSV, JSON or XML file (path or URL)
- classify: classify a single subject/description pair
- check-config: validate configuration
"""

import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .classifier import KeywordClassifier
from .config import AppConfig, get_config
from .errors import TicketIntakeError
from .importer import ImportService
from .models import BatchReport, ImportRequest, ImportStatus
from .report_writer import write_report
from .sources import load_upload
from .tickets import TicketService


def setup_logging(level: str) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def load_config() -> AppConfig:
    """
    Load configuration from the environment.

    Raises:
        click.ClickException: If a setting cannot be parsed.
    """
    try:
        return get_config()
    except ValueError as e:
        raise click.ClickException(f"Configuration error: {e}") from e


def validate_config(config: AppConfig) -> None:
    """
    Validate configuration before running.

    Raises:
        click.ClickException: If configuration is invalid.
    """
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        raise click.ClickException(
            f"Configuration validation failed with {len(errors)} error(s)"
        )


def format_summary(report: BatchReport) -> str:
    """Human-readable summary of an import."""
    lines = [
        f"Import batch:  {report.import_batch}",
        f"Format:        {report.format}",
        f"Status:        {report.status.value}",
        f"Total records: {report.total_records}",
        f"Succeeded:     {report.success_count}",
        f"Failed:        {report.failure_count}",
        f"Time:          {report.processing_time_ms} ms",
    ]
    for failed in report.failed_records:
        lines.append(f"  row {failed.row_number}: {failed.reason}")
    return "\n".join(lines)


def run_import(
    source: str,
    config: AppConfig,
    file_format: Optional[str] = None,
    validate_only: bool = False,
    import_batch: Optional[str] = None,
    output_path: Optional[Path] = None,
    ticket_service: Optional[TicketService] = None,
) -> BatchReport:
    """
    Load a file, import it and optionally write the report.

    Args:
        source: Local path or HTTP(S) URL of the import file.
        config: Application configuration.
        file_format: Explicit format, otherwise detected from the filename.
        validate_only: Only validate records; create nothing.
        import_batch: Batch identifier; generated when omitted.
        output_path: Where to write the report (.json or .xlsx).
        ticket_service: Ticket service to create tickets with.

    Returns:
        The batch report.
    """
    upload = load_upload(source, config.source)

    service = ImportService(ticket_service or TicketService(), config=config.imports)
    report = service.import_tickets(ImportRequest(
        file=upload,
        format=file_format,
        validate_only=validate_only,
        import_batch=import_batch,
    ))

    if output_path:
        write_report(report, output_path)

    return report


@click.group()
def cli() -> None:
    """Bulk ticket import and keyword classification."""


@cli.command("import")
@click.argument("source")
@click.option(
    "--format",
    "file_format",
    type=click.Choice(["CSV", "JSON", "XML"], case_sensitive=False),
    help="File format (detected from the file extension when omitted)",
)
@click.option(
    "--validate-only",
    is_flag=True,
    default=False,
    help="Validate records without creating tickets",
)
@click.option("--batch-id", help="Identifier for this import batch")
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    help="Override the number of records processed per batch",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the report to this path (.json or .xlsx)",
)
@click.option(
    "--save-report",
    is_flag=True,
    default=False,
    help="Write the report to the configured output path",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
def import_command(
    source: str,
    file_format: Optional[str],
    validate_only: bool,
    batch_id: Optional[str],
    batch_size: Optional[int],
    output: Optional[Path],
    save_report: bool,
    debug: bool,
) -> None:
    """Import tickets from SOURCE, a file path or URL."""
    config = load_config()
    if output is None and save_report:
        output = config.output.report_path
    if debug:
        config = dataclasses.replace(config, log_level="DEBUG")
    if batch_size:
        config = dataclasses.replace(
            config,
            imports=dataclasses.replace(config.imports, batch_size=batch_size),
        )

    setup_logging(config.log_level)

    try:
        validate_config(config)
        report = run_import(
            source,
            config,
            file_format=file_format,
            validate_only=validate_only,
            import_batch=batch_id,
            output_path=output,
        )
    except TicketIntakeError as e:
        click.echo(f"Import failed: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(130)
    except click.ClickException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error importing {source}: {e}", exc_info=debug)
        click.echo("Unexpected error: import could not be completed", err=True)
        sys.exit(1)

    click.echo(format_summary(report))
    if output:
        click.echo(f"Report saved to: {output}")

    if report.status is ImportStatus.FAILED:
        sys.exit(1)


@cli.command("classify")
@click.option("--subject", "-s", required=True, help="Ticket subject")
@click.option("--description", "-d", default="", help="Ticket description")
def classify_command(subject: str, description: str) -> None:
    """Classify a single ticket by keywords."""
    result = KeywordClassifier().classify(subject, description)

    click.echo(f"Category:   {result.category.value}")
    click.echo(f"Priority:   {result.priority.value}")
    click.echo(f"Confidence: {result.confidence_score:.2f}")
    click.echo(f"Keywords:   {', '.join(result.matched_keywords) or '-'}")
    click.echo(f"Reasoning:  {result.reasoning}")


@cli.command("check-config")
def check_config_command() -> None:
    """Validate configuration without importing anything."""
    config = load_config()
    setup_logging(config.log_level)
    validate_config(config)
    click.echo("Configuration is valid!")


if __name__ == "__main__":
    cli()
