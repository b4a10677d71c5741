"""Typer CLI for certhealth."""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .alerting.webhook import send_webhook_alert
from .classifier import classify_all
from .config import Config, generate_example_config, load_config
from .models import CertificateHealthReport, HealthStatus, SourceFailure
from .severity import get_status_color, get_status_emoji, overall_status, report_status
from .sources import gather_records

app = typer.Typer(
    name="certhealth",
    help="Certificate health checker - classify expiry, signature algorithm and key size",
    add_completion=False,
)

config_app = typer.Typer(help="Configuration management commands")
app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_WARNING = 1
EXIT_CRITICAL = 2


def configure_logging(verbose: bool = False) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _status_text(status: HealthStatus) -> str:
    color = get_status_color(status)
    return f"[{color}]{status.value}[/{color}]"


def print_reports(
    reports: list[CertificateHealthReport],
    failures: list[SourceFailure],
) -> None:
    """Print health reports and source failures as a Rich table."""
    if reports:
        table = Table(title="Certificate Health", expand=True)
        table.add_column("", width=2)
        table.add_column("Subject", overflow="fold")
        table.add_column("Validity Period")
        table.add_column("Algorithm")
        table.add_column("Key Size")
        table.add_column("Source", style="dim", overflow="fold")

        for report in reports:
            table.add_row(
                get_status_emoji(report_status(report)),
                report.subject,
                f"{_status_text(report.validity_period_status)}\n{report.validity_period_message}",
                f"{_status_text(report.algorithm_status)}\n{report.algorithm_message}",
                f"{_status_text(report.key_size_status)}\n{report.key_size_message}",
                report.source_location,
            )
        console.print(table)
    else:
        console.print("[dim]No certificates found[/dim]")

    for failure in failures:
        console.print(f"[red]Skipped:[/red] {failure.location}: {failure.error}")


def print_json(
    reports: list[CertificateHealthReport],
    failures: list[SourceFailure],
) -> None:
    """Print health reports and source failures as JSON."""
    payload = {
        "reports": [r.model_dump(mode="json") for r in reports],
        "failures": [f.model_dump(mode="json") for f in failures],
    }
    console.print_json(json.dumps(payload))


def exit_code_for(reports: list[CertificateHealthReport]) -> int:
    """Map the worst rolled-up status in a run to a process exit code."""
    status = overall_status(reports)
    if status == HealthStatus.CRITICAL:
        return EXIT_CRITICAL
    if status == HealthStatus.WARNING:
        return EXIT_WARNING
    return EXIT_OK


def _load_config_or_exit(config_path: Optional[Path]) -> Config:
    try:
        return load_config(config_path)
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] Config file not found: {config_path}")
        raise typer.Exit(EXIT_CRITICAL)
    except (yaml.YAMLError, ValidationError) as e:
        err_console.print(f"[red]Error:[/red] Failed to load config: {e}")
        raise typer.Exit(EXIT_CRITICAL)


@app.command("check")
def check_command(
    paths: Annotated[
        Optional[list[Path]],
        typer.Argument(help="Certificate files or directories to inspect"),
    ] = None,
    stores: Annotated[
        Optional[list[Path]],
        typer.Option("--store", "-s", help="Certificate store (bundle file or directory)"),
    ] = None,
    recurse: Annotated[
        Optional[bool],
        typer.Option("--recurse/--no-recurse", help="Walk directories recursively"),
    ] = None,
    file_types: Annotated[
        Optional[list[str]],
        typer.Option("--file-type", help="Certificate file extension to include (repeatable)"),
    ] = None,
    excluded: Annotated[
        Optional[list[str]],
        typer.Option("--exclude", "-x", help="Thumbprint to exclude (repeatable)"),
    ] = None,
    warning_days: Annotated[
        Optional[int],
        typer.Option("--warning-days", help="Warn when expiring within N days"),
    ] = None,
    critical_days: Annotated[
        Optional[int],
        typer.Option("--critical-days", help="Critical when expiring within N days"),
    ] = None,
    warning_algorithms: Annotated[
        Optional[list[str]],
        typer.Option("--warning-algorithm", help="Deprecated signature algorithm (repeatable)"),
    ] = None,
    critical_algorithms: Annotated[
        Optional[list[str]],
        typer.Option("--critical-algorithm", help="Vulnerable signature algorithm (repeatable)"),
    ] = None,
    warning_key_size: Annotated[
        Optional[int],
        typer.Option("--warning-key-size", help="Warn below this key size in bits"),
    ] = None,
    critical_key_size: Annotated[
        Optional[int],
        typer.Option("--critical-key-size", help="Critical below this key size in bits"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
    workers: Annotated[
        int,
        typer.Option("--workers", "-w", min=1, help="Classification worker threads"),
    ] = 1,
    alert: Annotated[
        bool,
        typer.Option("--alert", "-a", help="Send alerts if configured"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Classify the health of certificates in files, directories and stores."""
    configure_logging(verbose)
    config = _load_config_or_exit(config_path)

    all_paths = [str(p) for p in paths or []] or config.paths
    all_stores = [str(s) for s in stores or []] or config.stores
    if not all_paths and not all_stores:
        err_console.print("[red]Error:[/red] Please provide a path, --store, or a config with paths")
        raise typer.Exit(EXIT_CRITICAL)

    thresholds = config.health_thresholds(
        warning_days=warning_days,
        critical_days=critical_days,
        warning_algorithms=warning_algorithms or None,
        critical_algorithms=critical_algorithms or None,
        warning_key_size=warning_key_size,
        critical_key_size=critical_key_size,
    )

    gathered = gather_records(
        paths=all_paths,
        stores=all_stores,
        recurse=config.recurse if recurse is None else recurse,
        file_types=file_types or config.certificate_file_types,
        excluded_thumbprints=[*config.excluded_thumbprints, *(excluded or [])],
    )

    reports = classify_all(gathered.records, thresholds, workers=workers)

    if json_output:
        print_json(reports, gathered.failures)
    else:
        print_reports(reports, gathered.failures)
        if gathered.excluded:
            console.print(f"[dim]{gathered.excluded} certificate(s) excluded by thumbprint[/dim]")

    if alert and config.alerting.enabled:
        sent = send_webhook_alert(reports, config.alerting)
        if sent and not json_output:
            console.print("[dim]📤 Alert sent[/dim]")

    code = exit_code_for(reports)
    if code != EXIT_OK:
        raise typer.Exit(code)


@config_app.command("init")
def config_init_command(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file path"),
    ] = Path("certhealth.yaml"),
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing file"),
    ] = False,
) -> None:
    """Generate an example configuration file."""
    if output.exists() and not force:
        console.print(f"[red]Error:[/red] File already exists: {output}")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(EXIT_CRITICAL)

    with open(output, "w") as f:
        f.write(generate_example_config())

    console.print(f"[green]✓[/green] Created configuration file: {output}")


@config_app.command("validate")
def config_validate_command(
    config_file: Annotated[
        Path,
        typer.Argument(help="Configuration file to validate"),
    ],
) -> None:
    """Validate a configuration file."""
    if not config_file.exists():
        console.print(f"[red]Error:[/red] File not found: {config_file}")
        raise typer.Exit(EXIT_CRITICAL)

    try:
        config = load_config(config_file)
    except (yaml.YAMLError, ValidationError) as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(EXIT_CRITICAL)

    console.print("[green]✓[/green] Configuration is valid")

    t = config.thresholds
    console.print()
    console.print("[bold]Thresholds:[/bold]")
    console.print(f"  Warning expiry: {t.warning_days} days")
    console.print(f"  Critical expiry: {t.critical_days} days")
    console.print(f"  Warning algorithms: {', '.join(t.warning_algorithms) or '-'}")
    console.print(f"  Critical algorithms: {', '.join(t.critical_algorithms) or '-'}")
    console.print(f"  Key size: critical < {t.critical_key_size}, warning < {t.warning_key_size}")
    if t.critical_days >= t.warning_days:
        console.print("[yellow]Warning:[/yellow] critical_days should be less than warning_days")
    if t.critical_key_size >= t.warning_key_size:
        console.print("[yellow]Warning:[/yellow] critical_key_size should be less than warning_key_size")

    if config.paths or config.stores:
        console.print()
        console.print(f"[bold]Sources:[/bold] {len(config.paths)} path(s), {len(config.stores)} store(s)")

    if config.alerting.enabled:
        console.print()
        console.print("[bold]Alerting:[/bold] Enabled")
        console.print(f"  Min severity: {config.alerting.min_severity}")
        if config.alerting.webhook.enabled:
            console.print("  Webhook: Configured")


@app.command("version")
def version_command() -> None:
    """Show version information."""
    console.print(f"[bold]certhealth[/bold] v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
