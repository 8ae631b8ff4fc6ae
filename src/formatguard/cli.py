# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command-line front end for formatguard."""

from __future__ import annotations

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer

from . import __version__
from .ai import OpenAiFormatAdvisor, OpenAiRecommender
from .batch import BatchFormatter, BatchOptions
from .config import FormatGuardSettings, load_settings
from .consent import FileConsentStore
from .console import detect_tty
from .coverage import CoverageReport, FormatOutcome
from .errors import ConfigError
from .installer import FormatterInstaller, InstallContext, PinManifest
from .logging import configure_logging, fail, info, ok, report_file, section, warn
from .models import FormatterDefinition, FormatterRecommendation
from .pipeline import FormatPipeline
from .ports import AiFormatAdvisor, AiRecommender, ConsentPrompter, StaticConsentPrompter
from .registry import build_default_registry
from .runner import HardenedProcessRunner

app = typer.Typer(
    name="formatguard",
    help="Select, trust, install and run external code formatters safely.",
    no_args_is_help=True,
    add_completion=False,
)


class ConsoleConsentPrompter:
    """Ask for trust on the terminal; prompts are serialised across worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def ask_to_trust(self, definition: FormatterDefinition, plan: FormatterRecommendation) -> bool:
        with self._lock:
            return typer.confirm(
                f"Trust {definition.display_name} {plan.version} ({plan.install_strategy.value}) "
                "to be installed and run on this project?",
                default=False,
            )


def _load(root: Path, overrides: dict[str, object], *, use_emoji: bool) -> FormatGuardSettings:
    try:
        return load_settings(root, overrides=overrides)
    except ConfigError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=2) from exc


def build_pipeline(
    settings: FormatGuardSettings,
    *,
    prompter: ConsentPrompter,
    cancel_event: threading.Event,
) -> FormatPipeline:
    """Wire the default adapters for a command-line run."""

    pins = PinManifest.from_json(settings.pins_file) if settings.pins_file is not None else PinManifest()
    installer = FormatterInstaller(
        InstallContext(
            cache_dir=settings.cache_dir,
            network_allowed=settings.network_allowed,
            timeout_seconds=settings.install_timeout_seconds,
        ),
        pins=pins,
    )
    runner = HardenedProcessRunner(
        timeout_seconds=settings.timeout_seconds,
        output_limit=settings.output_limit,
        poll_interval=settings.poll_interval,
        kill_grace_seconds=settings.kill_grace_seconds,
    )
    registry = build_default_registry()
    recommender: AiRecommender | None = None
    advisor: AiFormatAdvisor | None = None
    if settings.ai_enabled:
        recommender = OpenAiRecommender(settings.openai, formatter_ids=list(registry))
        advisor = OpenAiFormatAdvisor(settings.openai)
    return FormatPipeline(
        registry=registry,
        installer=installer,
        runner=runner,
        consent=FileConsentStore(settings.consent_file),
        prompter=prompter,
        recommender=recommender,
        advisor=advisor,
        cancel_event=cancel_event,
    )


@contextmanager
def _cancel_on_interrupt(cancel_event: threading.Event) -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, frame: object) -> None:
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _print_summary(report: CoverageReport, *, use_emoji: bool, preview: bool) -> None:
    use_color = detect_tty()
    if preview:
        for file_report in report.files:
            if file_report.preview:
                section(f"Preview: {file_report.path}", use_color=use_color)
                info(file_report.preview, use_emoji=False)
    failed = [file_report for file_report in report.files if file_report.outcome is FormatOutcome.FAILED]
    if failed:
        section("Failures", use_color=use_color)
        for file_report in failed:
            reason = file_report.notes[-1] if file_report.notes else "unknown error"
            fail(f"{file_report.path}: {reason}", use_emoji=use_emoji)
    section("Coverage", use_color=use_color)
    info(
        f"{report.total_files} file(s): {report.formatted_files} formatted, "
        f"{report.already_formatted_files} already formatted, {report.failed_files} failed",
        use_emoji=use_emoji,
    )
    summary = f"Format coverage: {report.coverage_percent:.2f}%"
    if failed:
        warn(summary, use_emoji=use_emoji)
    else:
        ok(summary, use_emoji=use_emoji)


@app.command("format")
def format_command(
    root: Path = typer.Argument(Path("."), help="File or directory to format."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report changes without keeping them."),
    preview: bool = typer.Option(False, "--preview", help="Show a diff preview for changed files."),
    ai: bool | None = typer.Option(None, "--ai/--no-ai", help="Allow the AI last-resort formatter."),
    network: bool | None = typer.Option(
        None,
        "--network/--no-network",
        help="Allow installers and AI to use the network.",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Trust every formatter without prompting."),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Number of files formatted concurrently."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every pipeline step."),
) -> None:
    """Format every supported file under ROOT and print format coverage."""

    configure_logging(verbose=verbose)
    target = root.resolve()
    if not target.exists():
        fail(f"{target} does not exist", use_emoji=emoji)
        raise typer.Exit(code=2)
    project_root = target if target.is_dir() else target.parent
    settings = _load(
        project_root,
        {"ai_enabled": ai, "network_allowed": network, "jobs": jobs, "dry_run": dry_run or None},
        use_emoji=emoji,
    )

    if yes:
        prompter: ConsentPrompter = StaticConsentPrompter(True)
    elif detect_tty():
        prompter = ConsoleConsentPrompter()
    else:
        prompter = StaticConsentPrompter(False)
        warn("Not attached to a terminal; untrusted formatters will be skipped (use --yes).", use_emoji=emoji)

    cancel_event = threading.Event()
    try:
        pipeline = build_pipeline(settings, prompter=prompter, cancel_event=cancel_event)
    except ConfigError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=2) from exc
    batch = BatchFormatter(
        pipeline,
        jobs=settings.jobs,
        cancel_event=cancel_event,
        log=lambda message: warn(message, use_emoji=emoji),
        on_report=lambda file_report: report_file(file_report, use_emoji=emoji),
    )
    options = BatchOptions(
        dry_run=settings.dry_run,
        preview=preview,
        ai_enabled=settings.ai_enabled,
        network_allowed=settings.network_allowed,
        allow_auto_install=settings.allow_auto_install,
    )
    info(f"formatguard {__version__}: formatting {target}{' (dry run)' if settings.dry_run else ''}", use_emoji=emoji)
    with _cancel_on_interrupt(cancel_event):
        report = batch.run(target, options)

    _print_summary(report, use_emoji=emoji, preview=preview)
    raise typer.Exit(code=1 if report.failed_files or cancel_event.is_set() else 0)


def _consent_store(root: Path, *, use_emoji: bool) -> FileConsentStore:
    settings = _load(root.resolve(), {}, use_emoji=use_emoji)
    return FileConsentStore(settings.consent_file)


@app.command("trust")
def trust_command(
    formatter_id: str = typer.Argument(..., help="Formatter id to trust."),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
) -> None:
    """Trust FORMATTER_ID so it can be installed without prompting."""

    if build_default_registry().find_by_id(formatter_id) is None:
        fail(f"Unknown formatter '{formatter_id}'", use_emoji=emoji)
        raise typer.Exit(code=2)
    store = _consent_store(root, use_emoji=emoji)
    store.trust_formatter(formatter_id)
    ok(f"Trusted {formatter_id.strip().lower()}", use_emoji=emoji)


@app.command("untrust")
def untrust_command(
    formatter_id: str = typer.Argument(..., help="Formatter id to remove from the trusted set."),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
) -> None:
    """Remove FORMATTER_ID from the trusted set."""

    store = _consent_store(root, use_emoji=emoji)
    store.untrust_formatter(formatter_id)
    ok(f"Untrusted {formatter_id.strip().lower()}", use_emoji=emoji)


@app.command("trusted")
def trusted_command(
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root."),
    emoji: bool = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output."),
) -> None:
    """List trusted formatter ids."""

    trusted = sorted(_consent_store(root, use_emoji=emoji).trusted_formatters())
    if not trusted:
        info("No formatters are trusted yet.", use_emoji=emoji)
        return
    for formatter_id in trusted:
        typer.echo(formatter_id)


def main() -> None:
    app()


__all__ = ["ConsoleConsentPrompter", "app", "build_pipeline", "main"]
