# ruff: noqa: I001
"""CLI for the ``mint_lunchmoney`` package.

This module exposes callable command handlers (``cmd_*``, each returning a
process exit code) and a Typer-based console interface. Environment
variables (notably ``LUNCH_MONEY_API_KEY``) are loaded from a local ``.env``
using ``python-dotenv`` before delegating to command logic.

Commands
--------
- *(no subcommand)*: full migration run (reconcile, normalize, upload).
- ``category-mapping``: write ``category_mapping.json`` for review.
- ``account-mapping``: write/merge ``account_mapping.json``.
- ``create-account``: create the mapped accounts in Lunch Money.
"""

from __future__ import annotations

import csv
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

import typer
from dotenv import load_dotenv

from .config import Settings
from .errors import MigrationError
from .logging_setup import configure_logging, get_logger
from .models import TransactionRecord
from .store import FileMappingStore

_logger = get_logger("mint_lunchmoney.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _store(settings: Settings) -> FileMappingStore:
    return FileMappingStore(settings.account_mapping_path, settings.category_mapping_path)


def _load_records(settings: Settings) -> list[TransactionRecord] | None:
    """Read the Mint export, printing a concise error and returning ``None`` on failure."""

    from .ingest import read_mint_csv

    csv_path = settings.csv_path
    try:
        return read_mint_csv(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
    except csv.Error as e:
        print(f"Error: Failed to parse CSV: {e}", file=sys.stderr)
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
    return None


def _print_progress(message: str) -> None:
    print(message)


# ---- Command handlers --------------------------------------------------------


def cmd_account_mapping(settings: Settings) -> int:
    """Create or extend the account mapping from the Mint export.

    Accounts already present in the mapping keep the values the user saved;
    new accounts get defaults and a balance folded from their transactions.
    """

    from .accounts import generate_account_mapping

    records = _load_records(settings)
    if records is None:
        return 1
    try:
        doc = generate_account_mapping(records, _store(settings))
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(
        f"An account mapping has been written to {settings.account_mapping_path} "
        f"with {len(doc.accounts)} accounts."
    )
    return 0


def cmd_category_mapping(settings: Settings, *, overwrite: bool = False) -> int:
    """Generate the category mapping with suggestions from the live catalog."""

    from .categories import generate_category_mapping
    from .client import LunchMoneyClient

    records = _load_records(settings)
    if records is None:
        return 1
    try:
        with LunchMoneyClient(settings.require_api_key(), base_url=settings.base_url) as client:
            doc = generate_category_mapping(
                records, client.get_categories(), _store(settings), overwrite=overwrite
            )
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(
        f"A category mapping has been created at {settings.category_mapping_path} "
        f"to map {len(doc.categories)} Mint categories to Lunch Money."
    )
    return 0


def cmd_create_account(settings: Settings) -> int:
    """Create every mapped account that does not exist in Lunch Money yet."""

    from .accounts import create_remote_accounts
    from .client import LunchMoneyClient

    try:
        mapping = _store(settings).load_accounts()
        if mapping is None:
            print(
                f"Error: No account mapping at {settings.account_mapping_path}; "
                "run account-mapping first.",
                file=sys.stderr,
            )
            return 1
        with LunchMoneyClient(settings.require_api_key(), base_url=settings.base_url) as client:
            created = create_remote_accounts(mapping, client, client.get_assets())
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if created:
        for name, asset_id in created.items():
            print(f"Created account {name} (id {asset_id})")
    else:
        print("All mapped accounts already exist in Lunch Money.")
    return 0


def cmd_run(settings: Settings, *, confirm: Callable[[str], bool] | None = None) -> int:
    """Full migration: reconcile, normalize, write the CSV, confirm, upload."""

    from .client import LunchMoneyClient
    from .term_ui import confirm as prompt_confirm
    from .workflows.migrate_flow import run_migration

    records = _load_records(settings)
    if records is None:
        return 1
    if not records:
        print("No transactions to migrate.")
        return 0

    try:
        with LunchMoneyClient(settings.require_api_key(), base_url=settings.base_url) as client:
            summary = run_migration(
                records,
                client=client,
                store=_store(settings),
                confirm=confirm or prompt_confirm,
                batch_size=settings.batch_size,
                default_currency=settings.currency,
                transformed_csv_path=settings.transformed_csv_path,
                on_progress=_print_progress,
            )
    except MigrationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(
        f"Pushed {summary.transactions} transactions in {summary.batches} batches "
        f"({len(summary.inserted_ids)} inserted)."
    )
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    add_completion=False,
    help=(
        "Migrate a Mint transactions export into Lunch Money. "
        "Loads LUNCH_MONEY_API_KEY from a local .env before running."
    ),
)


def _settings(ctx: typer.Context) -> Settings:
    settings = ctx.obj
    if not isinstance(settings, Settings):  # pragma: no cover - callback always runs first
        settings = Settings.from_env()
    return settings


@app.command("category-mapping")
def category_mapping_cmd(
    ctx: typer.Context,
    overwrite: bool = typer.Option(
        False, help="Replace an existing category mapping (discards manual edits)."
    ),
) -> None:
    """Write a category mapping with suggested Lunch Money categories."""

    raise typer.Exit(cmd_category_mapping(_settings(ctx), overwrite=overwrite))


@app.command("account-mapping")
def account_mapping_cmd(ctx: typer.Context) -> None:
    """Write or extend the account mapping from the Mint export."""

    raise typer.Exit(cmd_account_mapping(_settings(ctx)))


@app.command("create-account")
def create_account_cmd(ctx: typer.Context) -> None:
    """Create the mapped accounts in Lunch Money."""

    raise typer.Exit(cmd_create_account(_settings(ctx)))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    csv_path: Path | None = typer.Option(
        None, "--csv-path", help="Mint export CSV (falls back to MINT_LM_CSV_PATH or ./data.csv).",
        dir_okay=False,
    ),
    account_mapping: Path | None = typer.Option(
        None, "--account-mapping", help="Account mapping JSON path.", dir_okay=False
    ),
    category_mapping: Path | None = typer.Option(
        None, "--category-mapping", help="Category mapping JSON path.", dir_okay=False
    ),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, help="Transactions per upload request."
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (falls back to MINT_LM_LOG_LEVEL)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), configures logging, and runs the full
    migration when no subcommand is invoked.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    settings = Settings.from_env()
    configure_logging(log_level, secrets=(settings.api_key,))

    overrides: dict[str, object] = {}
    if csv_path is not None:
        overrides["csv_path"] = csv_path
    if account_mapping is not None:
        overrides["account_mapping_path"] = account_mapping
    if category_mapping is not None:
        overrides["category_mapping_path"] = category_mapping
    if batch_size is not None:
        overrides["batch_size"] = batch_size
    ctx.obj = replace(settings, **overrides) if overrides else settings
    _logger.debug("cli:settings %s", ctx.obj)

    if ctx.invoked_subcommand is None:
        raise typer.Exit(cmd_run(ctx.obj))


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    app()
