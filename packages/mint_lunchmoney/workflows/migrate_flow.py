# ruff: noqa: I001
"""End-to-end migration workflow.

Composes the reconcilers, the normalizer and the uploader behind a single
importable function. Every fatal condition surfaces as a
:class:`~mint_lunchmoney.errors.MigrationError` before any record reaches the
normalizer, so nothing is uploaded from a partially reconciled run.
"""

from __future__ import annotations

from collections.abc import Callable
from os import PathLike

from ..accounts import add_destination_account_ids, reconcile_with_remote, resolve_accounts
from ..batching import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CURRENCY,
    UploadSummary,
    total_batches_for,
    upload_transactions,
)
from ..categories import (
    add_destination_category_ids,
    create_remote_categories,
    generate_category_mapping,
    plan_remote_categories,
    resolve_categories,
)
from ..client import DestinationCatalog, DestinationClient
from ..errors import MigrationAborted, MissingAccountsError, MissingMappingError
from ..ingest import write_transformed_csv
from ..logging_setup import get_logger
from ..models import Records, TransactionRecord
from ..store import MappingStore
from ..transformations import apply_standard_transformations

_logger = get_logger("mint_lunchmoney.workflows.migrate_flow")


def prepare_transactions(
    records: Records,
    *,
    catalog: DestinationCatalog,
    store: MappingStore,
    confirm: Callable[[str], bool],
    on_progress: Callable[[str], None] | None = None,
) -> list[TransactionRecord]:
    """Reconcile, create missing categories and normalize ``records``.

    Steps
    -----
    1. Both mapping documents must exist. A missing category mapping is
       generated for review and the run stops.
    2. Accounts and categories are resolved; every account must already exist
       in Lunch Money.
    3. Missing category groups/categories are created after the operator
       confirms (the group/category namespace check runs before creation).
    4. The standard transformations run (the operator opts in to the
       ``mint`` tag), then remote ids are attached.
    """

    account_mapping = store.load_accounts()
    if account_mapping is None:
        raise MissingMappingError(
            "No account mapping found; run the account-mapping command and review it first"
        )

    category_mapping = store.load_categories()
    if category_mapping is None:
        doc = generate_category_mapping(records, catalog.categories(), store)
        raise MissingMappingError(
            f"A category mapping has been created at {store.describe_categories()} to map "
            f"{len(doc.categories)} Mint categories; review it and run again"
        )

    resolved = resolve_accounts(records, account_mapping)
    resolved = resolve_categories(resolved, category_mapping, catalog.categories())

    missing = reconcile_with_remote(resolved, catalog.assets())
    if missing:
        raise MissingAccountsError(missing)

    plan = plan_remote_categories(resolved, category_mapping, catalog.categories())
    if not plan.is_empty:
        names = [g for g, _ in plan.groups] + [d.category for d in plan.categories]
        if on_progress:
            on_progress("Categories to create in Lunch Money: " + ", ".join(names))
        if not confirm("Do you want to create categories"):
            raise MigrationAborted("No categories are being created, exiting")
        create_remote_categories(resolved, category_mapping, catalog, plan=plan)

    transformed = apply_standard_transformations(
        resolved,
        with_mint_tag=confirm('Do you want to add a "Mint" tag to all transactions'),
    )
    transformed = add_destination_account_ids(transformed, catalog.assets())
    return add_destination_category_ids(transformed, catalog.categories())


def run_migration(
    records: Records,
    *,
    client: DestinationClient,
    store: MappingStore,
    confirm: Callable[[str], bool],
    batch_size: int = DEFAULT_BATCH_SIZE,
    default_currency: str = DEFAULT_CURRENCY,
    transformed_csv_path: str | PathLike[str] | None = None,
    on_progress: Callable[[str], None] | None = None,
) -> UploadSummary:
    """Full run: reconcile → normalize → write CSV → confirm → upload."""

    _logger.info("migrate:start transactions=%d", len(records))
    catalog = DestinationCatalog(client)
    prepared = prepare_transactions(
        records, catalog=catalog, store=store, confirm=confirm, on_progress=on_progress
    )

    if transformed_csv_path is not None:
        write_transformed_csv(prepared, transformed_csv_path)
        if on_progress:
            on_progress(f"Wrote transformed transactions to {transformed_csv_path}")

    n_batches = total_batches_for(len(prepared), batch_size=batch_size)
    if not confirm(
        f"Push {len(prepared)} transactions to Lunch Money in {n_batches} batches"
    ):
        raise MigrationAborted("Upload cancelled")

    summary = upload_transactions(
        prepared,
        client,
        batch_size=batch_size,
        default_currency=default_currency,
        on_progress=on_progress,
    )
    _logger.info(
        "migrate:done batches=%d inserted=%d", summary.batches, len(summary.inserted_ids)
    )
    return summary


__all__ = ["prepare_transactions", "run_migration"]
