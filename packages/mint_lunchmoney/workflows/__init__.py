"""High-level workflows composing ingest, reconciliation and upload."""

from .migrate_flow import prepare_transactions, run_migration

__all__ = ["prepare_transactions", "run_migration"]
