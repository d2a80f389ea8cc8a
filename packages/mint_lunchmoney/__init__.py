"""Public interface for the ``mint_lunchmoney`` package.

Re-exports the migration stages (account/category reconcilers, normalizer,
uploader), the mapping documents and stores, and the end-to-end workflow.
There is no runtime logic here, only symbol re-exports.
"""

from .accounts import (
    add_destination_account_ids,
    create_remote_accounts,
    generate_account_mapping,
    reconcile_with_remote,
    resolve_accounts,
)
from .batching import UploadSummary, upload_transactions
from .categories import (
    add_destination_category_ids,
    create_remote_categories,
    generate_category_mapping,
    plan_remote_categories,
    reconcile_group_conflicts,
    resolve_categories,
)
from .client import DestinationCatalog, LunchMoneyClient
from .errors import MigrationError
from .ingest import read_mint_csv, write_transformed_csv
from .models import (
    AccountDescriptor,
    AccountMappingDoc,
    CategoryDescriptor,
    CategoryGroupDescriptor,
    CategoryMappingDoc,
    FullDescriptor,
    RemoteAsset,
    RemoteCategory,
    SimpleRename,
    TransactionRecord,
)
from .store import FileMappingStore, InMemoryMappingStore
from .transformations import apply_standard_transformations
from .workflows import prepare_transactions, run_migration

__all__ = [
    # Accounts
    "generate_account_mapping",
    "resolve_accounts",
    "reconcile_with_remote",
    "add_destination_account_ids",
    "create_remote_accounts",
    # Categories
    "generate_category_mapping",
    "resolve_categories",
    "reconcile_group_conflicts",
    "plan_remote_categories",
    "create_remote_categories",
    "add_destination_category_ids",
    # Normalizer / upload
    "apply_standard_transformations",
    "upload_transactions",
    "UploadSummary",
    # I/O
    "read_mint_csv",
    "write_transformed_csv",
    "FileMappingStore",
    "InMemoryMappingStore",
    "LunchMoneyClient",
    "DestinationCatalog",
    # Workflow
    "prepare_transactions",
    "run_migration",
    # Models / types
    "TransactionRecord",
    "RemoteAsset",
    "RemoteCategory",
    "AccountDescriptor",
    "CategoryDescriptor",
    "CategoryGroupDescriptor",
    "SimpleRename",
    "FullDescriptor",
    "AccountMappingDoc",
    "CategoryMappingDoc",
    "MigrationError",
]
