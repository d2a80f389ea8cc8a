"""Account reconciliation: Mint account names → Lunch Money assets.

Public operations:

- :func:`generate_account_mapping`: synthesize/merge the account mapping.
- :func:`resolve_accounts`: annotate records with destination names.
- :func:`reconcile_with_remote`: destination names missing in Lunch Money.
- :func:`add_destination_account_ids`: attach remote asset ids.
- :func:`create_remote_accounts`: create mapped assets that do not exist yet.

Account names are compared after Unicode NFKC normalization; Mint exports
contain visually identical names with different encodings.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from .client import DestinationClient
from .errors import MappingNotFoundError
from .logging_setup import get_logger
from .models import (
    CASH_ACCOUNT,
    UNCATEGORIZED,
    AccountDescriptor,
    AccountMappingDoc,
    Records,
    RemoteAsset,
    TransactionRecord,
    distinct,
)
from .store import MappingStore

_logger = get_logger("mint_lunchmoney.accounts")

# Source accounts routed through Mint's pass-through bucket.
_ACCOUNTS_TO_FLAG: frozenset[str] = frozenset({UNCATEGORIZED})


def normalize_account_name(name: str) -> str:
    return unicodedata.normalize("NFKC", name)


def default_descriptor(account_name: str) -> AccountDescriptor:
    """Descriptor synthesized for an account seen for the first time."""

    return AccountDescriptor(
        name=account_name,
        balance=Decimal("0"),
        institution_name="InstitutionName",
        currency="USD",
    )


def generate_account_mapping(records: Records, store: MappingStore) -> AccountMappingDoc:
    """Merge the accounts used by ``records`` into the persisted account mapping.

    Behavior
    --------
    - Distinct source account names are collected in first-appearance order.
    - Names absent from the existing document get :func:`default_descriptor`.
    - Balances of the newly synthesized descriptors are folded from all
      records (credit adds, debit subtracts). Descriptors that were already
      persisted are left exactly as the user last saved them.
    - Entries not referenced by ``records`` are preserved.

    The merged document is saved to ``store`` and returned.
    """

    existing = store.load_accounts() or AccountMappingDoc()
    known = set(existing.names())

    synthesized: dict[str, AccountDescriptor] = {
        name: default_descriptor(name)
        for name in distinct(r.account_name for r in records)
        if name not in known
    }
    _logger.info(
        "accounts:distinct total=%d new=%d existing=%d",
        len(known) + len(synthesized),
        len(synthesized),
        len(known),
    )

    balances: dict[str, Decimal] = {name: Decimal("0") for name in synthesized}
    for r in records:
        if r.account_name not in balances:
            continue
        amount = abs(Decimal(r.amount))
        if r.transaction_type == "credit":
            balances[r.account_name] += amount
        else:
            balances[r.account_name] -= amount

    merged = AccountMappingDoc(
        accounts=[
            *existing.accounts,
            *(
                (name, descriptor.model_copy(update={"balance": balances[name]}))
                for name, descriptor in synthesized.items()
            ),
        ]
    )
    store.save_accounts(merged)
    return merged


def resolve_accounts(records: Records, mapping: AccountMappingDoc) -> list[TransactionRecord]:
    """Set destination account name and currency for every record.

    Raises :class:`~mint_lunchmoney.errors.MappingNotFoundError` for the first
    record whose account is not in ``mapping``.
    """

    out: list[TransactionRecord] = []
    for r in records:
        descriptor = mapping.get(r.account_name)
        if descriptor is None:
            raise MappingNotFoundError(r.account_name)
        if r.account_name in _ACCOUNTS_TO_FLAG:
            _logger.warning(
                "accounts:pass_through account=%s date=%s description=%s amount=%s",
                r.account_name,
                r.date,
                r.description,
                r.amount,
            )
        resolved = replace(
            r,
            dest_account_name=descriptor.name,
            dest_currency=descriptor.currency.lower(),
        )
        out.append(resolved.with_note(f"Original Mint account: {r.account_name}"))
    return out


def reconcile_with_remote(records: Records, assets: Iterable[RemoteAsset]) -> list[str]:
    """Return destination account names used by ``records`` but absent remotely.

    Names are NFKC-normalized on both sides; the implicit ``Cash`` account is
    always considered present. Order follows first appearance in ``records``.
    """

    existing = {normalize_account_name(a.effective_name) for a in assets}
    existing.add(CASH_ACCOUNT)
    required = distinct(
        normalize_account_name(r.dest_account_name)
        for r in records
        if r.dest_account_name is not None
    )
    missing = [name for name in required if name not in existing]
    if missing:
        _logger.warning("accounts:missing_remote count=%d names=%s", len(missing), missing)
    return missing


def add_destination_account_ids(
    records: Records, assets: Iterable[RemoteAsset]
) -> list[TransactionRecord]:
    """Attach the Lunch Money asset id matching each record's destination name.

    Records posted to the implicit ``Cash`` account (or otherwise unmatched)
    keep ``dest_account_id=None``, which Lunch Money treats as a cash
    transaction.
    """

    by_name = {normalize_account_name(a.effective_name): a.id for a in assets}
    out: list[TransactionRecord] = []
    for r in records:
        name = normalize_account_name(r.dest_account_name or "")
        out.append(replace(r, dest_account_id=by_name.get(name)))
    return out


def create_remote_accounts(
    mapping: AccountMappingDoc,
    client: DestinationClient,
    assets: Iterable[RemoteAsset],
) -> dict[str, int]:
    """Create a Lunch Money asset for each mapped account not present remotely.

    Returns ``{destination name: new asset id}`` for the assets created.
    Several Mint accounts may map onto one destination account; it is created
    once.
    """

    existing = {normalize_account_name(a.effective_name) for a in assets}
    existing.add(CASH_ACCOUNT)
    created: dict[str, int] = {}
    for mint_name, descriptor in mapping.accounts:
        key = normalize_account_name(descriptor.name)
        if key in existing:
            _logger.debug("accounts:skip_existing name=%s", descriptor.name)
            continue
        _logger.info(
            "accounts:create name=%s mint_account=%s currency=%s",
            descriptor.name,
            mint_name,
            descriptor.currency.lower(),
        )
        created[descriptor.name] = client.create_asset(descriptor)
        existing.add(key)
    return created


__all__ = [
    "normalize_account_name",
    "default_descriptor",
    "generate_account_mapping",
    "resolve_accounts",
    "reconcile_with_remote",
    "add_destination_account_ids",
    "create_remote_accounts",
]
