from decimal import Decimal

import pytest

from mint_lunchmoney.accounts import (
    add_destination_account_ids,
    create_remote_accounts,
    generate_account_mapping,
    reconcile_with_remote,
    resolve_accounts,
)
from mint_lunchmoney.errors import MappingNotFoundError
from mint_lunchmoney.models import AccountDescriptor, AccountMappingDoc, AccountType, RemoteAsset
from mint_lunchmoney.store import InMemoryMappingStore
from tests.helpers.fake_lunchmoney import FakeLunchMoney, make_record


def test_generate_folds_balance_for_new_accounts():
    records = [
        make_record(account_name="Amazon", amount="13.11", transaction_type="debit"),
        make_record(account_name="Checking", amount="100.00", transaction_type="credit"),
        make_record(account_name="Checking", amount="40.50", transaction_type="debit"),
    ]
    store = InMemoryMappingStore()

    doc = generate_account_mapping(records, store)

    assert doc.names() == ["Amazon", "Checking"]
    amazon = doc.get("Amazon")
    assert amazon is not None
    assert amazon.name == "Amazon"
    assert amazon.balance == Decimal("-13.11")
    assert amazon.type is AccountType.CASH
    assert amazon.institution_name == "InstitutionName"
    assert amazon.currency == "USD"
    assert doc.get("Checking").balance == Decimal("59.50")
    assert store.load_accounts() == doc


def test_generate_preserves_existing_entries_untouched():
    edited = AccountDescriptor(
        name="Amazon Card", type=AccountType.CREDIT, balance=Decimal("5"), currency="CAD"
    )
    unrelated = AccountDescriptor(name="Old Savings")
    store = InMemoryMappingStore(
        accounts=AccountMappingDoc(accounts=[("Amazon", edited), ("Savings", unrelated)])
    )
    records = [
        make_record(account_name="Amazon", amount="13.11"),
        make_record(account_name="Wallet", amount="2.00"),
    ]

    doc = generate_account_mapping(records, store)

    assert doc.names() == ["Amazon", "Savings", "Wallet"]
    assert doc.get("Amazon") == edited
    assert doc.get("Savings") == unrelated
    assert doc.get("Wallet").balance == Decimal("-2.00")


def test_resolve_sets_destination_and_note():
    mapping = AccountMappingDoc(
        accounts=[("Amazon", AccountDescriptor(name="Amazon Card", currency="CAD"))]
    )
    (r,) = resolve_accounts([make_record(account_name="Amazon")], mapping)
    assert r.dest_account_name == "Amazon Card"
    assert r.dest_currency == "cad"
    assert r.notes.endswith("Original Mint account: Amazon")


def test_resolve_unknown_account_raises():
    mapping = AccountMappingDoc(accounts=[("Amazon", AccountDescriptor(name="Amazon"))])
    with pytest.raises(MappingNotFoundError) as excinfo:
        resolve_accounts([make_record(account_name="Amazon"), make_record(account_name="Visa")], mapping)
    assert excinfo.value.account_name == "Visa"


def test_reconcile_with_remote_normalizes_names_and_ignores_cash():
    # "ﬁ" (U+FB01) NFKC-normalizes to "fi".
    records = [
        make_record(dest_account_name="Proﬁt Account"),
        make_record(dest_account_name="Cash"),
        make_record(dest_account_name="Brokerage"),
        make_record(dest_account_name="Brokerage"),
        make_record(dest_account_name="Travel Card"),
    ]
    assets = [RemoteAsset(id=1, name="Profit Account"), RemoteAsset(id=2, name="x", display_name="Travel Card")]

    assert reconcile_with_remote(records, assets) == ["Brokerage"]


def test_add_destination_account_ids():
    records = [make_record(dest_account_name="Checking"), make_record(dest_account_name="Cash")]
    out = add_destination_account_ids(records, [RemoteAsset(id=7, name="Checking")])
    assert [r.dest_account_id for r in out] == [7, None]


def test_create_remote_accounts_skips_existing_and_duplicates():
    mapping = AccountMappingDoc(
        accounts=[
            ("Checking", AccountDescriptor(name="Checking")),
            ("Amazon", AccountDescriptor(name="Cards")),
            ("Visa", AccountDescriptor(name="Cards")),
            ("Wallet", AccountDescriptor(name="Cash")),
        ]
    )
    fake = FakeLunchMoney(assets=[RemoteAsset(id=1, name="Checking")])

    created = create_remote_accounts(mapping, fake, fake.get_assets())

    assert list(created) == ["Cards"]
    assert fake.writes() == [("create_asset", "Cards")]


def test_balance_folds_debits_and_credits_per_account():
    records = [
        make_record(account_name="Amazon", amount="16.11", transaction_type="debit"),
        make_record(account_name="Amazon", amount="3.00", transaction_type="credit"),
        make_record(account_name="Chase", amount="50.00", transaction_type="debit"),
    ]
    doc = generate_account_mapping(records, InMemoryMappingStore())
    assert doc.get("Amazon").balance == Decimal("-13.11")
    assert doc.get("Chase").balance == Decimal("-50.00")


def test_balance_uses_magnitude_like_the_normalizer():
    from mint_lunchmoney.transformations import flip_signs

    record = make_record(account_name="Amazon", amount="-5.00", transaction_type="debit")
    doc = generate_account_mapping([record], InMemoryMappingStore())
    (normalized,) = flip_signs([record])
    assert doc.get("Amazon").balance == Decimal("-5.00")
    assert Decimal(normalized.normalized_amount) == doc.get("Amazon").balance
