"""Data models for ``mint_lunchmoney``.

Two families live here:

- In-memory records (frozen ``dataclass``): :class:`TransactionRecord` plus the
  remote catalog entries fetched from Lunch Money. Stages never mutate a
  record; they return a new one via :func:`dataclasses.replace`.
- Persisted mapping documents (pydantic): the account and category mapping
  files that bridge reconciliation and normalization across runs. On disk the
  keys are camelCase (``institutionName``, ``excludeFromBudget``,
  ``lunchMoneyOptions``) so the files stay compatible with hand edits made
  against earlier exports.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, TypeAlias, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Source records
# ---------------------------------------------------------------------------

TransactionType = Literal["debit", "credit"]

# Mint's pass-through account/category name; resolves but is always logged.
UNCATEGORIZED = "Uncategorized"

# Every Lunch Money budget has an implicit cash account without an asset row.
CASH_ACCOUNT = "Cash"


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """One Mint transaction plus the Lunch Money annotations derived from it.

    Source fields mirror the Mint CSV columns (header whitespace removed).
    ``amount`` is the unsigned magnitude as exported; the sign lives in
    ``transaction_type``. Annotation fields stay ``None`` (or empty) until a
    reconciliation or normalization stage fills them in.
    """

    account_name: str
    amount: str
    category: str
    date: str
    description: str
    transaction_type: TransactionType
    notes: str = ""
    original_description: str = ""
    labels: str = ""

    dest_account_name: str | None = None
    dest_account_id: int | None = None
    dest_category_name: str | None = None
    dest_category_id: int | None = None
    dest_currency: str | None = None
    tags: tuple[str, ...] = ()
    normalized_amount: str | None = None
    normalized_date: str | None = None
    external_id: str | None = None

    @property
    def is_debit(self) -> bool:
        return self.transaction_type == "debit"

    def with_tags(self, tags: Iterable[str]) -> TransactionRecord:
        """Return a copy with ``tags`` added (duplicates are dropped)."""

        merged = list(self.tags)
        for tag in tags:
            if tag not in merged:
                merged.append(tag)
        return replace(self, tags=tuple(merged))

    def with_note(self, line: str) -> TransactionRecord:
        """Return a copy with ``line`` appended to the notes as a new paragraph."""

        return replace(self, notes=f"{self.notes}\n\n{line}")


Records: TypeAlias = Sequence[TransactionRecord]


_H = TypeVar("_H", bound=Hashable)


def distinct(values: Iterable[_H]) -> list[_H]:
    """Return ``values`` de-duplicated, keeping first-appearance order."""

    return list(dict.fromkeys(values))


# ---------------------------------------------------------------------------
# Remote catalog entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RemoteAsset:
    """A manually managed Lunch Money asset (account)."""

    id: int
    name: str
    display_name: str | None = None

    @property
    def effective_name(self) -> str:
        return self.display_name or self.name


@dataclass(frozen=True, slots=True)
class RemoteCategory:
    """A Lunch Money category or category group."""

    id: int
    name: str
    is_group: bool = False
    is_income: bool = False
    exclude_from_budget: bool = False
    exclude_from_totals: bool = False
    group_id: int | None = None


def split_catalog(categories: Iterable[RemoteCategory]) -> tuple[list[str], list[str]]:
    """Split a remote catalog into ``(group_names, leaf_names)``."""

    groups: list[str] = []
    leaves: list[str] = []
    for c in categories:
        (groups if c.is_group else leaves).append(c.name)
    return groups, leaves


# ---------------------------------------------------------------------------
# Mapping documents (persisted)
# ---------------------------------------------------------------------------

_DOC_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class AccountType(str, Enum):
    """Lunch Money asset types (wire values)."""

    EMPLOYEE_COMPENSATION = "employee compensation"
    CASH = "cash"
    VEHICLE = "vehicle"
    LOAN = "loan"
    CRYPTOCURRENCY = "cryptocurrency"
    INVESTMENT = "investment"
    OTHER = "other"
    CREDIT = "credit"
    REAL_ESTATE = "real estate"


class AccountDescriptor(BaseModel):
    """Destination account candidate for one Mint account."""

    model_config = _DOC_CONFIG

    name: str
    type: AccountType = AccountType.CASH
    balance: Decimal = Decimal("0")
    institution_name: str = "InstitutionName"
    currency: str = "USD"

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        # Accept "real-estate" / "employee_compensation" spellings from hand edits.
        if isinstance(v, str):
            return " ".join(v.replace("-", " ").replace("_", " ").lower().split())
        return v

    @field_validator("currency")
    @classmethod
    def _currency_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("currency must be non-empty")
        return v.strip()

    @field_serializer("balance", when_used="json")
    def _balance_as_number(self, v: Decimal) -> float:
        return float(v)


class CategoryDescriptor(BaseModel):
    """Destination category settings for one Mint category."""

    model_config = _DOC_CONFIG

    category: str
    tags: list[str] | None = None
    income: bool = False
    exclude_from_budget: bool = False
    exclude_from_totals: bool = False
    category_group: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_from_object(cls, v: Any) -> Any:
        # Older generated files wrote ``"tags": {}``; treat an object as its keys.
        if isinstance(v, Mapping):
            return list(v.keys())
        return v


class CategoryGroupDescriptor(BaseModel):
    """Destination category group settings."""

    model_config = _DOC_CONFIG

    category_group: str | None = None
    income: bool = False
    exclude_from_budget: bool = False
    exclude_from_totals: bool = False


class SimpleRename(BaseModel):
    """Mapping entry given as a bare string: only the destination name changes."""

    model_config = ConfigDict(frozen=True)

    name: str

    @property
    def target(self) -> str:
        return self.name


class FullDescriptor(BaseModel):
    """Mapping entry given as an object: name, tags, flags and optional group."""

    model_config = ConfigDict(frozen=True)

    descriptor: CategoryDescriptor

    @property
    def target(self) -> str:
        return self.descriptor.category


def _parse_entry(v: Any) -> Any:
    if isinstance(v, str):
        return SimpleRename(name=v)
    if isinstance(v, Mapping):
        return FullDescriptor(descriptor=CategoryDescriptor.model_validate(v))
    return v


def _dump_entry(entry: SimpleRename | FullDescriptor) -> str | dict[str, Any]:
    match entry:
        case SimpleRename(name=name):
            return name
        case FullDescriptor(descriptor=descriptor):
            return descriptor.model_dump(mode="json", by_alias=True, exclude_none=True)
    raise TypeError(f"unsupported mapping entry: {entry!r}")


MappingEntry = Annotated[
    SimpleRename | FullDescriptor,
    BeforeValidator(_parse_entry),
    PlainSerializer(_dump_entry),
]


class AccountMappingDoc(BaseModel):
    """``{"accounts": [[mintAccountName, AccountDescriptor], ...]}``"""

    model_config = _DOC_CONFIG

    accounts: list[tuple[str, AccountDescriptor]] = Field(default_factory=list)

    def get(self, name: str) -> AccountDescriptor | None:
        for source_name, descriptor in self.accounts:
            if source_name == name:
                return descriptor
        return None

    def names(self) -> list[str]:
        return [source_name for source_name, _ in self.accounts]


class CategoryMappingDoc(BaseModel):
    """Category mapping reviewed and edited by the user between runs."""

    model_config = _DOC_CONFIG

    categories: dict[str, MappingEntry] = Field(default_factory=dict)
    category_groups: dict[str, CategoryGroupDescriptor] = Field(default_factory=dict)
    lunch_money_options: list[str] = Field(default_factory=list)

    def group_descriptor(self, name: str) -> CategoryGroupDescriptor:
        """Return the declared settings for group ``name`` (defaults when undeclared)."""

        declared = self.category_groups.get(name)
        if declared is None:
            return CategoryGroupDescriptor(category_group=name)
        return declared


__all__ = [
    "TransactionType",
    "TransactionRecord",
    "Records",
    "UNCATEGORIZED",
    "CASH_ACCOUNT",
    "distinct",
    "RemoteAsset",
    "RemoteCategory",
    "split_catalog",
    "AccountType",
    "AccountDescriptor",
    "CategoryDescriptor",
    "CategoryGroupDescriptor",
    "SimpleRename",
    "FullDescriptor",
    "MappingEntry",
    "AccountMappingDoc",
    "CategoryMappingDoc",
]
