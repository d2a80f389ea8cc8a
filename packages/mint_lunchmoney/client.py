"""Lunch Money API client and the per-run catalog cache.

Only the handful of endpoints the migration needs are wrapped:

- ``GET  /v1/assets``            → :meth:`LunchMoneyClient.get_assets`
- ``GET  /v1/categories``        → :meth:`LunchMoneyClient.get_categories`
- ``POST /v1/categories``        → :meth:`LunchMoneyClient.create_category`
- ``POST /v1/categories/group``  → :meth:`LunchMoneyClient.create_category_group`
- ``POST /v1/assets``            → :meth:`LunchMoneyClient.create_asset`
- ``POST /v1/transactions``      → :meth:`LunchMoneyClient.insert_transactions`

Calls are blocking; no retries are attempted. Non-2xx responses and bodies
carrying an ``error`` key raise :class:`~mint_lunchmoney.errors.LunchMoneyAPIError`,
except for transaction inserts which report errors through
:class:`InsertResult` so the uploader can name the failing batch.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from .errors import LunchMoneyAPIError
from .logging_setup import get_logger
from .models import AccountDescriptor, RemoteAsset, RemoteCategory

DEFAULT_BASE_URL = "https://dev.lunchmoney.app"

_logger = get_logger("mint_lunchmoney.client")


@dataclass(frozen=True, slots=True)
class InsertResult:
    """Outcome of one ``POST /v1/transactions`` call."""

    ids: tuple[int, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class DestinationClient(Protocol):
    """The subset of the Lunch Money API used by the reconcilers and uploader."""

    def get_assets(self) -> list[RemoteAsset]: ...

    def get_categories(self) -> list[RemoteCategory]: ...

    def create_category(
        self,
        name: str,
        *,
        description: str = ...,
        is_income: bool = ...,
        exclude_from_budget: bool = ...,
        exclude_from_totals: bool = ...,
        group_id: int | None = ...,
    ) -> int: ...

    def create_category_group(
        self,
        name: str,
        *,
        description: str = ...,
        is_income: bool = ...,
        exclude_from_budget: bool = ...,
        exclude_from_totals: bool = ...,
    ) -> int: ...

    def create_asset(self, descriptor: AccountDescriptor) -> int: ...

    def insert_transactions(
        self,
        transactions: Sequence[Mapping[str, Any]],
        *,
        apply_rules: bool = ...,
        check_for_recurring: bool = ...,
        debit_as_negative: bool = ...,
    ) -> InsertResult: ...


def _error_messages(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, list):
        return [str(e) for e in raw]
    return [str(raw)]


class LunchMoneyClient:
    """Thin synchronous wrapper over the Lunch Money REST API (``httpx``)."""

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        http: httpx.Client | None = None,
    ) -> None:
        if not token:
            raise ValueError("Lunch Money API token is required")
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> LunchMoneyClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, *, payload: Mapping[str, Any] | None = None) -> Any:
        try:
            resp = self._http.request(method, path, json=payload, headers=self._headers)
        except httpx.HTTPError as e:
            raise LunchMoneyAPIError(f"{method} {path} failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400:
            detail = _error_messages(body.get("error") if isinstance(body, dict) else None)
            message = "; ".join(detail) or resp.text or resp.reason_phrase
            raise LunchMoneyAPIError(
                f"{method} {path} returned {resp.status_code}: {message}",
                status_code=resp.status_code,
            )
        if body is None:
            raise LunchMoneyAPIError(f"{method} {path} returned a non-JSON body")
        return body

    def _post_checked(self, path: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        body = self._request("POST", path, payload=payload)
        errors = _error_messages(body.get("error")) if isinstance(body, dict) else []
        if errors:
            raise LunchMoneyAPIError(f"POST {path} rejected: " + "; ".join(errors))
        return body

    # ------------------------------------------------------------------
    # Catalog reads
    # ------------------------------------------------------------------

    def get_assets(self) -> list[RemoteAsset]:
        body = self._request("GET", "/v1/assets")
        return [
            RemoteAsset(id=int(a["id"]), name=a.get("name") or "", display_name=a.get("display_name"))
            for a in body.get("assets", [])
        ]

    def get_categories(self) -> list[RemoteCategory]:
        body = self._request("GET", "/v1/categories")
        return [
            RemoteCategory(
                id=int(c["id"]),
                name=c.get("name") or "",
                is_group=bool(c.get("is_group", False)),
                is_income=bool(c.get("is_income", False)),
                exclude_from_budget=bool(c.get("exclude_from_budget", False)),
                exclude_from_totals=bool(c.get("exclude_from_totals", False)),
                group_id=c.get("group_id"),
            )
            for c in body.get("categories", [])
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_category(
        self,
        name: str,
        *,
        description: str = "N/A",
        is_income: bool = False,
        exclude_from_budget: bool = False,
        exclude_from_totals: bool = False,
        group_id: int | None = None,
    ) -> int:
        payload: dict[str, Any] = {
            "name": name,
            "description": description,
            "is_income": is_income,
            "exclude_from_budget": exclude_from_budget,
            "exclude_from_totals": exclude_from_totals,
        }
        if group_id is not None:
            payload["group_id"] = group_id
        body = self._post_checked("/v1/categories", payload)
        return int(body["category_id"])

    def create_category_group(
        self,
        name: str,
        *,
        description: str = "N/A",
        is_income: bool = False,
        exclude_from_budget: bool = False,
        exclude_from_totals: bool = False,
    ) -> int:
        body = self._post_checked(
            "/v1/categories/group",
            {
                "name": name,
                "description": description,
                "is_income": is_income,
                "exclude_from_budget": exclude_from_budget,
                "exclude_from_totals": exclude_from_totals,
            },
        )
        # Group responses carry either ``category_id`` or ``id``.
        raw_id = body.get("category_id", body.get("id"))
        if raw_id is None:
            raise LunchMoneyAPIError(f"POST /v1/categories/group returned no id for {name!r}")
        return int(raw_id)

    def create_asset(self, descriptor: AccountDescriptor) -> int:
        body = self._post_checked(
            "/v1/assets",
            {
                "name": descriptor.name,
                "type_name": descriptor.type.value,
                "balance": str(descriptor.balance),
                "currency": descriptor.currency.lower(),
                "institution_name": descriptor.institution_name,
            },
        )
        return int(body["id"])

    def insert_transactions(
        self,
        transactions: Sequence[Mapping[str, Any]],
        *,
        apply_rules: bool = False,
        check_for_recurring: bool = True,
        debit_as_negative: bool = True,
    ) -> InsertResult:
        body = self._request(
            "POST",
            "/v1/transactions",
            payload={
                "transactions": list(transactions),
                "apply_rules": apply_rules,
                "check_for_recurring": check_for_recurring,
                "debit_as_negative": debit_as_negative,
            },
        )
        return InsertResult(
            ids=tuple(int(i) for i in body.get("ids") or ()),
            errors=tuple(_error_messages(body.get("error"))),
        )


# ---------------------------------------------------------------------------
# Per-run catalog cache
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class DestinationCatalog:
    """Fetch the remote asset/category catalogs once and keep them current.

    Entities created through this object are appended to the cached lists so
    later stages see them without a second round-trip.
    """

    client: DestinationClient
    _assets: list[RemoteAsset] | None = field(default=None, init=False)
    _categories: list[RemoteCategory] | None = field(default=None, init=False)

    def assets(self) -> list[RemoteAsset]:
        if self._assets is None:
            self._assets = list(self.client.get_assets())
            _logger.info("catalog:assets fetched=%d", len(self._assets))
        return list(self._assets)

    def _category_cache(self) -> list[RemoteCategory]:
        if self._categories is None:
            self._categories = list(self.client.get_categories())
            _logger.info("catalog:categories fetched=%d", len(self._categories))
        return self._categories

    def categories(self) -> list[RemoteCategory]:
        return list(self._category_cache())

    def create_category_group(self, name: str, **flags: bool) -> int:
        cats = self._category_cache()
        new_id = self.client.create_category_group(name, **flags)
        cats.append(
            RemoteCategory(
                id=new_id,
                name=name,
                is_group=True,
                is_income=flags.get("is_income", False),
                exclude_from_budget=flags.get("exclude_from_budget", False),
                exclude_from_totals=flags.get("exclude_from_totals", False),
            )
        )
        return new_id

    def create_category(self, name: str, *, group_id: int | None = None, **flags: bool) -> int:
        cats = self._category_cache()
        new_id = self.client.create_category(name, group_id=group_id, **flags)
        cats.append(
            RemoteCategory(
                id=new_id,
                name=name,
                is_income=flags.get("is_income", False),
                exclude_from_budget=flags.get("exclude_from_budget", False),
                exclude_from_totals=flags.get("exclude_from_totals", False),
                group_id=group_id,
            )
        )
        return new_id


__all__ = [
    "DEFAULT_BASE_URL",
    "InsertResult",
    "DestinationClient",
    "LunchMoneyClient",
    "DestinationCatalog",
]
