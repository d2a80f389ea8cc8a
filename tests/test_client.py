import json
from decimal import Decimal

import httpx
import pytest

from mint_lunchmoney.client import DestinationCatalog, LunchMoneyClient
from mint_lunchmoney.errors import LunchMoneyAPIError
from mint_lunchmoney.models import AccountDescriptor, AccountType


def _client(handler) -> LunchMoneyClient:
    http = httpx.Client(base_url="https://lm.test", transport=httpx.MockTransport(handler))
    return LunchMoneyClient("secret", http=http)


def test_reads_catalog_with_bearer_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/v1/assets":
            return httpx.Response(
                200, json={"assets": [{"id": 3, "name": "chk", "display_name": "Checking"}]}
            )
        return httpx.Response(
            200,
            json={
                "categories": [
                    {"id": 1, "name": "Income", "is_group": True, "is_income": True},
                    {"id": 2, "name": "Salary", "is_group": False, "group_id": 1},
                ]
            },
        )

    with _client(handler) as client:
        (asset,) = client.get_assets()
        groups_and_leaves = client.get_categories()

    assert asset.effective_name == "Checking"
    assert [(c.name, c.is_group, c.group_id) for c in groups_and_leaves] == [
        ("Income", True, None),
        ("Salary", False, 1),
    ]
    assert all(r.headers["Authorization"] == "Bearer secret" for r in seen)


def test_create_asset_payload():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id": 42})

    descriptor = AccountDescriptor(
        name="House", type=AccountType.REAL_ESTATE, balance=Decimal("-13.11"), currency="CAD"
    )
    assert _client(handler).create_asset(descriptor) == 42
    assert bodies == [
        {
            "name": "House",
            "type_name": "real estate",
            "balance": "-13.11",
            "currency": "cad",
            "institution_name": "InstitutionName",
        }
    ]


def test_create_category_in_group():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        if request.url.path == "/v1/categories/group":
            return httpx.Response(200, json={"id": 9})
        return httpx.Response(200, json={"category_id": 10})

    client = _client(handler)
    assert client.create_category_group("Travel") == 9
    assert client.create_category("Air Travel", group_id=9) == 10
    assert bodies[1]["group_id"] == 9
    assert bodies[1]["description"] == "N/A"


def test_error_key_and_http_status_raise():
    def rejecting(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": ["Name already exists"]})

    with pytest.raises(LunchMoneyAPIError, match="Name already exists"):
        _client(rejecting).create_category("Food")

    def unauthorized(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "Access token does not exist."})

    with pytest.raises(LunchMoneyAPIError) as excinfo:
        _client(unauthorized).get_assets()
    assert excinfo.value.status_code == 401


def test_insert_transactions_reports_errors_without_raising():
    payloads: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        payloads.append(json.loads(request.content))
        if len(payloads) == 1:
            return httpx.Response(200, json={"ids": [1, 2]})
        return httpx.Response(200, json={"error": ["Invalid date"]})

    client = _client(handler)
    ok = client.insert_transactions([{"payee": "a"}, {"payee": "b"}])
    bad = client.insert_transactions([{"payee": "c"}])

    assert ok.ok and ok.ids == (1, 2)
    assert not bad.ok and bad.errors == ("Invalid date",)
    assert payloads[0]["apply_rules"] is False
    assert payloads[0]["check_for_recurring"] is True
    assert payloads[0]["debit_as_negative"] is True


def test_catalog_fetches_once_and_tracks_created_entries():
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(f"{request.method} {request.url.path}")
        if request.method == "GET":
            return httpx.Response(200, json={"categories": []})
        return httpx.Response(200, json={"category_id": 5})

    catalog = DestinationCatalog(_client(handler))
    assert catalog.categories() == []
    catalog.create_category("Snacks", is_income=False)
    assert [c.name for c in catalog.categories()] == ["Snacks"]
    assert calls == ["GET /v1/categories", "POST /v1/categories"]


def test_catalog_create_before_first_read_does_not_duplicate():
    calls: list[str] = []
    remote: list[dict] = [{"id": 1, "name": "Groceries"}]

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(f"{request.method} {request.url.path}")
        if request.method == "GET":
            return httpx.Response(200, json={"categories": list(remote)})
        remote.append({"id": 9, "name": "Travel", "is_group": True})
        return httpx.Response(200, json={"category_id": 9})

    catalog = DestinationCatalog(_client(handler))
    assert catalog.create_category_group("Travel") == 9

    names = [c.name for c in catalog.categories()]
    assert names == ["Groceries", "Travel"]
    assert calls == ["GET /v1/categories", "POST /v1/categories/group"]
