import contextlib
import json
import textwrap

import pytest
from typer.testing import CliRunner

import mint_lunchmoney.cli as cli_mod
import mint_lunchmoney.client as client_mod
import mint_lunchmoney.term_ui as term_ui_mod
from mint_lunchmoney.models import RemoteAsset, RemoteCategory
from tests.helpers.fake_lunchmoney import FakeLunchMoney

MINT_EXPORT = textwrap.dedent(
    """\
    Date,Description,Original Description,Amount,Transaction Type,Category,Account Name,Labels,Notes
    10/02/2021,Amazon,AMZN,13.11,debit,Groceries,Amazon Card,,
    10/03/2021,Refund,AMZN,3.00,credit,Groceries,Amazon Card,,
    """
)

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    # CliRunner swaps stderr per invocation; keep handlers off it.
    monkeypatch.setattr(cli_mod, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def workdir(tmp_path):
    (tmp_path / "data.csv").write_text(MINT_EXPORT, encoding="utf-8")
    return tmp_path


def _install_fake(monkeypatch: pytest.MonkeyPatch, fake: FakeLunchMoney) -> None:
    @contextlib.contextmanager
    def factory(token, *, base_url):
        assert token == "secret"
        yield fake

    monkeypatch.setattr(client_mod, "LunchMoneyClient", factory)
    monkeypatch.setenv("LUNCH_MONEY_API_KEY", "secret")


def _args(workdir, *rest: str) -> list[str]:
    return [
        "--csv-path",
        str(workdir / "data.csv"),
        "--account-mapping",
        str(workdir / "account_mapping.json"),
        "--category-mapping",
        str(workdir / "category_mapping.json"),
        *rest,
    ]


def test_account_mapping_command_writes_file(workdir):
    result = runner.invoke(cli_mod.app, _args(workdir, "account-mapping"))

    assert result.exit_code == 0, result.output
    raw = json.loads((workdir / "account_mapping.json").read_text(encoding="utf-8"))
    ((name, descriptor),) = raw["accounts"]
    assert name == "Amazon Card"
    assert descriptor["balance"] == -10.11


def test_missing_csv_exits_nonzero(workdir):
    result = runner.invoke(
        cli_mod.app, ["--csv-path", str(workdir / "nope.csv"), "account-mapping"]
    )
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_category_mapping_requires_api_key(workdir):
    result = runner.invoke(cli_mod.app, _args(workdir, "category-mapping"))
    assert result.exit_code == 1
    assert "LUNCH_MONEY_API_KEY" in result.output


def test_category_mapping_refuses_to_overwrite(workdir, monkeypatch):
    _install_fake(monkeypatch, FakeLunchMoney(categories=[RemoteCategory(id=1, name="Grocery")]))

    first = runner.invoke(cli_mod.app, _args(workdir, "category-mapping"))
    second = runner.invoke(cli_mod.app, _args(workdir, "category-mapping"))
    third = runner.invoke(cli_mod.app, _args(workdir, "category-mapping", "--overwrite"))

    assert first.exit_code == 0, first.output
    assert second.exit_code == 1
    assert "--overwrite" in second.output
    assert third.exit_code == 0


def test_create_account_command(workdir, monkeypatch):
    fake = FakeLunchMoney()
    _install_fake(monkeypatch, fake)
    assert runner.invoke(cli_mod.app, _args(workdir, "account-mapping")).exit_code == 0

    result = runner.invoke(cli_mod.app, _args(workdir, "create-account"))

    assert result.exit_code == 0, result.output
    assert "Created account Amazon Card" in result.output
    assert fake.writes() == [("create_asset", "Amazon Card")]


def test_full_run_without_subcommand(workdir, monkeypatch):
    fake = FakeLunchMoney(
        assets=[RemoteAsset(id=1, name="Amazon Card")],
        categories=[RemoteCategory(id=2, name="Groceries")],
    )
    _install_fake(monkeypatch, fake)
    monkeypatch.setattr(term_ui_mod, "confirm", lambda message: True)
    (workdir / "category_mapping.json").write_text('{"categories": {}}', encoding="utf-8")
    assert runner.invoke(cli_mod.app, _args(workdir, "account-mapping")).exit_code == 0

    result = runner.invoke(cli_mod.app, _args(workdir, "--batch-size", "1"))

    assert result.exit_code == 0, result.output
    assert [len(b) for b in fake.batches] == [1, 1]
    assert "Pushed 2 transactions in 2 batches" in result.output


def test_debug_logging_does_not_print_api_token(workdir, monkeypatch):
    import io

    from mint_lunchmoney.logging_setup import configure_logging

    buf = io.StringIO()
    monkeypatch.setattr(
        cli_mod,
        "configure_logging",
        lambda level=None, **kwargs: configure_logging(level, stream=buf, **kwargs),
    )
    monkeypatch.setenv("LUNCH_MONEY_API_KEY", "TOPSECRET123")

    result = runner.invoke(cli_mod.app, _args(workdir, "--log-level", "DEBUG", "account-mapping"))

    assert result.exit_code == 0, result.output
    logged = buf.getvalue()
    assert "cli:settings" in logged
    assert "TOPSECRET123" not in logged
