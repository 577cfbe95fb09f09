"""Tests for the dynalist-tree CLI."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
import typer
from typer.testing import CliRunner

from dynalist_tree.cli import _build_service as real_build_service
from dynalist_tree.cli import app
from dynalist_tree.service import DynalistService
from tests.unit.fakes import FakeDynalist

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fake_service(service: DynalistService) -> Iterator[None]:
    """Route every command to the in-memory fake and leave logging alone."""
    with (
        patch("dynalist_tree.cli._build_service", return_value=service),
        patch("dynalist_tree.cli.configure_logging"),
    ):
        yield


def test_lists_json() -> None:
    result = runner.invoke(app, ["lists", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert {"id": "shop", "title": "Shopping", "type": "document"} in data


def test_read_prints_markdown() -> None:
    result = runner.invoke(app, ["read", "tree", "--max-depth", "1"])
    assert result.exit_code == 0
    assert result.output.startswith("- Groceries\n")
    assert "(2 more children, id=groceries)" in result.output


def test_add_prints_new_ids(fake_dynalist: FakeDynalist) -> None:
    result = runner.invoke(app, ["add", "tree", "Oranges", "Grapes", "--parent", "fruits"])
    assert result.exit_code == 0
    ids = result.output.split()
    assert fake_dynalist.children("tree", "fruits")[2:] == ids


def test_move_and_restructure(fake_dynalist: FakeDynalist) -> None:
    assert runner.invoke(app, ["move", "shop", "butter", "before:milk"]).exit_code == 0
    assert fake_dynalist.children("shop")[0] == "butter"

    moves = json.dumps([{"node_id": "bills", "new_parent": "groceries", "new_index": 0}])
    result = runner.invoke(app, ["restructure", "tree", moves])
    assert result.exit_code == 0
    assert "Moved 1 items" in result.output
    assert fake_dynalist.children("tree", "groceries")[0] == "bills"


def test_check_and_clear(fake_dynalist: FakeDynalist) -> None:
    assert "Checked 1 items" in runner.invoke(app, ["check", "shop", "bread"]).output
    result = runner.invoke(app, ["clear", "shop"])
    assert "Deleted 3 checked items" in result.output
    assert fake_dynalist.children("shop") == ["butter"]


def test_create_list(fake_dynalist: FakeDynalist) -> None:
    result = runner.invoke(app, ["create", "Inbox"])
    assert result.exit_code == 0
    assert fake_dynalist.files[result.output.strip()]["title"] == "Inbox"


def test_domain_error_exits_with_code_1(fake_dynalist: FakeDynalist) -> None:
    result = runner.invoke(app, ["delete", "shop", "non-existent-id"])
    assert result.exit_code == 1
    assert fake_dynalist.edit_calls() == []


def test_invalid_restructure_json_exits_with_code_1() -> None:
    result = runner.invoke(app, ["restructure", "tree", "not json"])
    assert result.exit_code == 1


def test_missing_token_exits_with_code_1(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DYNALIST_TOKEN", raising=False)
    monkeypatch.setattr("dynalist_tree.api.API_TOKEN_FILES", [tmp_path / "missing.txt"])

    with pytest.raises(typer.Exit) as exc_info:
        real_build_service()
    assert exc_info.value.exit_code == 1


def test_malformed_restructure_moves_exit_with_code_1(fake_dynalist: FakeDynalist) -> None:
    for moves in ('[{"new_index": 0}]', '{"node_id": "bills"}', '[{"node_id": "bills", "new_index": "x"}]'):
        result = runner.invoke(app, ["restructure", "tree", moves])
        assert result.exit_code == 1
    assert fake_dynalist.edit_calls() == []


def test_read_rejects_zero_max_depth() -> None:
    result = runner.invoke(app, ["read", "tree", "--max-depth", "0"])
    assert result.exit_code == 1
