"""Tests for DynalistApi, the HTTP client with retries."""

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from dynalist_tree.api import DynalistApi, load_api_token
from dynalist_tree.errors import ApiError


@pytest.fixture
def api_with_mock_session(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> tuple[DynalistApi, MagicMock]:
    """Create a DynalistApi with a real token file and mocked requests.Session."""
    token_file = tmp_path / "token.txt"
    token_file.write_text("test-token\n")
    monkeypatch.delenv("DYNALIST_TOKEN", raising=False)
    monkeypatch.setattr("dynalist_tree.api.API_TOKEN_FILES", [token_file])

    with patch("dynalist_tree.api.requests.Session") as mock_session_cls:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        api = DynalistApi()

    return api, mock_session


def _make_response(data: dict[str, Any]) -> MagicMock:
    """Create a mock HTTP response with given JSON data."""
    response = MagicMock()
    response.json.return_value = data
    return response


def test_token_from_environment_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    token_file = tmp_path / "token.txt"
    token_file.write_text("file-token\n")
    monkeypatch.setattr("dynalist_tree.api.API_TOKEN_FILES", [token_file])
    monkeypatch.setenv("DYNALIST_TOKEN", " env-token ")

    assert load_api_token() == "env-token"


def test_token_from_first_found_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """The API token comes from the first existing file when the env var is unset."""
    token_file = tmp_path / "token.txt"
    token_file.write_text("my-secret-token\n")
    monkeypatch.delenv("DYNALIST_TOKEN", raising=False)
    monkeypatch.setattr(
        "dynalist_tree.api.API_TOKEN_FILES",
        [tmp_path / "missing.txt", token_file],
    )

    with patch("dynalist_tree.api.requests.Session"):
        api = DynalistApi()

    assert api.api_token == "my-secret-token"


def test_missing_token_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DYNALIST_TOKEN", raising=False)
    monkeypatch.setattr(
        "dynalist_tree.api.API_TOKEN_FILES",
        [tmp_path / "a.txt", tmp_path / "b.txt"],
    )

    with pytest.raises(RuntimeError, match="Cannot find dynalist token"):
        DynalistApi()


def test_explicit_token_skips_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("dynalist_tree.api.API_TOKEN_FILES", [])
    monkeypatch.delenv("DYNALIST_TOKEN", raising=False)

    with patch("dynalist_tree.api.requests.Session"):
        api = DynalistApi(token="given", base_url="https://example.test/")

    assert api.api_token == "given"
    assert api.base_url == "https://example.test"


def test_session_mounts_retrying_adapter() -> None:
    with patch("dynalist_tree.api.requests.Session") as mock_session_cls:
        DynalistApi(token="t", max_retries=5)

    session = mock_session_cls.return_value
    prefixes = [c.args[0] for c in session.mount.call_args_list]
    assert prefixes == ["https://", "http://"]
    adapter = session.mount.call_args_list[0].args[1]
    assert adapter.max_retries.total == 5
    assert 429 in adapter.max_retries.status_forcelist


def test_call_sends_token_in_request_body(
    api_with_mock_session: tuple[DynalistApi, MagicMock],
) -> None:
    """API call injects token into the request JSON body."""
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"_code": "Ok", "data": 1})

    api.call("doc/read", {"file_id": "abc"})

    call_args = mock_session.post.call_args
    assert call_args.args[0] == "https://dynalist.io/api/v1/doc/read"
    assert call_args.kwargs["json"] == {"token": "test-token", "file_id": "abc"}
    assert call_args.kwargs["timeout"] == api.timeout


def test_call_returns_parsed_json_response(
    api_with_mock_session: tuple[DynalistApi, MagicMock],
) -> None:
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response({"_code": "OK", "files": [1, 2, 3]})

    assert api.call("file/list", {}) == {"_code": "OK", "files": [1, 2, 3]}


def test_call_raises_api_error_with_code(
    api_with_mock_session: tuple[DynalistApi, MagicMock],
) -> None:
    """API call raises ApiError when _code is not Ok."""
    api, mock_session = api_with_mock_session
    mock_session.post.return_value = _make_response(
        {"_code": "InvalidToken", "_msg": "bad token"}
    )

    with pytest.raises(ApiError, match=r"\[Dynalist API\] InvalidToken: bad token") as exc_info:
        api.call("file/list", {})
    assert exc_info.value.code == "InvalidToken"


def test_call_raises_on_http_error(
    api_with_mock_session: tuple[DynalistApi, MagicMock],
) -> None:
    """API call raises when HTTP status indicates failure."""
    api, mock_session = api_with_mock_session
    mock_session.post.return_value.raise_for_status.side_effect = Exception("500")

    with pytest.raises(Exception, match="500"):
        api.call("file/list", {})
