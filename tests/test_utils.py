import os
from unittest.mock import MagicMock

import pytest
import requests

from chatdist import utils
from chatdist.exceptions import PathValidationError

pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def _reset_user_agent_cache():
    utils._USER_AGENT_CACHE = None
    yield
    utils._USER_AGENT_CACHE = None


def _response(status_code=200, headers=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.headers = headers or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


class TestUserAgent:
    def test_includes_installed_version(self, mocker):
        """The user agent carries the installed distribution version."""
        mocker.patch("chatdist.utils.importlib.metadata.version", return_value="1.2.3")
        assert utils.get_user_agent() == "chatdist/1.2.3"

    def test_unknown_when_not_installed(self, mocker):
        """A missing distribution falls back to 'unknown'."""
        import importlib.metadata

        mocker.patch(
            "chatdist.utils.importlib.metadata.version",
            side_effect=importlib.metadata.PackageNotFoundError("chatdist"),
        )
        assert utils.get_user_agent() == "chatdist/unknown"

    def test_value_is_cached(self, mocker):
        """The metadata lookup only happens once."""
        version = mocker.patch(
            "chatdist.utils.importlib.metadata.version", return_value="1.0.0"
        )
        utils.get_user_agent()
        utils.get_user_agent()
        version.assert_called_once()


class TestGithubToken:
    def test_explicit_token_is_trimmed(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert utils.get_effective_github_token("  explicit  ") == "explicit"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", " env-token ")
        assert utils.get_effective_github_token(None) == "env-token"

    def test_env_fallback_disabled(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert utils.get_effective_github_token("", allow_env_token=False) is None


def _http_error(status_code, headers=None):
    return _response(status_code, headers).raise_for_status.side_effect


def _session_returning(*responses):
    session = MagicMock()
    session.__enter__.return_value = session
    session.get.side_effect = list(responses)
    return session


class TestMakeApiRequest:
    def test_sends_user_agent_and_options(self, mocker):
        """Requests carry the chatdist user agent plus caller params, headers and timeout."""
        ok = _response(200)
        session = _session_returning(ok)
        mocker.patch("chatdist.utils.create_session", return_value=session)

        result = utils.make_api_request(
            "https://example.com/api", params={"a": "1"}, headers={"X-Test": "yes"}, timeout=7
        )

        assert result is ok
        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"a": "1"}
        assert kwargs["timeout"] == 7
        assert kwargs["headers"]["X-Test"] == "yes"
        assert kwargs["headers"]["User-Agent"].startswith("chatdist/")

    def test_caller_user_agent_wins(self, mocker):
        session = _session_returning(_response(200))
        mocker.patch("chatdist.utils.create_session", return_value=session)

        utils.make_api_request("https://example.com", headers={"User-Agent": "Browser"})

        assert session.get.call_args.kwargs["headers"]["User-Agent"] == "Browser"

    def test_transient_error_is_raised_after_one_attempt(self, mocker):
        """A 503 surfaces immediately; the next refresh cycle is the retry."""
        session = _session_returning(_response(503), _response(200))
        mocker.patch("chatdist.utils.create_session", return_value=session)

        with pytest.raises(requests.HTTPError):
            utils.make_api_request("https://example.com")
        assert session.get.call_count == 1

    def test_session_does_not_retry(self):
        session = utils.create_session()
        try:
            retries = session.get_adapter("https://example.com").max_retries
            assert retries.total == 0
            assert retries.connect == 0
            assert retries.read == 0
            assert retries.status == 0
            assert session.get_adapter("http://example.com").max_retries.total == 0
            assert session.max_redirects == utils.MAX_REDIRECTS
        finally:
            session.close()


class TestMakeGithubApiRequest:
    def test_sends_token_header(self, mocker):
        request = mocker.patch("chatdist.utils.make_api_request", return_value=_response(200))

        utils.make_github_api_request("https://api.github.com/x", github_token="abc", timeout=9)

        kwargs = request.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "token abc"
        assert kwargs["headers"]["Accept"] == "application/vnd.github+json"
        assert kwargs["timeout"] == 9

    def test_goes_through_shared_session(self, mocker):
        session = _session_returning(_response(200))
        mocker.patch("chatdist.utils.create_session", return_value=session)

        utils.make_github_api_request("https://api.github.com/x", allow_env_token=False)

        headers = session.get.call_args.kwargs["headers"]
        assert headers["User-Agent"].startswith("chatdist/")
        assert headers["X-GitHub-Api-Version"] == "2022-11-28"

    def test_retries_without_auth_on_401(self, mocker):
        """A rejected token triggers one unauthenticated retry."""
        request = mocker.patch(
            "chatdist.utils.make_api_request",
            side_effect=[_http_error(401), _response(200)],
        )

        result = utils.make_github_api_request(
            "https://api.github.com/x", github_token="bad-token"
        )

        assert result.status_code == 200
        assert request.call_count == 2
        assert "Authorization" not in request.call_args_list[1].kwargs["headers"]

    def test_no_retry_without_token(self, mocker, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        request = mocker.patch(
            "chatdist.utils.make_api_request",
            side_effect=_http_error(401),
        )

        with pytest.raises(requests.HTTPError):
            utils.make_github_api_request("https://api.github.com/x")
        assert request.call_count == 1

    def test_rate_limit_message(self, mocker):
        mocker.patch(
            "chatdist.utils.make_api_request",
            side_effect=_http_error(403, headers={"X-RateLimit-Remaining": "0"}),
        )

        with pytest.raises(requests.HTTPError, match="rate limit exceeded"):
            utils.make_github_api_request("https://api.github.com/x", allow_env_token=False)

    def test_forbidden_message(self, mocker):
        mocker.patch(
            "chatdist.utils.make_api_request",
            side_effect=_http_error(403, headers={"X-RateLimit-Remaining": "10"}),
        )

        with pytest.raises(requests.HTTPError, match="access forbidden"):
            utils.make_github_api_request("https://api.github.com/x", allow_env_token=False)


class TestPathSafety:
    @pytest.mark.parametrize("component", [None, "", "  ", ".", "..", "a/b", "a\\b", "/abs", "x\x00y"])
    def test_unsafe_components_rejected(self, component):
        assert utils.sanitize_path_component(component) is None

    def test_safe_component_trimmed(self):
        assert utils.sanitize_path_component(" zh-CN ") == "zh-CN"

    def test_resolve_within_inside(self, tmp_path):
        resolved = utils.resolve_within(str(tmp_path), "en", "1-3.4.0.md")
        assert resolved == os.path.join(os.path.realpath(tmp_path), "en", "1-3.4.0.md")

    def test_resolve_within_rejects_traversal(self, tmp_path):
        with pytest.raises(PathValidationError):
            utils.resolve_within(str(tmp_path / "notes"), "..", "secret.md")

    def test_resolve_within_rejects_symlink_escape(self, tmp_path):
        base = tmp_path / "notes"
        base.mkdir()
        outside = tmp_path / "outside.md"
        outside.write_text("secret", encoding="utf-8")
        (base / "link.md").symlink_to(outside)

        with pytest.raises(PathValidationError):
            utils.resolve_within(str(base), "link.md")

    def test_is_within_base_sibling_prefix(self, tmp_path):
        """A sibling sharing the base's name prefix is outside the base."""
        base = str(tmp_path / "notes")
        assert not utils.is_within_base(base, str(tmp_path / "notes-evil" / "x.md"))
