import importlib.metadata
import os
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from chatdist.constants import (
    APP_NAME,
    LISTING_REQUEST_TIMEOUT,
    MAX_REDIRECTS,
    PROVIDER_REQUEST_RETRIES,
)
from chatdist.exceptions import PathValidationError
from chatdist.log_utils import logger

# Cached User-Agent string, built on first use
_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `chatdist/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(APP_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"{APP_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def get_effective_github_token(
    github_token: Optional[str], allow_env_token: bool = True
) -> Optional[str]:
    """Explicit token first, then GITHUB_TOKEN when allowed; whitespace-only counts as none."""
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    if not allow_env_token:
        return None
    env_token = os.environ.get("GITHUB_TOKEN")
    return env_token.strip() if env_token else None


def create_session() -> requests.Session:
    """
    Build the requests Session used for every outbound call.

    Connection, read and status retries are pinned to PROVIDER_REQUEST_RETRIES
    so one refresh cycle makes exactly one attempt per provider request.
    """
    session = requests.Session()
    session.max_redirects = MAX_REDIRECTS
    retry_strategy: Retry = Retry(
        total=PROVIDER_REQUEST_RETRIES,
        connect=PROVIDER_REQUEST_RETRIES,
        read=PROVIDER_REQUEST_RETRIES,
        status=PROVIDER_REQUEST_RETRIES,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def make_api_request(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """
    GET `url` with the chatdist User-Agent and raise on non-2xx responses.

    Caller headers override the defaults; `timeout` defaults to the listing timeout.

    Raises:
        requests.HTTPError: For HTTP error responses.
        requests.RequestException: For lower-level network or request errors.
    """
    request_headers = {"User-Agent": get_user_agent()}
    if headers:
        request_headers.update(headers)

    logger.debug(f"Making API request: {url}")
    with create_session() as session:
        response = session.get(
            url,
            params=params,
            headers=request_headers,
            timeout=timeout or LISTING_REQUEST_TIMEOUT,
        )
    response.raise_for_status()
    return response


def make_github_api_request(
    url: str,
    github_token: Optional[str] = None,
    allow_env_token: bool = True,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[float] = None,
    _is_retry: bool = False,
) -> requests.Response:
    """
    make_api_request with GitHub headers and optional token auth.

    A 401 with a token is retried once anonymously. A 403 is re-raised with a
    message that says whether the rate limit is exhausted.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    effective_token = get_effective_github_token(github_token, allow_env_token)
    if effective_token:
        headers["Authorization"] = f"token {effective_token}"
    else:
        logger.debug("No GitHub token, using unauthenticated requests")

    try:
        return make_api_request(url, params=params, headers=headers, timeout=timeout)
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        if status == 401 and effective_token and not _is_retry:
            logger.warning(f"GitHub rejected the token for {url}; retrying anonymously")
            return make_github_api_request(
                url,
                allow_env_token=False,
                params=params,
                timeout=timeout,
                _is_retry=True,
            )
        if status == 403:
            if e.response.headers.get("X-RateLimit-Remaining") == "0":
                error_msg = "GitHub API rate limit exceeded. Set GITHUB_TOKEN for higher rate limits."
            else:
                error_msg = "GitHub API access forbidden"
            logger.error(error_msg)
            raise requests.HTTPError(error_msg, response=e.response) from None
        raise


def sanitize_path_component(component: Optional[str]) -> Optional[str]:
    """
    Return `component` stripped, or None unless it is a single relative path segment.
    """
    if component is None:
        return None

    cleaned = component.strip()
    if not cleaned or cleaned in {".", ".."} or "\x00" in cleaned:
        return None
    if os.path.isabs(cleaned):
        return None
    if any(sep and sep in cleaned for sep in (os.sep, os.altsep, "/", "\\")):
        return None
    return cleaned


def is_within_base(real_base_dir: str, candidate: str) -> bool:
    """
    Determine whether the candidate path resides within the given base directory.

    Returns:
        True if the candidate path is inside `real_base_dir`, False otherwise.
    """
    try:
        return os.path.commonpath([real_base_dir, candidate]) == real_base_dir
    except ValueError:
        return False


def resolve_within(base_dir: str, *parts: str) -> str:
    """
    Join path parts onto a base directory and resolve symlinks, refusing to leave the base.

    Parameters:
        base_dir (str): Directory the result must stay inside.
        *parts (str): Path components to join.

    Returns:
        str: The resolved absolute path.

    Raises:
        PathValidationError: If the resolved path is outside `base_dir`.
    """
    real_base_dir = os.path.realpath(base_dir)
    candidate = os.path.realpath(os.path.join(real_base_dir, *parts))

    if not is_within_base(real_base_dir, candidate):
        raise PathValidationError(
            f"Unsafe path '{os.path.join(*parts) if parts else ''}' is outside base '{base_dir}'",
            field="path",
            value=candidate,
        )

    return candidate
