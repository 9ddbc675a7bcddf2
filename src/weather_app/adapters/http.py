from __future__ import annotations

import json
from typing import Any, Mapping
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_USER_AGENT = "weather-app/0.1"


class ProviderError(RuntimeError):
    """Raised when a provider call cannot produce a usable JSON object."""


class TransportError(ProviderError):
    """Raised for network failures, timeouts and non-2xx responses."""


class MalformedResponseError(ProviderError):
    """Raised when a provider answered but the body was not the expected JSON object."""


def build_url(base_url: str, params: Mapping[str, Any]) -> str:
    return f"{base_url}?{urlencode(params)}"


def fetch_json(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    user_agent: str = DEFAULT_USER_AGENT,
) -> dict[str, Any]:
    request = Request(url, headers={"User-Agent": user_agent, "Accept": "application/json"})
    try:
        with urlopen(request, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise TransportError(f"Unexpected HTTP status {status} from {url}")
            raw_body = response.read()
    except HTTPError as exc:
        raise TransportError(f"HTTP {exc.code} from {url}") from exc
    except (URLError, TimeoutError, OSError) as exc:
        raise TransportError(f"Request to {url} failed: {exc}") from exc

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedResponseError(f"Response from {url} was not valid JSON") from exc

    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Unexpected response shape from {url}")
    return payload
