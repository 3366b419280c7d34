"""Minimal JSON-over-HTTP helpers shared by the HTTP adapters."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Optional

DEFAULT_TIMEOUT = 10


class HttpError(RuntimeError):
    """Raised for transport failures and non-2xx responses."""


def request_json(
    url: str,
    payload: Optional[dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET `url` (or POST `payload` as JSON) and return the decoded body.

    Every request carries a timeout so a stalled backend cannot hang a cycle.
    """

    data = None
    method = "GET"
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        method = "POST"
    request = urllib.request.Request(url, data=data, method=method)
    request.add_header("Accept", "application/json")
    if data is not None:
        request.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            body = response.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        detail = e.read().decode("utf-8", errors="replace")
        raise HttpError(f"HTTP {e.code} from {url}: {detail}") from e
    except (urllib.error.URLError, TimeoutError) as e:
        raise HttpError(f"Request to {url} failed: {e}") from e
    return json.loads(body) if body else None
