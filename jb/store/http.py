"""HTTP client abstraction for store lookups.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from jb import __version__
from jb.core.result import Err, Ok, Result
from jb.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "with_query",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


def with_query(url: str, **params: str | None) -> str:
    """Append query parameters, skipping ``None`` values."""
    query = {k.replace("_", "-"): v for k, v in params.items() if v is not None}
    if not query:
        return url
    return f"{url}?{urllib.parse.urlencode(query)}"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Store clients receive one of these so tests never touch the network.
    """

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """Fetch URL and parse as a JSON object."""
        ...

    def get_bytes(self, url: str) -> Result[bytes, HttpError]:
        """Fetch URL and return the raw body."""
        ...


class RealHttpClient:
    """Real HTTP client using urllib.

    Shared by worker threads; it keeps no per-request state.
    """

    def __init__(
        self, timeout: float = 30.0, user_agent: str = f"juju-bundle/{__version__}"
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def get_bytes(self, url: str) -> Result[bytes, HttpError]:
        try:
            req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        result = self.get_bytes(url)
        if isinstance(result, Err):
            return result

        try:
            data_obj: object = json.loads(result.value.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON object"))
        return Ok(cast(dict[str, Any], data))


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.charmhub.io/v2/charms/info/foo", {"name": "foo"})
        result = client.get_json("https://api.charmhub.io/v2/charms/info/foo")
        assert result == Ok({"name": "foo"})
    """

    def __init__(self) -> None:
        self._json_responses: dict[str, dict[str, Any] | HttpError] = {}
        self._bytes_responses: dict[str, bytes | HttpError] = {}
        self.calls: list[tuple[str, str]] = []

    def set_json(self, url: str, response: dict[str, Any] | HttpError) -> None:
        self._json_responses[url] = response

    def set_bytes(self, url: str, response: bytes | HttpError) -> None:
        self._bytes_responses[url] = response

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        self.calls.append(("get_json", url))

        if url not in self._json_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._json_responses[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_bytes(self, url: str) -> Result[bytes, HttpError]:
        self.calls.append(("get_bytes", url))

        if url not in self._bytes_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._bytes_responses[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
