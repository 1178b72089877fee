"""Base fetcher interface, error taxonomy and HTTP helpers.

Every fee source inherits from BaseFetcher and implements fetch(), which
performs exactly one HTTP round trip and returns one typed sample. Failures
are raised as FetcherError subclasses, each tagged with an ErrorKind, so
callers can react to the kind without knowing which source failed.

The HTTP client is injected by the caller (usually GasWatch) and shared
between fetchers. When no client is given, a short-lived one is opened for
the single request.

.. code-block:: python

    @register_fetcher
    class MyFetcher(BaseFetcher):
        name = "myfetcher"
        kind = CryptoKind.BITCOIN
        BASE_URL = "https://api.example.com/fees"

        async def fetch(self) -> BtcFeeSample:
            response = await self._get(self.url)
            data = self._json_object(response)
            return self._make_sample(
                BtcFeeSample,
                fastest=require_number(data, "fast", self.name),
                half_hour=require_number(data, "medium", self.name),
                hour=require_number(data, "slow", self.name),
            )
"""

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, TypeVar

import httpx

from ..FeeSamples import CryptoKind, RawSample

logger = logging.getLogger(__name__)

SampleT = TypeVar("SampleT", bound=RawSample)


class ErrorKind(str, Enum):
    """Common failure categories shared by all fetchers."""

    INVALID_ENDPOINT = "invalid_endpoint"
    INVALID_RESPONSE = "invalid_response"
    DECODE_ERROR = "decode_error"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"


class FetcherError(Exception):
    """Base exception for fetcher errors.

    :cvar kind: Error category of this exception type.
    :ivar source: Name of the fetcher that raised it (may be empty).
    """

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, *, source: str = ""):
        self.source = source
        super().__init__(message)


class FetcherEndpointError(FetcherError):
    """Raised when the request target cannot be built (bad URL, missing API key)."""

    kind = ErrorKind.INVALID_ENDPOINT


class FetcherHTTPError(FetcherError):
    """Raised when the server answers with a non-2xx status.

    :ivar status_code: HTTP status code from the failed request.
    """

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, status_code: int, message: str, *, source: str = ""):
        """Initialize the HTTP error.

        :param status_code: HTTP status code.
        :param message: Error message from response.
        :param source: Name of the failing fetcher.
        """
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}", source=source)


class FetcherDecodeError(FetcherError):
    """Raised when the response body does not match the expected schema."""

    kind = ErrorKind.DECODE_ERROR

    def __init__(self, detail: str, *, source: str = ""):
        self.detail = detail
        super().__init__(f"Decoding error: {detail}", source=source)


class FetcherUpstreamError(FetcherError):
    """Raised when a well-formed response reports a logical failure."""

    kind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, detail: str, *, source: str = ""):
        self.detail = detail
        super().__init__(f"API error: {detail}", source=source)


class FetcherTimeoutError(FetcherError):
    """Raised when no response arrived within the timeout budget."""

    kind = ErrorKind.TIMEOUT


def require_number(data: dict[str, Any], key: str, source: str) -> float:
    """Read a non-negative finite number from a decoded JSON object.

    Numeric strings are accepted (Etherscan encodes gwei as strings);
    booleans, nulls and anything else are rejected rather than defaulted.

    :param data: Decoded JSON object.
    :param key: Field name.
    :param source: Fetcher name for the error message.
    :returns: The value as float.
    :raises FetcherDecodeError: If the field is missing or invalid.
    """
    if key not in data:
        raise FetcherDecodeError(f"missing field '{key}'", source=source)
    raw = data[key]
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise FetcherDecodeError(
            f"field '{key}' has unexpected type {type(raw).__name__}", source=source
        )
    try:
        value = float(raw)
    except ValueError as e:
        raise FetcherDecodeError(
            f"field '{key}' is not a number: {raw!r}", source=source
        ) from e
    if not math.isfinite(value) or value < 0:
        raise FetcherDecodeError(
            f"field '{key}' is out of range: {raw!r}", source=source
        )
    return value


class BaseFetcher(ABC):
    """Abstract base class for fee fetchers.

    Subclasses must implement:
        - name: Class variable identifying the source (e.g., "mempool")
        - kind: The CryptoKind of the sample the fetcher produces
        - fetch(): Async method returning one RawSample

    :cvar name: Unique identifier for this fetcher.
    :cvar kind: Crypto kind served by this fetcher.
    :cvar BASE_URL: Default endpoint.
    :cvar DEFAULT_REQUEST_TIMEOUT: Per-request (connect/read/write) timeout in seconds.
    :cvar DEFAULT_RESOURCE_TIMEOUT: Budget for the whole round trip in seconds.
    :ivar api_key: Optional API key for authenticated endpoints.
    :ivar base_url: Endpoint actually used (override for self-hosted mirrors).
    """

    name: ClassVar[str] = ""
    kind: ClassVar[CryptoKind]
    BASE_URL: ClassVar[str] = ""

    DEFAULT_REQUEST_TIMEOUT = 8.0
    DEFAULT_RESOURCE_TIMEOUT = 10.0

    def __init__(
        self,
        api_key: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        request_timeout: float | None = None,
        resource_timeout: float | None = None,
    ):
        """Initialize the fetcher.

        :param api_key: Optional API key for authenticated endpoints.
        :param client: Shared HTTP client; a temporary one is used if None.
        :param base_url: Endpoint override (default: BASE_URL).
        :param request_timeout: Per-request timeout in seconds (default: 8).
        :param resource_timeout: Whole round-trip timeout in seconds (default: 10).
        :raises ValueError: If a timeout is not positive.
        """
        self.api_key = api_key
        self.client = client
        self.base_url = base_url or self.BASE_URL
        self.request_timeout = (
            self.DEFAULT_REQUEST_TIMEOUT if request_timeout is None else request_timeout
        )
        self.resource_timeout = (
            self.DEFAULT_RESOURCE_TIMEOUT if resource_timeout is None else resource_timeout
        )
        if self.request_timeout <= 0 or self.resource_timeout <= 0:
            raise ValueError("timeouts must be positive")

    @property
    def has_api_key(self) -> bool:
        """Check if this fetcher has an API key configured."""
        return self.api_key is not None and len(self.api_key) > 0

    @abstractmethod
    async def fetch(self) -> RawSample:
        """Fetch one sample from the source.

        :returns: Decoded sample.
        :raises FetcherError: On any failure, tagged with its ErrorKind.
        """

    def _build_url(self, url: str, params: dict | None = None) -> httpx.URL:
        """Build and validate a request URL.

        :param url: Absolute URL.
        :param params: Optional query parameters.
        :returns: Parsed URL.
        :raises FetcherEndpointError: If the URL is malformed or not http(s).
        """
        try:
            parsed = httpx.URL(url, params=params) if params else httpx.URL(url)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise FetcherEndpointError(
                f"Invalid URL {url!r}: {e}", source=self.name
            ) from e
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise FetcherEndpointError(f"Invalid URL {url!r}", source=self.name)
        return parsed

    async def _get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make an HTTP GET request.

        :param url: Request URL.
        :param params: Optional query parameters.
        :param headers: Optional request headers.
        :returns: httpx.Response object.
        :raises FetcherError: See _request().
        """
        return await self._request(
            "GET", self._build_url(url, params), headers=headers
        )

    async def _post(
        self,
        url: str,
        *,
        json: Any = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make an HTTP POST request with a JSON body.

        :param url: Request URL.
        :param json: JSON body.
        :param headers: Optional request headers.
        :returns: httpx.Response object.
        :raises FetcherError: See _request().
        """
        return await self._request(
            "POST", self._build_url(url), json=json, headers=headers
        )

    async def _request(
        self,
        method: str,
        url: httpx.URL,
        *,
        json: Any = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Send one request under both timeout budgets.

        :raises FetcherHTTPError: On non-2xx response.
        :raises FetcherTimeoutError: On timeout or when no response was received.
        :raises FetcherEndpointError: If the transport rejects the URL.
        """
        try:
            response = await asyncio.wait_for(
                self._send(method, url, json=json, headers=headers),
                timeout=self.resource_timeout,
            )
        except asyncio.TimeoutError as e:
            raise FetcherTimeoutError(
                f"Request timed out after {self.resource_timeout}s", source=self.name
            ) from e
        except httpx.TimeoutException as e:
            raise FetcherTimeoutError(
                f"Request timed out: {e}", source=self.name
            ) from e
        except httpx.UnsupportedProtocol as e:
            raise FetcherEndpointError(f"Invalid URL: {e}", source=self.name) from e
        except httpx.RequestError as e:
            # DNS and connect failures: no response, same as a timeout
            raise FetcherTimeoutError(
                f"Request failed: {e}", source=self.name
            ) from e

        if not response.is_success:
            logger.debug(
                "HTTP %s %s failed with status %s: %s",
                method,
                url,
                response.status_code,
                response.text[:200],
            )
            raise FetcherHTTPError(
                response.status_code, response.text[:200], source=self.name
            )
        return response

    async def _send(
        self,
        method: str,
        url: httpx.URL,
        *,
        json: Any = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        timeout = httpx.Timeout(self.request_timeout)
        if self.client is not None:
            return await self.client.request(
                method, url, json=json, headers=headers, timeout=timeout
            )
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.request(method, url, json=json, headers=headers)

    def _json_object(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a response body that must be a JSON object.

        :raises FetcherDecodeError: If the body is not a JSON object.
        """
        try:
            data = response.json()
        except ValueError as e:
            raise FetcherDecodeError(
                f"response is not valid JSON: {e}", source=self.name
            ) from e
        if not isinstance(data, dict):
            raise FetcherDecodeError(
                f"expected JSON object, got {type(data).__name__}", source=self.name
            )
        return data

    def _rpc_result(self, response: httpx.Response) -> Any:
        """Unwrap a JSON-RPC 2.0 response envelope.

        :raises FetcherUpstreamError: If the envelope carries an error object.
        :raises FetcherDecodeError: If neither result nor error is present.
        """
        data = self._json_object(response)
        if data.get("error") is not None:
            error = data["error"]
            if isinstance(error, dict):
                detail = f"{error.get('message', 'unknown error')} (code {error.get('code')})"
            else:
                detail = str(error)
            raise FetcherUpstreamError(detail, source=self.name)
        if "result" not in data:
            raise FetcherDecodeError("missing field 'result'", source=self.name)
        return data["result"]

    def _make_sample(self, sample_cls: type[SampleT], **values: float) -> SampleT:
        """Build a sample from decoded values.

        :raises FetcherDecodeError: If a value is out of range (e.g. overflowed to inf).
        """
        try:
            return sample_cls(**values)
        except ValueError as e:
            raise FetcherDecodeError(str(e), source=self.name) from e


# Registry of available fetchers (populated by subclass imports)
FETCHER_REGISTRY: dict[str, type[BaseFetcher]] = {}


def register_fetcher(cls: type[BaseFetcher]) -> type[BaseFetcher]:
    """Decorator to register a fetcher class in the global registry.

    :param cls: Fetcher class to register.
    :returns: The registered class (unchanged).
    :raises ValueError: If fetcher has no name or kind defined.

    .. code-block:: python

        @register_fetcher
        class MempoolFetcher(BaseFetcher):
            name = "mempool"
            kind = CryptoKind.BITCOIN
            ...
    """
    if not cls.name:
        raise ValueError(f"Fetcher {cls.__name__} must define a 'name' class variable")
    if not isinstance(getattr(cls, "kind", None), CryptoKind):
        raise ValueError(f"Fetcher {cls.__name__} must define a 'kind' class variable")
    FETCHER_REGISTRY[cls.name] = cls
    return cls


def get_fetcher(name: str, api_key: str | None = None, **kwargs: Any) -> BaseFetcher:
    """Get a fetcher instance by name.

    :param name: Fetcher name (e.g., "etherscan", "mempool").
    :param api_key: Optional API key.
    :param kwargs: Passed to the fetcher constructor (client, timeouts, base_url).
    :returns: Fetcher instance.
    :raises ValueError: If fetcher name is unknown.
    """
    if name not in FETCHER_REGISTRY:
        available = ", ".join(sorted(FETCHER_REGISTRY.keys()))
        raise ValueError(f"Unknown fetcher '{name}'. Available: {available}")
    return FETCHER_REGISTRY[name](api_key=api_key, **kwargs)


def get_available_fetchers(kind: CryptoKind | None = None) -> list[str]:
    """Get list of available fetcher names.

    :param kind: Restrict to fetchers serving this kind.
    :returns: Sorted list of registered fetcher names.
    """
    return sorted(
        name
        for name, cls in FETCHER_REGISTRY.items()
        if kind is None or cls.kind == kind
    )
