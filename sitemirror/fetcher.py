"""HTTP fetching: streamed GET with an idle-read timeout per body chunk."""

from contextlib import contextmanager
from typing import Iterator

import httpx

from sitemirror.errors import (
    HeaderError,
    ResponseBodyError,
    SendRequestError,
    TimedOutError,
    WorkerStartError,
)

DEFAULT_TIMEOUT = 30.0
CHUNK_TIMEOUT = 3.0  # max seconds without receiving body data before the fetch is aborted
CHUNK_SIZE = 65536
HTML_CONTENT_TYPE = "text/html"


class FetchResponse:
    """Headers and a chunked body for one fetched URL."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def url(self) -> httpx.URL:
        """Final URL after redirects."""
        return self._response.url

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    def _header(self, name: str) -> str | None:
        raw = self._response.headers.raw
        for key, value in raw:
            if key.lower() == name.encode("ascii"):
                try:
                    return value.decode("ascii")
                except UnicodeDecodeError as e:
                    raise HeaderError(
                        f"Failed to convert header value to string: {name}", value=repr(value)
                    ) from e
        return None

    @property
    def content_length(self) -> int | None:
        """Parsed Content-Length, None when absent. Raises HeaderError when malformed."""
        value = self._header("content-length")
        if value is None:
            return None
        value = value.strip()
        if not value.isdigit():
            raise HeaderError(f"Failed to parse content length (`{value}`)", value=value)
        return int(value)

    @property
    def content_type(self) -> str | None:
        """Content-Type header value as sent, surrounding whitespace trimmed."""
        ct = self._header("content-type")
        return ct.strip() if ct is not None else None

    @property
    def is_html(self) -> bool:
        """True only for a bare `text/html`; a value carrying parameters is not parsed."""
        return self.content_type == HTML_CONTENT_TYPE

    def iter_chunks(self) -> Iterator[bytes]:
        """Body chunks. Each socket read is bounded by the client's read timeout."""
        try:
            for chunk in self._response.iter_bytes(CHUNK_SIZE):
                yield chunk
        except httpx.TimeoutException as e:
            raise TimedOutError(f"Connection timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ResponseBodyError(f"Failed to get response body: {e}") from e


class Fetcher:
    """HTTP fetcher with connection pooling. One per worker thread; use spawn() for another."""

    def __init__(
        self,
        *,
        user_agent: str,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_timeout: float = CHUNK_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._user_agent = user_agent
        self._timeout = timeout
        self._chunk_timeout = chunk_timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def spawn(self) -> "Fetcher":
        """Return a new Fetcher with the same config (for use in another thread)."""
        return Fetcher(
            user_agent=self._user_agent,
            timeout=self._timeout,
            chunk_timeout=self._chunk_timeout,
            transport=self._transport,
        )

    def open(self) -> None:
        """Build the HTTP client. Raises WorkerStartError if that is impossible."""
        if self._client is not None and not self._client.is_closed:
            return
        try:
            self._client = httpx.Client(
                follow_redirects=True,
                timeout=httpx.Timeout(self._timeout, read=self._chunk_timeout),
                headers={"User-Agent": self._user_agent, "Accept-Encoding": "identity"},
                transport=self._transport,
            )
        except (OSError, ValueError, httpx.HTTPError) as e:
            raise WorkerStartError(f"Failed to build HTTP client: {e}") from e

    def _get_client(self) -> httpx.Client:
        self.open()
        assert self._client is not None
        return self._client

    def close(self) -> None:
        if self._client and not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> "Fetcher":
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @contextmanager
    def fetch(self, url: httpx.URL) -> Iterator[FetchResponse]:
        """GET url and yield its response with the body still unread."""
        client = self._get_client()
        try:
            response = client.send(client.build_request("GET", url), stream=True)
        except httpx.TimeoutException as e:
            raise TimedOutError(f"Connection timed out: {e}") from e
        except httpx.HTTPError as e:
            raise SendRequestError(f"Failed to send request: {e}") from e
        try:
            yield FetchResponse(response)
        finally:
            response.close()
