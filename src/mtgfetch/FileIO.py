"""HTTP-backed and gzip-decoding file-like streams.

Provides two read-only, forward-only `io.RawIOBase` streams that are chained
together so the tar reader never sees the network or the compression:

    HttpStream  -> GzipStream -> tarfile (stream mode)

Classes:
    HttpStream: Body of a single streaming HTTP GET.
    GzipStream: Incremental gzip decoder over any byte source.
"""

import gzip
import io
import logging
import zlib

import httpx

from .Errors import DecompressError, NetworkError
from .Protocols import ByteSourceProtocol

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 128 * 1024  # 128 KiB
DEFAULT_TIMEOUT = httpx.Timeout(10.0, read=300.0)
DEFAULT_HEADERS = {
    "User-Agent": "mtgfetch/0.1.0",
    "Accept": "*/*",
    "Accept-Encoding": "identity",
}


class HttpStream(io.RawIOBase):
    """File-like stream over the body of one HTTP GET.

    The request is sent when the stream is created and the body is pulled
    from the connection chunk by chunk as `read` is called, so nothing
    beyond a single chunk is ever held in memory.

    Notes:
        The response status is not validated unless `raise_for_status` is
        set: an error page is handed to the next stage like any other body.

    Attributes:
        url (str): Requested URL.
        client (httpx.Client): HTTP client used for the request.
        response (httpx.Response): The streaming response.
        status_code (int): HTTP status of the response.
        size (int | None): Content-Length reported by the server, if any.
        bytes_read (int): Number of body bytes handed out so far.
    """

    def __init__(
        self,
        url: str,
        client: httpx.Client | None = None,
        timeout: float | None = None,
        raise_for_status: bool = False,
    ) -> None:
        """Send the request and open the response body.

        Args:
            url (str): HTTP(S) URL of the resource.
            client (httpx.Client | None): Client to send the request with. A
                private client is created (and later closed) when omitted.
            timeout (float | None): Overall timeout in seconds. Uses the
                client's timeout when omitted.
            raise_for_status (bool): Raise `NetworkError` on a non-2xx status.

        Raises:
            NetworkError: On connection failure, timeout, an invalid URL, or
                a non-success status when `raise_for_status` is set.
        """
        self.url = url
        self.response: httpx.Response | None = None
        self.bytes_read: int = 0
        self._owns_client = client is None
        self._pending = memoryview(b"")

        self.client = client or httpx.Client(
            headers=DEFAULT_HEADERS, follow_redirects=True, timeout=DEFAULT_TIMEOUT
        )

        # The body must reach the decompressor exactly as served
        request_kwargs = {"headers": {"Accept-Encoding": "identity"}}
        if timeout is not None:
            request_kwargs["timeout"] = httpx.Timeout(timeout)

        try:
            request = self.client.build_request("GET", url, **request_kwargs)
            self.response = self.client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.close()
            raise NetworkError(f"GET {url} failed: {e}") from e

        self.status_code = self.response.status_code
        logger.debug("GET %s -> %s", url, self.status_code)

        if raise_for_status and not self.response.is_success:
            self.close()
            raise NetworkError(f"Server returned {self.status_code} for {url}")

        content_length = self.response.headers.get("Content-Length")
        self.size = int(content_length) if content_length and content_length.isdigit() else None

        # Raw chunks: a Content-Encoding: gzip label on a .tar.gz is not undone
        self._chunks = self.response.iter_raw()

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        """Fill `buffer` with the next body bytes.

        Returns:
            int: Number of bytes copied, 0 at the end of the body.

        Raises:
            NetworkError: If the connection fails while the body is read.
        """
        while not self._pending:
            try:
                self._pending = memoryview(next(self._chunks))
            except StopIteration:
                return 0
            except httpx.HTTPError as e:
                raise NetworkError(f"Reading body of {self.url} failed: {e}") from e

        count = min(len(buffer), len(self._pending))
        buffer[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        self.bytes_read += count
        return count

    def close(self):
        """Release the response and, if we created it, the client."""
        if self.closed:
            return
        if self.response is not None:
            self.response.close()
        if self._owns_client:
            self.client.close()
        super().close()


class GzipStream(io.RawIOBase):
    """Decompressed view of a gzip byte source.

    Wraps `gzip.GzipFile`, which decodes incrementally and needs no
    seeking, and translates its failures into `DecompressError`.
    Concatenated gzip members are decoded as one stream.

    Attributes:
        source (ByteSourceProtocol): The compressed byte source.
        bytes_out (int): Number of decompressed bytes handed out so far.
    """

    def __init__(self, source: ByteSourceProtocol) -> None:
        self.source = source
        self.bytes_out: int = 0
        self._started = False
        # peek() tells an empty body apart from a gzip stream of no data
        self._buffered = io.BufferedReader(source, buffer_size=DEFAULT_CHUNK_SIZE)
        self._gzip = gzip.GzipFile(fileobj=self._buffered, mode="rb")

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        """Decompress up to `len(buffer)` bytes into `buffer`.

        Raises:
            DecompressError: If the data is not gzip, is corrupt, is
                truncated, or the source is empty.
        """
        if not self._started:
            self._started = True
            if not self._buffered.peek(1):
                raise DecompressError("Compressed stream is empty")

        try:
            data = self._gzip.read(len(buffer))
        except gzip.BadGzipFile as e:
            raise DecompressError(f"Not a gzip stream: {e}") from e
        except zlib.error as e:
            raise DecompressError(f"Corrupt compressed data: {e}") from e
        except EOFError as e:
            raise DecompressError(f"Compressed stream is truncated: {e}") from e

        count = len(data)
        buffer[:count] = data
        self.bytes_out += count
        return count

    def close(self):
        if self.closed:
            return
        # The source belongs to the caller and is left open
        self._gzip.close()
        self._buffered.detach()
        super().close()
