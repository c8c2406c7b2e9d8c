"""
Shared fixtures: in-memory archives and mocked HTTP clients.
"""

import gzip
import io
import tarfile

import httpx
import pytest


def _build_tar(entries) -> bytes:
    """Build an uncompressed tar from (name, data) pairs; data None makes a directory."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, data in entries:
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def make_tar():
    """Factory building an uncompressed tar archive."""
    return _build_tar


@pytest.fixture
def make_tar_gz():
    """Factory building a gzip-compressed tar archive."""
    return lambda entries: gzip.compress(_build_tar(entries))


@pytest.fixture
def make_client():
    """Factory for an httpx.Client whose transport answers every request with `body`."""
    clients = []

    def factory(body: bytes = b"", status_code: int = 200, handler=None) -> httpx.Client:
        if handler is None:
            def handler(request):
                return httpx.Response(status_code, content=iter([body]),
                                      headers={"Content-Length": str(len(body))})
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def output_dir(tmp_path):
    """Output directory for extracted files (not created up front)."""
    return tmp_path / "out"
