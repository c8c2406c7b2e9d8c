"""
End-to-end tests for fetch_and_extract over a mocked HTTP transport.
"""

import gzip
import random

import httpx
import pytest

from mtgfetch.Errors import ArchiveError, DecompressError, IoError, NetworkError
from mtgfetch.Fetcher import DEFAULT_URL, fetch_and_extract, run

URL = "https://example.test/AllSets.json.tar.gz"


class TestFetchAndExtract:

    def test_extracts_flattened(self, make_tar_gz, make_client, output_dir):
        client = make_client(make_tar_gz([("a.txt", b"alpha"), ("dir/b.txt", b"bravo")]))
        result = fetch_and_extract(URL, output_dir, client=client)

        assert sorted(p.name for p in output_dir.iterdir()) == ["a.txt", "b.txt"]
        assert (output_dir / "a.txt").read_bytes() == b"alpha"
        assert (output_dir / "b.txt").read_bytes() == b"bravo"
        assert len(result.files) == 2

    def test_duplicate_names_follow_stream_order(self, make_tar_gz, make_client, output_dir):
        client = make_client(make_tar_gz([("x/a.txt", b"from x"), ("y/a.txt", b"from y")]))
        fetch_and_extract(URL, output_dir, client=client)
        assert (output_dir / "a.txt").read_bytes() == b"from y"

    def test_running_twice_gives_same_contents(self, make_tar_gz, make_client, output_dir):
        client = make_client(make_tar_gz([("AllSets.json", b'{"sets": []}'), ("meta/Meta.json", b"{}")]))

        fetch_and_extract(URL, output_dir, client=client)
        first = {p.name: p.read_bytes() for p in output_dir.iterdir()}
        fetch_and_extract(URL, output_dir, client=client)
        second = {p.name: p.read_bytes() for p in output_dir.iterdir()}

        assert first == second

    def test_creates_output_directory(self, make_tar_gz, make_client, tmp_path):
        target = tmp_path / "nested" / "data"
        fetch_and_extract(URL, target, client=make_client(make_tar_gz([("a.txt", b"alpha")])))
        assert (target / "a.txt").exists()

    def test_defaults_to_working_directory(self, make_tar_gz, make_client, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        fetch_and_extract(URL, client=make_client(make_tar_gz([("dir/a.txt", b"alpha")])))
        assert (tmp_path / "a.txt").read_bytes() == b"alpha"

    def test_progress_callback(self, make_tar_gz, make_client, output_dir):
        calls = []
        client = make_client(make_tar_gz([("a.txt", b"a" * 300), ("b.txt", b"b" * 200)]))
        result = fetch_and_extract(URL, output_dir, client=client, progress_callback=calls.append)
        assert sum(calls) == result.bytes_written == 500

    def test_sends_get_to_url(self, make_tar_gz, make_client, output_dir):
        seen = []
        body = make_tar_gz([("a.txt", b"alpha")])

        def handler(request):
            seen.append((request.method, str(request.url)))
            return httpx.Response(200, content=iter([body]), headers={"Content-Length": str(len(body))})

        fetch_and_extract(URL, output_dir, client=make_client(handler=handler))
        assert seen == [("GET", URL)]

    def test_content_encoding_label_is_not_decoded(self, make_tar_gz, make_client, output_dir):
        body = make_tar_gz([("a.txt", b"alpha")])
        seen = []

        def handler(request):
            seen.append(request.headers.get("Accept-Encoding"))
            return httpx.Response(200, content=iter([body]),
                                  headers={"Content-Encoding": "gzip", "Content-Length": str(len(body))})

        fetch_and_extract(URL, output_dir, client=make_client(handler=handler))
        assert (output_dir / "a.txt").read_bytes() == b"alpha"
        assert seen == ["identity"]

    def test_client_left_open(self, make_tar_gz, make_client, output_dir):
        client = make_client(make_tar_gz([("a.txt", b"alpha")]))
        fetch_and_extract(URL, output_dir, client=client)
        assert not client.is_closed


class TestHttpStatus:

    def test_error_status_body_is_still_extracted(self, make_tar_gz, make_client, output_dir):
        client = make_client(make_tar_gz([("a.txt", b"alpha")]), status_code=404)
        fetch_and_extract(URL, output_dir, client=client)
        assert (output_dir / "a.txt").read_bytes() == b"alpha"

    def test_error_page_fails_to_decompress(self, make_client, output_dir):
        client = make_client(b"<html>Internal Server Error</html>", status_code=500)
        with pytest.raises(DecompressError):
            fetch_and_extract(URL, output_dir, client=client)

    def test_raise_for_status(self, make_tar_gz, make_client, output_dir):
        client = make_client(make_tar_gz([("a.txt", b"alpha")]), status_code=404)
        with pytest.raises(NetworkError, match="404"):
            fetch_and_extract(URL, output_dir, client=client, raise_for_status=True)
        assert list(output_dir.iterdir()) == []


class TestFailures:

    def test_connection_refused_writes_nothing(self, make_client, output_dir):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError):
            fetch_and_extract(URL, output_dir, client=make_client(handler=handler))
        assert list(output_dir.iterdir()) == []

    def test_timeout_writes_nothing(self, make_client, output_dir):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(NetworkError):
            fetch_and_extract(URL, output_dir, client=make_client(handler=handler), timeout=1.0)
        assert list(output_dir.iterdir()) == []

    def test_corrupt_gzip_writes_nothing(self, make_client, output_dir):
        with pytest.raises(DecompressError):
            fetch_and_extract(URL, output_dir, client=make_client(b"\x1f\x8b\x08garbage"))
        assert list(output_dir.iterdir()) == []

    def test_empty_body(self, make_client, output_dir):
        with pytest.raises(DecompressError):
            fetch_and_extract(URL, output_dir, client=make_client(b""))

    def test_truncated_download(self, make_tar_gz, make_client, output_dir):
        noise = random.Random(0).randbytes(64 * 1024)
        body = make_tar_gz([("noise.bin", noise)])
        with pytest.raises(DecompressError, match="truncated"):
            fetch_and_extract(URL, output_dir, client=make_client(body[: len(body) // 2]))

    def test_corrupt_tar_keeps_earlier_files(self, make_tar, make_client, output_dir):
        tar = bytearray(make_tar([("a.txt", b"alpha"), ("b.txt", b"bravo")]))
        tar[1024:1124] = b"X" * 100
        with pytest.raises(ArchiveError):
            fetch_and_extract(URL, output_dir, client=make_client(gzip.compress(bytes(tar))))
        assert [p.name for p in output_dir.iterdir()] == ["a.txt"]

    def test_gzip_of_nothing_is_not_an_archive(self, make_client, output_dir):
        with pytest.raises(ArchiveError):
            fetch_and_extract(URL, output_dir, client=make_client(gzip.compress(b"")))

    def test_output_dir_is_a_file(self, make_client, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        with pytest.raises(IoError):
            fetch_and_extract(URL, blocker, client=make_client(b""))


def test_run_uses_default_url_and_working_directory(monkeypatch, tmp_path):
    calls = []

    def fake_fetch_and_extract(*args, **kwargs):
        calls.append((args, kwargs))

    monkeypatch.setattr("mtgfetch.Fetcher.fetch_and_extract", fake_fetch_and_extract)
    run()
    assert calls == [((), {})]
    assert DEFAULT_URL == "https://mtgjson.com/files/AllSets.json.tar.gz"
