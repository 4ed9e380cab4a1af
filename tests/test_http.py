import asyncio
from pathlib import Path

import pytest

from treeserve.http.model import (
    HTTPBodyBlob,
    HTTPBodyBuffer,
    HTTPBodyFile,
    HTTPHeaders,
    HTTPProcessingStatus,
    HTTPRequest,
    HTTPRequestLine,
    HTTPResponse,
    headername,
)
from treeserve.http.parser import HTTPParser
from treeserve.utils.files import contentType


def requests(*chunks: bytes) -> list[HTTPRequest]:
    parser = HTTPParser()
    return [
        atom for chunk in chunks for atom in parser.feed(chunk) if isinstance(atom, HTTPRequest)
    ]


def request(protocol: str = "HTTP/1.1", **headers: str) -> HTTPRequest:
    return HTTPRequest(
        HTTPRequestLine("GET", "/", "", protocol),
        HTTPHeaders({headername(k): v for k, v in headers.items()}),
    )


def written(body) -> HTTPBodyBuffer:
    writer = HTTPBodyBuffer()
    asyncio.run(writer.write(body))
    return writer


# -----------------------------------------------------------------------------
#
# PARSER
#
# -----------------------------------------------------------------------------


def test_request_line():
    (req,) = requests(b"get /docs/a%20b.txt?x=1&y HTTP/1.1\r\nhost:  localhost \r\n\r\n")
    assert req.line == HTTPRequestLine("GET", "/docs/a%20b.txt", "x=1&y", "HTTP/1.1")
    assert req.method == "GET"
    assert req.path == "/docs/a%20b.txt"
    assert req.headers == {"Host": "localhost"}
    assert req.header("HOST") == "localhost"
    assert req.body.payload == b""


def test_split_chunks():
    (req,) = requests(
        b"GET /time/5 ",
        b"HTTP/1.1\r\nHost: ",
        b"127.0.0.1\r",
        b"\nConn",
        b"ection: close\r\n",
        b"\r",
        b"\n",
    )
    assert req.path == "/time/5"
    assert req.header("Connection") == "close"
    assert not req.keepAlive


def test_pipelined_requests():
    reqs = requests(b"GET /a HTTP/1.1\r\n\r\n\r\nHEAD /b HTTP/1.1\r\n\r\nGET /c")
    assert [(_.method, _.path) for _ in reqs] == [("GET", "/a"), ("HEAD", "/b")]


def test_body():
    parser = HTTPParser()
    assert list(parser.feed(b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nhel")) == []
    (req, nxt) = list(parser.feed(b"loGET /next HTTP/1.1\r\n\r\n"))
    assert req.body.payload == b"hello"
    assert req._headers.contentLength == 5
    assert nxt.path == "/next"


@pytest.mark.parametrize(
    "payload",
    [
        b"GARBAGE\r\n\r\n",
        b"GET noslash HTTP/1.1\r\n\r\n",
        b"GET / FTP/1.0\r\n\r\n",
        b"GET  / HTTP/1.1\r\n\r\n",
        b"\xff\xfe / HTTP/1.1\r\n\r\n",
        b"GET / HTTP/1.1\r\nNoColon\r\n\r\n",
        b"GET / HTTP/1.1\r\nContent-Length: many\r\n\r\n",
        b"GET / HTTP/1.1\r\nContent-Length: -1\r\n\r\n",
    ],
)
def test_malformed(payload: bytes):
    assert list(HTTPParser().feed(payload)) == [HTTPProcessingStatus.BadFormat]


def test_oversized_head():
    parser = HTTPParser()
    assert list(parser.feed(b"GET /" + b"a" * 70_000)) == [HTTPProcessingStatus.BadFormat]
    # The parser is reset and can be reused
    assert [_.path for _ in parser.feed(b"GET /ok HTTP/1.1\r\n\r\n")] == ["/ok"]


def test_keep_alive():
    assert request().keepAlive
    assert not request(connection="close").keepAlive
    assert not request("HTTP/1.0").keepAlive
    assert request("HTTP/1.0", connection="Keep-Alive").keepAlive


# -----------------------------------------------------------------------------
#
# RESPONSES
#
# -----------------------------------------------------------------------------


def test_response_head():
    res = HTTPResponse.Create("hello", contentType="text/plain")
    assert res.head() == (
        b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nContent-Length: 5\r\n\r\n"
    )
    res.setHeader("connection", "close")
    assert b"Connection: close\r\n" in res.head()
    res.setHeader("Connection", None)
    assert b"Connection" not in res.head()


def test_response_protocol():
    res = request("HTTP/1.0").respond(None, status=204)
    assert res.head().startswith(b"HTTP/1.0 204 No Content\r\n")
    assert res.getHeader("Content-Length") == "0"
    assert res.contentType is None


def test_error_responses():
    req = request()
    res = req.notFound()
    assert (res.status, res.message, res.body.payload) == (404, "Not Found", b"Not Found")
    res = req.notAllowed(["GET", "HEAD"])
    assert res.status == 405
    assert res.getHeader("Allow") == "GET, HEAD"
    res = req.respondHTML("<p>ok</p>")
    assert res.contentType == "text/html; charset=utf-8"


def test_without_body():
    res = HTTPResponse.Create(b"12345")
    res.withoutBody()
    assert res.body is None
    assert res.getHeader("Content-Length") == "5"


def test_file_body(tmp_path: Path):
    path = tmp_path / "page.html"
    path.write_bytes(b"<p>file</p>")
    handle = open(path, "rb")
    res = request().respondFile(path, handle, 11)
    assert isinstance(res.body, HTTPBodyFile)
    assert res.contentType == "text/html"
    assert res.getHeader("Content-Length") == "11"
    writer = written(res.body)
    assert bytes(writer.data) == b"<p>file</p>"
    assert not writer.shouldClose
    res.close()
    res.close()
    assert handle.closed


def test_empty_file_body(tmp_path: Path):
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")
    with open(path, "rb") as handle:
        writer = written(HTTPBodyFile(path, handle, 0))
    assert writer.data == b""
    assert not writer.shouldClose


def test_truncated_file_body(tmp_path: Path):
    # The file shrank after its size was announced
    path = tmp_path / "shrunk.txt"
    path.write_bytes(b"abc")
    with open(path, "rb") as handle:
        writer = written(HTTPBodyFile(path, handle, 10))
    assert writer.data == b"abc"
    assert writer.shouldClose


def test_blob_body():
    writer = written(HTTPBodyBlob(b"blob"))
    assert writer.data == b"blob"
    with pytest.raises(ValueError):
        written("not bytes")


def test_content_type():
    assert contentType("a.txt") == "text/plain"
    assert contentType("a.md") == "text/markdown"
    assert contentType("A.JS") == "text/javascript"
    assert contentType("a.unknownext") == "application/octet-stream"
    assert contentType("Makefile") == "application/octet-stream"


# EOF
