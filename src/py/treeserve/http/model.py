from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, NamedTuple, TypeAlias

from ..utils.files import contentType as guessContentType
from ..utils.logging import exception
from .api import ResponseFactory
from .status import HTTP_STATUS

ENCODING: str = "utf-8"

# Normalized header names, by lowercase name
HEADER_NAMES: dict[str, str] = {}


def headername(name: str) -> str:
	"""Normalizes the header name as `Kebab-Case`."""
	key: str = name.lower()
	if (res := HEADER_NAMES.get(key)) is None:
		res = HEADER_NAMES[key] = "-".join(_.capitalize() for _ in key.split("-"))
	return res


# -----------------------------------------------------------------------------
#
# MESSAGES
#
# -----------------------------------------------------------------------------


class HTTPRequestLine(NamedTuple):
	method: str
	path: str
	query: str
	protocol: str


class HTTPHeaders(NamedTuple):
	"""Headers by normalized name, along with the ones that drive message
	framing."""

	headers: dict[str, str]
	contentType: str | None = None
	contentLength: int | None = None


class HTTPProcessingStatus(Enum):
	"""What a connection or the parser ended with, other than a request."""

	Timeout = 10
	NoData = 11
	BadFormat = 12


class HTTPRequestError(Exception):
	"""To be raised by handlers to generate an error response, a 500 unless
	a status is given."""

	def __init__(
		self,
		message: str,
		status: int | None = None,
		contentType: str | None = None,
	):
		super().__init__(message)
		self.message: str = message
		self.status: int | None = status
		self.contentType: str | None = contentType


# -----------------------------------------------------------------------------
#
# BODIES
#
# -----------------------------------------------------------------------------


class HTTPBodyBlob(NamedTuple):
	"""A body held in memory."""

	payload: bytes = b""

	@property
	def length(self) -> int:
		return len(self.payload)

	def close(self) -> None:
		pass


class HTTPBodyFile(NamedTuple):
	"""A body streamed from an open file of a known length. The handle is
	owned by the body and released by `close()`."""

	path: Path
	handle: BinaryIO
	length: int

	def close(self) -> None:
		self.handle.close()


THTTPBody: TypeAlias = HTTPBodyBlob | HTTPBodyFile


class HTTPBodyWriter(ABC):
	"""Writes response payloads to a destination. When a file body turns
	out shorter than announced, `shouldClose` is set as the connection
	can't be reused anymore."""

	def __init__(self) -> None:
		self.shouldClose: bool = False

	async def write(self, body: THTTPBody | bytes | None) -> None:
		match body:
			case None:
				pass
			case bytes():
				await self._writeBytes(body)
			case HTTPBodyBlob():
				await self._writeBytes(body.payload)
			case HTTPBodyFile():
				if body.length > 0:
					written: int = await self._writeFile(body.handle, body.length)
					self.shouldClose = self.shouldClose or written < body.length
			case _:
				raise ValueError(f"Unsupported body format: {body}")

	async def _writeFile(self, handle: BinaryIO, length: int) -> int:
		"""Writes up to `length` bytes from the handle, returning how many
		were actually written."""
		written: int = 0
		while written < length and (chunk := handle.read(min(65_536, length - written))):
			await self._writeBytes(chunk)
			written += len(chunk)
		return written

	@abstractmethod
	async def _writeBytes(self, chunk: bytes) -> None: ...


class HTTPBodyBuffer(HTTPBodyWriter):
	"""Accumulates everything that is written in memory."""

	def __init__(self) -> None:
		super().__init__()
		self.data: bytearray = bytearray()

	async def _writeBytes(self, chunk: bytes) -> None:
		self.data += chunk


# -----------------------------------------------------------------------------
#
# REQUESTS
#
# -----------------------------------------------------------------------------


class HTTPRequest(ResponseFactory["HTTPResponse"]):
	"""A parsed request, which also creates the responses to it."""

	def __init__(
		self,
		line: HTTPRequestLine,
		headers: HTTPHeaders,
		body: HTTPBodyBlob | None = None,
	):
		self.line: HTTPRequestLine = line
		self._headers: HTTPHeaders = headers
		self.body: HTTPBodyBlob = body or HTTPBodyBlob()

	@property
	def method(self) -> str:
		return self.line.method

	@property
	def path(self) -> str:
		return self.line.path

	@property
	def protocol(self) -> str:
		return self.line.protocol

	@property
	def headers(self) -> dict[str, str]:
		return self._headers.headers

	def header(self, name: str) -> str | None:
		return self._headers.headers.get(headername(name))

	@property
	def keepAlive(self) -> bool:
		"""Tells if the connection can be reused after this request. HTTP/1.0
		clients have to ask for it."""
		connection: str = (self.header("Connection") or "").lower()
		return (
			connection == "keep-alive"
			if self.protocol == "HTTP/1.0"
			else connection != "close"
		)

	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
	) -> "HTTPResponse":
		return HTTPResponse.Create(
			content,
			contentType=contentType,
			status=status,
			headers=headers,
			protocol=self.protocol,
		)

	def respondFile(
		self, path: Path, handle: BinaryIO, size: int, *, contentType: str | None = None
	) -> "HTTPResponse":
		"""Responds with the contents of an already opened file, whose
		ownership is transferred to the response."""
		return self.respond(
			HTTPBodyFile(path, handle, size),
			contentType=contentType or guessContentType(path),
		)

	def __str__(self) -> str:
		return f"Request({self.method} {self.path} {self.headers})"


# -----------------------------------------------------------------------------
#
# RESPONSES
#
# -----------------------------------------------------------------------------


class HTTPResponse:
	"""A response, made of a status, headers and an optional body. The
	`Content-Length` always reflects the body, even once it was dropped
	for a `HEAD` request."""

	@staticmethod
	def Create(
		content: Any = None,
		*,
		contentType: str | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
		protocol: str = "HTTP/1.1",
	) -> "HTTPResponse":
		body: THTTPBody | None
		match content:
			case None:
				body = None
			case str():
				body = HTTPBodyBlob(content.encode(ENCODING))
			case bytes():
				body = HTTPBodyBlob(content)
			case HTTPBodyFile():
				body = content
			case _:
				raise ValueError(f"Unsupported content {type(content)}: {content}")
		res = HTTPResponse(status, protocol=protocol, body=body)
		for name, value in (headers or {}).items():
			res.setHeader(name, value)
		res.setHeader("Content-Type", contentType)
		res.setHeader("Content-Length", body.length if body else 0)
		return res

	__slots__ = ["protocol", "status", "headers", "body"]

	def __init__(
		self,
		status: int,
		*,
		protocol: str = "HTTP/1.1",
		headers: dict[str, str] | None = None,
		body: THTTPBody | None = None,
	):
		self.protocol: str = protocol
		self.status: int = status
		self.headers: dict[str, str] = headers or {}
		self.body: THTTPBody | None = body

	@property
	def message(self) -> str:
		return HTTP_STATUS.get(self.status, "Unknown Status")

	@property
	def contentType(self) -> str | None:
		return self.getHeader("Content-Type")

	def getHeader(self, name: str) -> str | None:
		return self.headers.get(headername(name))

	def setHeader(self, name: str, value: str | int | None) -> "HTTPResponse":
		"""Sets the header, or removes it when `value` is `None`."""
		if value is None:
			self.headers.pop(headername(name), None)
		else:
			self.headers[headername(name)] = str(value)
		return self

	def withoutBody(self) -> "HTTPResponse":
		"""Releases the body while keeping the headers, as in a response to
		a `HEAD` request."""
		self.close()
		self.body = None
		return self

	def head(self) -> bytes:
		"""Serializes the status line and headers."""
		lines: list[str] = [f"{self.protocol} {self.status} {self.message}"]
		lines += [f"{k}: {v}" for k, v in self.headers.items()]
		# Values we produce are ASCII, paths being percent-encoded.
		return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1", errors="replace")

	def close(self) -> None:
		"""Releases any resource held by the body. Safe to call more than once."""
		if self.body is not None:
			try:
				self.body.close()
			except OSError as e:
				exception(e, "Could not release response body")

	def __str__(self) -> str:
		return f"Response({self.protocol} {self.status} {self.message} {self.headers})"


# EOF
