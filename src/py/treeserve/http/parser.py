from typing import Iterator

from .model import (
	HTTPBodyBlob,
	HTTPHeaders,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPRequestLine,
	headername,
)

EOL: bytes = b"\r\n"
END_OF_HEAD: bytes = b"\r\n\r\n"

# Heads and bodies larger than this are not from a client we serve.
HEAD_LIMIT: int = 65_536
BODY_LIMIT: int = 1_048_576


class MalformedRequest(ValueError):
	pass


def parseRequestLine(line: bytes) -> HTTPRequestLine:
	"""Parses `METHOD /path?query HTTP/1.1`, the target must be in origin
	form."""
	try:
		method, target, protocol = line.decode("ascii").split(" ")
	except (UnicodeDecodeError, ValueError) as e:
		raise MalformedRequest(f"Invalid request line: {line!r}") from e
	if not (method and target.startswith("/") and protocol.startswith("HTTP/")):
		raise MalformedRequest(f"Invalid request line: {line!r}")
	path, _, query = target.partition("?")
	return HTTPRequestLine(method.upper(), path, query, protocol)


def parseHeaders(lines: list[bytes]) -> HTTPHeaders:
	headers: dict[str, str] = {}
	for line in lines:
		# Values are expected to be ASCII, anything else is kept as-is.
		name, sep, value = line.decode("latin-1").partition(":")
		if not (sep and name.strip()):
			raise MalformedRequest(f"Invalid header: {line!r}")
		headers[headername(name.strip())] = value.strip()
	length: int | None = None
	if (text := headers.get("Content-Length")) is not None:
		try:
			length = int(text)
		except ValueError as e:
			raise MalformedRequest(f"Invalid Content-Length: {text!r}") from e
		if not (0 <= length <= BODY_LIMIT):
			raise MalformedRequest(f"Unsupported Content-Length: {length}")
	return HTTPHeaders(headers, headers.get("Content-Type"), length)


class HTTPParser:
	"""An incremental request parser: it is fed chunks as they are received
	and yields requests as soon as they are complete, several of them when
	requests are pipelined. A malformed request yields `BadFormat` once and
	resets the parser, the connection should then be closed."""

	def __init__(self) -> None:
		self.buffer: bytearray = bytearray()
		self.line: HTTPRequestLine | None = None
		self.headers: HTTPHeaders | None = None

	def reset(self) -> "HTTPParser":
		self.buffer.clear()
		self.line = None
		self.headers = None
		return self

	def feed(self, chunk: bytes) -> Iterator[HTTPRequest | HTTPProcessingStatus]:
		self.buffer += chunk
		while True:
			try:
				request = self.next()
			except MalformedRequest:
				self.reset()
				yield HTTPProcessingStatus.BadFormat
				return
			if request is None:
				return
			yield request

	def next(self) -> HTTPRequest | None:
		"""Consumes the next complete request from the buffer, if any."""
		if self.headers is None:
			# Empty lines before a request are tolerated (RFC 9112 §2.2)
			while self.buffer.startswith(EOL):
				del self.buffer[: len(EOL)]
			end: int = self.buffer.find(END_OF_HEAD)
			if end == -1:
				if len(self.buffer) > HEAD_LIMIT:
					raise MalformedRequest("Request head is too large")
				return None
			lines: list[bytes] = bytes(self.buffer[:end]).split(EOL)
			del self.buffer[: end + len(END_OF_HEAD)]
			self.line = parseRequestLine(lines[0])
			self.headers = parseHeaders(lines[1:])
		length: int = self.headers.contentLength or 0
		if len(self.buffer) < length:
			return None
		body = HTTPBodyBlob(bytes(self.buffer[:length]))
		del self.buffer[:length]
		assert self.line is not None  # nosec: B101
		res = HTTPRequest(self.line, self.headers, body)
		self.line = None
		self.headers = None
		return res


# EOF
