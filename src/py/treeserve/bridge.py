import asyncio

from .http.model import HTTPBodyBuffer, HTTPProcessingStatus, HTTPRequest
from .http.parser import HTTPParser
from .model import Application, Service, mount
from .server import SERVER_BAD_REQUEST, AIOSocketServer, ServerOptions


class Bridge:
	"""Runs an application in-process: raw HTTP requests go in, and the raw
	bytes the server would have sent come out. This goes through the same
	parser and response path as the socket server."""

	def __init__(self, application: Application):
		if not application:
			raise ValueError("Bridge has not been given an application")
		self.application: Application = application
		self.options: ServerOptions = ServerOptions(logRequests=False)

	async def process(self, request: bytes) -> bytes:
		parser = HTTPParser()
		writer = HTTPBodyBuffer()
		for atom in parser.feed(request):
			if atom is HTTPProcessingStatus.BadFormat:
				await writer.write(SERVER_BAD_REQUEST)
				break
			elif isinstance(atom, HTTPRequest):
				await AIOSocketServer.SendResponse(
					atom, self.application, writer, options=self.options
				)
		return bytes(writer.data)

	def request(self, request: bytes) -> bytes:
		"""Synchronously processes the given raw request(s)."""
		return asyncio.run(self.process(request))

	def get(self, path: str, method: str = "GET") -> bytes:
		"""Shorthand to issue a single request for the given path."""
		return self.request(
			f"{method} {path} HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n".encode(
				"latin-1"
			)
		)


def run(*components: Application | Service) -> Bridge:
	"""Mounts the given components and wraps them in a bridge."""
	return Bridge(mount(*components))


# EOF
