import asyncio
import os
import stat
from pathlib import Path

from ..config import ServerConfig
from ..decorators import on
from ..documents import documentRenderer, renderDocument
from ..http.model import HTTPRequest, HTTPResponse
from ..listing import renderDirectory
from ..model import Service
from ..resolver import NotFound, ResolvedTarget, resolve
from ..utils.logging import LogLevel, debug, logged


def releaseResponse(task: "asyncio.Future[HTTPResponse]") -> None:
	"""Closes the response of a rendering that nobody is waiting for
	anymore."""
	if not task.cancelled() and task.exception() is None:
		task.result().close()


class FileService(Service):
	"""A service to browse and download the files under a root directory:
	documents are rendered to HTML, other files are sent as-is and
	directories are listed."""

	def __init__(self, config: ServerConfig | Path | str | None = None):
		self.config: ServerConfig = (
			config
			if isinstance(config, ServerConfig)
			else ServerConfig.Make(config or ".")
		)
		self.root: Path = self.config.root
		super().__init__()

	def respondFile(self, request: HTTPRequest, target: ResolvedTarget) -> HTTPResponse:
		"""Responds with the raw bytes of the target, which may have
		changed since it was resolved. Opening doesn't block, so that a FIFO
		swapped in since then is rejected rather than waited on."""
		try:
			fd: int = os.open(target.path, os.O_RDONLY | os.O_NONBLOCK)
		except OSError as e:
			raise NotFound() from e
		try:
			meta = os.fstat(fd)
			if not stat.S_ISREG(meta.st_mode):
				raise NotFound()
			# Reads on a regular file never block, the flag can stay
			handle = os.fdopen(fd, "rb")
		except BaseException:
			os.close(fd)
			raise
		return request.respondFile(target.path, handle, meta.st_size)

	def renderFile(self, request: HTTPRequest, target: ResolvedTarget) -> HTTPResponse:
		"""Renders the file as a document when its extension has a renderer,
		and sends it raw otherwise."""
		if converter := documentRenderer(target.path):
			return request.respondHTML(renderDocument(target, converter))
		else:
			return self.respondFile(request, target)

	def renderPath(self, request: HTTPRequest, path: str) -> HTTPResponse:
		"""Resolves the path and renders the response, files first, then
		directories. This does blocking I/O and raises `NotFound`."""
		target = resolve(self.root, path)
		if target.isFile:
			return self.renderFile(request, target)
		elif target.isDirectory:
			return request.respondHTML(renderDirectory(self.root, target, request.path))
		else:
			raise NotFound()

	@on(GET_HEAD="/{path:any}")
	async def read(self, request: HTTPRequest, path: str) -> HTTPResponse:
		# The filesystem is accessed from a worker thread, so that a slow
		# disk doesn't hold other connections.
		task = asyncio.ensure_future(
			asyncio.to_thread(self.renderPath, request, f"/{path}")
		)
		try:
			return await asyncio.shield(task)
		except NotFound:
			logged(LogLevel.Debug) and debug("Not found", Path=request.path)
			return request.notFound()
		except asyncio.CancelledError:
			task.add_done_callback(releaseResponse)
			raise


# EOF
