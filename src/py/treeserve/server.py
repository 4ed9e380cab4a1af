import asyncio
import errno
import ipaddress
import socket
import threading
from dataclasses import dataclass
from signal import SIGINT, SIGTERM
from typing import Any, BinaryIO, Callable, NamedTuple

from .config import LOG_REQUESTS, LOOPBACK, PORT
from .http.model import (
	HTTPBodyWriter,
	HTTPProcessingStatus,
	HTTPRequest,
	HTTPResponse,
)
from .http.parser import HTTPParser
from .model import Application, Service, mount
from .utils.logging import (
	LogLevel,
	debug,
	error,
	event,
	exception,
	info,
	logged,
	warning,
)


@dataclass(slots=True)
class ServerState:
	isRunning: bool = True

	def stop(self) -> None:
		if self.isRunning:
			info("Server stopping…")
		self.isRunning = False

	def onException(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
		if e := context.get("exception"):
			exception(e)
		else:
			warning("Event loop error", Message=context.get("message"))


class ServerOptions(NamedTuple):
	hosts: tuple[str, ...] = (LOOPBACK,)
	port: int = PORT
	backlog: int = 1_024
	# How often blocked accepts and reads check that the server still runs
	polling: float = 0.5
	readsize: int = 4_096
	# Idle connections are closed after this delay
	keepalive: float = 60.0
	# Grace period given to in-flight connections on shutdown
	shutdownTimeout: float = 5.0
	logRequests: bool = LOG_REQUESTS
	condition: Callable[[], bool] | None = None
	stopSignals: bool = True


OPTIONS: ServerOptions = ServerOptions()


def canned(status: int, phrase: str) -> bytes:
	"""A complete response for failures that happen outside of handlers,
	after which the connection is closed."""
	return (
		f"HTTP/1.1 {status} {phrase}\r\n"
		"Content-Type: text/plain\r\n"
		f"Content-Length: {len(phrase)}\r\n"
		"Connection: close\r\n"
		f"\r\n{phrase}"
	).encode("ascii")


SERVER_ERROR: bytes = canned(500, "Internal Server Error")
SERVER_BAD_REQUEST: bytes = canned(400, "Bad Request")


def privateAddress() -> str | None:
	"""Returns the host's private IPv4 address, if any. Connecting a UDP
	socket sends nothing, it only picks the outgoing interface."""
	with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as udp:
		try:
			udp.connect(("10.255.255.255", 1))
			addr: str = udp.getsockname()[0]
		except OSError:
			return None
	ip = ipaddress.ip_address(addr)
	return addr if ip.is_private and not ip.is_loopback else None


class AIOSocketBodyWriter(HTTPBodyWriter):
	"""Writes bodies straight to a non-blocking client socket."""

	def __init__(self, client: socket.socket, loop: asyncio.AbstractEventLoop) -> None:
		super().__init__()
		self.client: socket.socket = client
		self.loop: asyncio.AbstractEventLoop = loop

	async def _writeBytes(self, chunk: bytes) -> None:
		if chunk:
			await self.loop.sock_sendall(self.client, chunk)

	async def _writeFile(self, handle: BinaryIO, length: int) -> int:
		# Uses `sendfile` when available, reading chunks otherwise. The
		# count is lower than `length` when the file was truncated.
		return await self.loop.sock_sendfile(self.client, handle, 0, length)


class AIOSocketServer:
	"""Serves an application from raw non-blocking sockets, one task per
	connection."""

	@classmethod
	async def Receive(
		cls,
		client: socket.socket,
		buffer: bytearray,
		*,
		loop: asyncio.AbstractEventLoop,
		state: ServerState,
		options: ServerOptions,
	) -> int | None:
		"""Waits for data from the client, returning `None` when the
		connection stays idle past the keepalive or the server stops."""
		idle: float = 0.0
		while state.isRunning and idle < options.keepalive:
			try:
				return await asyncio.wait_for(
					loop.sock_recv_into(client, buffer), timeout=options.polling
				)
			except asyncio.TimeoutError:
				idle += options.polling
		return None

	@classmethod
	async def OnRequest(
		cls,
		app: Application,
		client: socket.socket,
		*,
		loop: asyncio.AbstractEventLoop,
		state: ServerState,
		options: ServerOptions,
	) -> None:
		"""Serves the requests of a connection until the client or the
		server ends it, then closes the socket."""
		buffer = bytearray(options.readsize)
		parser = HTTPParser()
		writer = AIOSocketBodyWriter(client, loop)
		received: int = 0
		sent: int = 0
		ended: HTTPProcessingStatus | None = None
		try:
			while ended is None:
				n = await cls.Receive(client, buffer, loop=loop, state=state, options=options)
				if n is None:
					ended = HTTPProcessingStatus.Timeout
					break
				elif n == 0:
					ended = HTTPProcessingStatus.NoData
					break
				# Pipelined requests may arrive in the same chunk
				for atom in parser.feed(bytes(buffer[:n])):
					if atom is HTTPProcessingStatus.BadFormat:
						warning("Malformed request", Requests=received)
						await writer.write(SERVER_BAD_REQUEST)
						ended = atom
					elif isinstance(atom, HTTPRequest):
						received += 1
						if await cls.SendResponse(atom, app, writer, options=options):
							sent += 1
						else:
							ended = HTTPProcessingStatus.BadFormat
						if ended is None and (writer.shouldClose or not atom.keepAlive):
							ended = HTTPProcessingStatus.NoData
					if ended is not None:
						break
			if ended is HTTPProcessingStatus.Timeout and received != sent:
				warning("Client timed out", Requests=received, Responses=sent)
		except (BrokenPipeError, ConnectionResetError):
			logged(LogLevel.Debug) and debug(
				"Client closed connection", Requests=received, Responses=sent
			)
		except Exception as e:
			exception(e)
		finally:
			client.close()

	@staticmethod
	async def SendResponse(
		request: HTTPRequest,
		app: Application,
		writer: HTTPBodyWriter,
		*,
		options: ServerOptions = OPTIONS,
	) -> HTTPResponse | None:
		"""Processes the request and writes the response, which is always
		closed afterwards. Returns `None` when the handler failed and a 500
		was sent instead."""
		try:
			res: HTTPResponse = await app.process(request)
		except Exception as e:
			exception(e, f"Handler failed for {request.method} {request.path}")
			await writer.write(SERVER_ERROR)
			return None
		try:
			if request.method == "HEAD":
				res.withoutBody()
			if not request.keepAlive:
				res.setHeader("Connection", "close")
			await writer.write(res.head())
			await writer.write(res.body)
		finally:
			res.close()
		if options.logRequests:
			event(request.method, request.path, Status=res.status)
		else:
			logged(LogLevel.Debug) and debug(
				"Request", Method=request.method, Path=request.path, Status=res.status
			)
		return res

	@staticmethod
	def Bind(options: ServerOptions) -> list[tuple[str, socket.socket]]:
		"""Binds one listening socket per host. Only a failure on the first
		host is fatal, the others are skipped with a warning."""
		bound: list[tuple[str, socket.socket]] = []
		for host in options.hosts:
			sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
			sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
			sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
			try:
				sock.bind((host, options.port))
			except OSError:
				sock.close()
				if bound:
					warning(f"Could not bind to {host}:{options.port}, skipping.")
					continue
				error(f"Unable to bind to {host}:{options.port}, aborting.", "HOSTPORTERR")
				raise
			sock.listen(options.backlog)
			sock.setblocking(False)
			bound.append((host, sock))
		return bound

	@classmethod
	async def Accept(
		cls,
		app: Application,
		sock: socket.socket,
		tasks: set[asyncio.Task[None]],
		*,
		loop: asyncio.AbstractEventLoop,
		state: ServerState,
		options: ServerOptions,
	) -> None:
		while state.isRunning:
			if options.condition and not options.condition():
				state.stop()
				break
			try:
				client, _ = await asyncio.wait_for(
					loop.sock_accept(sock), timeout=options.polling
				)
			except asyncio.TimeoutError:
				continue
			except OSError as e:
				# Out of file descriptors, waiting for connections to end
				if e.errno == errno.EMFILE:
					await asyncio.sleep(0.1)
				else:
					exception(e)
				continue
			task = loop.create_task(
				cls.OnRequest(app, client, loop=loop, state=state, options=options)
			)
			tasks.add(task)
			task.add_done_callback(tasks.discard)

	@classmethod
	async def Serve(cls, app: Application, options: ServerOptions = OPTIONS) -> None:
		loop = asyncio.get_running_loop()
		bound = cls.Bind(options)
		tasks: set[asyncio.Task[None]] = set()
		state = ServerState()
		# Signal handlers can only be installed from the main thread
		if options.stopSignals and threading.current_thread() is threading.main_thread():
			for sig in (SIGINT, SIGTERM):
				loop.add_signal_handler(sig, state.stop)
		loop.set_exception_handler(state.onException)
		await app.start()
		for host, _ in bound:
			info("Server listening", icon="🚀", Host=host, Port=options.port)
		try:
			await asyncio.gather(
				*(
					cls.Accept(app, sock, tasks, loop=loop, state=state, options=options)
					for _, sock in bound
				)
			)
		finally:
			state.stop()
			for _, sock in bound:
				sock.close()
			await cls.Shutdown(tasks, options)
			await app.stop()

	@staticmethod
	async def Shutdown(tasks: set[asyncio.Task[None]], options: ServerOptions) -> None:
		"""Gives in-flight connections the grace period to finish, then
		cancels the rest. Failures are logged and shutdown goes on."""
		if not tasks:
			return
		info("Waiting for in-flight connections", Count=len(tasks))
		try:
			_, pending = await asyncio.wait(set(tasks), timeout=options.shutdownTimeout)
			if pending:
				warning("Cancelled connections", Count=len(pending))
				for task in pending:
					task.cancel()
				await asyncio.gather(*pending, return_exceptions=True)
		except Exception as e:
			exception(e, "An error occurred during shutdown")


def run(
	*components: Application | Service,
	hosts: tuple[str, ...] = OPTIONS.hosts,
	port: int = OPTIONS.port,
	backlog: int = OPTIONS.backlog,
	condition: Callable[[], bool] | None = None,
	polling: float = OPTIONS.polling,
	logRequests: bool = OPTIONS.logRequests,
	keepalive: float = OPTIONS.keepalive,
	shutdownTimeout: float = OPTIONS.shutdownTimeout,
) -> None:
	"""Mounts the components and serves them until stopped."""
	options = ServerOptions(
		hosts=hosts,
		port=port,
		backlog=backlog,
		condition=condition,
		polling=polling,
		logRequests=logRequests,
		keepalive=keepalive,
		shutdownTimeout=shutdownTimeout,
	)
	try:
		asyncio.run(AIOSocketServer.Serve(mount(*components), options))
	except KeyboardInterrupt:
		event("ManualShutdown")
	event("EOK")


# EOF
