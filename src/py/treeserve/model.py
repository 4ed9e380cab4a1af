import inspect
from typing import ClassVar

from .decorators import routesOf
from .http.model import HTTPRequest, HTTPResponse
from .routing import Dispatcher, Handler
from .utils.logging import error

# -----------------------------------------------------------------------------
#
# SERVICE
#
# -----------------------------------------------------------------------------


class Service:
	"""Groups request handlers, declared as `@on` decorated methods, under
	an optional path prefix."""

	PREFIX: ClassVar[str] = ""

	def __init__(self, name: str | None = None, *, prefix: str | None = None) -> None:
		self.name: str = name or type(self).__name__
		self.prefix: str = prefix or self.PREFIX
		self.app: Application | None = None

	async def start(self) -> None:
		pass

	async def stop(self) -> None:
		pass

	@property
	def isMounted(self) -> bool:
		return self.app is not None

	@property
	def handlers(self) -> list[Handler]:
		# Looked up on the class, so that properties are not evaluated
		return [
			Handler(getattr(self, name), routesOf(value))
			for name, value in inspect.getmembers(type(self), routesOf)
		]

	def __repr__(self) -> str:
		return f"(Service {self.name}{' :mounted' if self.isMounted else ''})"


# -----------------------------------------------------------------------------
#
# APPLICATION
#
# -----------------------------------------------------------------------------


class Application:
	"""Dispatches requests to the handlers of the mounted services."""

	def __init__(self, services: list[Service] | None = None) -> None:
		self.dispatcher: Dispatcher = Dispatcher()
		self.services: list[Service] = []
		for service in services or ():
			self.mount(service)

	def mount(self, service: Service) -> Service:
		if service.isMounted:
			raise RuntimeError(f"Service is already mounted: {service}")
		for handler in service.handlers:
			self.dispatcher.register(handler, service.prefix)
		service.app = self
		self.services.append(service)
		return service

	async def start(self) -> "Application":
		for service in self.services:
			try:
				await service.start()
			except Exception as e:
				error(f"Could not start service {service}: {e}", "APPSTART")
				raise
		return self

	async def stop(self) -> "Application":
		# All services get stopped, even when one of them fails
		for service in self.services:
			try:
				await service.stop()
			except Exception as e:
				error(f"Could not stop service {service}: {e}", "APPSTOP")
		return self

	async def process(self, request: HTTPRequest) -> HTTPResponse:
		if match := self.dispatcher.match(request.method, request.path):
			handler, params = match
			return await handler(request, params)
		elif allowed := self.dispatcher.allowed(request.path):
			return request.notAllowed(allowed)
		else:
			return request.notFound()


def mount(*components: Application | Service) -> Application:
	"""Mounts the services into the first given application, or into a new
	one."""
	app: Application = next(
		(_ for _ in components if isinstance(_, Application)), Application()
	)
	for item in components:
		if isinstance(item, Service):
			app.mount(item)
		elif not isinstance(item, Application):
			raise RuntimeError(f"Unsupported component type {type(item)}: {item}")
	return app


# EOF
