import re
from typing import Any, Awaitable, Callable, ClassVar, Pattern

from .decorators import routesOf
from .http.model import HTTPRequest, HTTPRequestError, HTTPResponse
from .utils.logging import debug

# -----------------------------------------------------------------------------
#
# ROUTE
#
# -----------------------------------------------------------------------------


class Route:
	"""A path template like `/files/{path:any}`. Parameters match a single
	segment unless their kind says otherwise."""

	PARAMETER: ClassVar[Pattern[str]] = re.compile(
		r"\{(?P<name>[A-Za-z_]\w*)(:(?P<kind>\w+))?\}"
	)

	KINDS: ClassVar[dict[str, str]] = {
		"segment": r"[^/]+",
		"any": r".*",
	}

	@classmethod
	def Compile(cls, template: str) -> Pattern[str]:
		expr: list[str] = []
		offset: int = 0
		for param in cls.PARAMETER.finditer(template):
			kind: str = param.group("kind") or "segment"
			if kind not in cls.KINDS:
				raise ValueError(
					f"Unknown route parameter kind '{kind}' in {template!r}, expected one of: {', '.join(cls.KINDS)}"
				)
			expr.append(re.escape(template[offset : param.start()]))
			expr.append(f"(?P<{param.group('name')}>{cls.KINDS[kind]})")
			offset = param.end()
		expr.append(re.escape(template[offset:]))
		return re.compile(f"^{''.join(expr)}$", re.DOTALL)

	def __init__(self, template: str):
		self.template: str = template
		self.regexp: Pattern[str] = self.Compile(template)

	def match(self, path: str) -> dict[str, str] | None:
		"""Returns the parameters extracted from the path, if it matches."""
		return m.groupdict() if (m := self.regexp.match(path)) else None

	def __repr__(self) -> str:
		return f"(Route {self.template!r})"


# -----------------------------------------------------------------------------
#
# HANDLER
#
# -----------------------------------------------------------------------------


class Handler:
	"""Wraps a decorated method along with the routes it answers."""

	@classmethod
	def Get(cls, value: Any) -> "Handler | None":
		return cls(value, routes) if (routes := routesOf(value)) else None

	def __init__(
		self,
		functor: Callable[..., Awaitable[HTTPResponse]],
		routes: list[tuple[str, str]],
	):
		self.functor = functor
		self.routes: list[tuple[str, str]] = routes

	async def __call__(self, request: HTTPRequest, params: dict[str, Any]) -> HTTPResponse:
		try:
			return await self.functor(request, **params)
		except HTTPRequestError as e:
			return request.error(
				e.status or 500,
				content=e.message,
				contentType=e.contentType or "text/plain",
			)

	def __repr__(self) -> str:
		return f"(Handler {self.functor.__name__} {self.routes})"


# -----------------------------------------------------------------------------
#
# DISPATCHER
#
# -----------------------------------------------------------------------------


class Dispatcher:
	"""Matches requests against the registered routes, in registration
	order, per method."""

	def __init__(self) -> None:
		self.routes: dict[str, list[tuple[Route, Handler]]] = {}

	def register(self, handler: Handler, prefix: str | None = None) -> "Dispatcher":
		for method, path in handler.routes:
			path = f"{prefix or ''}{path}"
			path = path if path.startswith("/") else f"/{path}"
			self.routes.setdefault(method, []).append((Route(path), handler))
			debug("Registered route", Method=method, Path=path)
		return self

	def match(self, method: str, path: str) -> tuple[Handler, dict[str, Any]] | None:
		for route, handler in self.routes.get(method, ()):
			if (params := route.match(path)) is not None:
				return handler, params
		return None

	def allowed(self, path: str) -> list[str]:
		"""Lists the methods that have a route for the path."""
		return [
			method
			for method, routes in self.routes.items()
			if any(route.match(path) is not None for route, _ in routes)
		]


# EOF
