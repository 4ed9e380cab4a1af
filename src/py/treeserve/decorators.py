from typing import Any, Callable, TypeVar

T = TypeVar("T")

# The attribute holding the `(METHOD, path)` pairs of a decorated handler
ON: str = "_treeserve_on"


def routesOf(value: Any) -> list[tuple[str, str]]:
	"""Returns the `(METHOD, path)` pairs the value was decorated with."""
	return getattr(value, ON, None) or []


def on(**methods: str | list[str] | tuple[str, ...]) -> Callable[[T], T]:
	"""Marks a method as a request handler. Keywords are HTTP method names,
	joined with `_` to share paths (like `GET_HEAD`), and values are one or
	more route templates (see `Route`).

	>    @on(GET_HEAD="/files/{path:any}")
	>    async def read(self, request, path): ...

	The handler receives the request and the template parameters, and
	returns a response."""

	def decorator(function: T) -> T:
		routes: list[tuple[str, str]] = list(routesOf(function))
		for names, paths in methods.items():
			for method in names.upper().split("_"):
				routes += [
					(method, _)
					for _ in ((paths,) if isinstance(paths, str) else paths)
				]
		setattr(function, ON, routes)
		return function

	return decorator


# EOF
