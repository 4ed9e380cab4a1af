from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, TypeVar

from .status import HTTP_STATUS

T = TypeVar("T")

# --
# The high level API to create responses from a request, independent of
# the underlying model.


class ResponseFactory(ABC, Generic[T]):
	@abstractmethod
	def respond(
		self,
		content: Any = None,
		contentType: str | None = None,
		status: int = 200,
		headers: dict[str, str] | None = None,
	) -> T: ...

	def error(
		self,
		status: int,
		content: str | None = None,
		contentType: str = "text/plain",
		headers: dict[str, str] | None = None,
	) -> T:
		"""Responds with an error status, the body defaulting to the status
		phrase."""
		return self.respond(
			HTTP_STATUS.get(status, "Error") if content is None else content,
			contentType=contentType,
			status=status,
			headers=headers,
		)

	def notFound(self) -> T:
		return self.error(404)

	def notAllowed(self, methods: Iterable[str]) -> T:
		return self.error(405, headers={"Allow": ", ".join(methods)})

	def respondHTML(self, html: str, status: int = 200) -> T:
		return self.respond(html, contentType="text/html; charset=utf-8", status=status)


# EOF
