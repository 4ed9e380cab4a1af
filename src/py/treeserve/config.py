from dataclasses import dataclass
from os import getenv
from pathlib import Path


def envInt(name: str, default: int) -> int:
	try:
		return int(getenv(name, default))
	except ValueError:
		return default


PORT: int = envInt("PORT", 8080)

# Loopback is always bound, the private network address only when allowed.
LOOPBACK: str = "127.0.0.1"

LOG_REQUESTS: bool = getenv("TREESERVE_LOG_REQUESTS", "0") == "1"


class ConfigError(ValueError):
	"""Raised when the configuration can't be used to start the server."""


@dataclass(slots=True, frozen=True)
class ServerConfig:
	"""The process-wide configuration, created once at startup and passed
	to the services and the server. It is never mutated."""

	root: Path
	port: int = PORT
	localhost: bool = False
	verbose: bool = False

	@staticmethod
	def Make(
		folder: str | Path = ".",
		*,
		port: int = PORT,
		localhost: bool = False,
		verbose: bool = False,
	) -> "ServerConfig":
		"""Creates a configuration, canonicalizing the root folder, which
		must be an existing directory."""
		try:
			root = Path(folder).expanduser().resolve(strict=True)
		except (OSError, RuntimeError) as e:
			raise ConfigError(f"Root folder does not exist: {folder}") from e
		if not root.is_dir():
			raise ConfigError(f"Root folder is not a directory: {folder}")
		if not (0 <= port <= 65535):
			raise ConfigError(f"Port is out of range: {port}")
		return ServerConfig(root=root, port=port, localhost=localhost, verbose=verbose)

	@property
	def logRequests(self) -> bool:
		return self.verbose or LOG_REQUESTS


# EOF
