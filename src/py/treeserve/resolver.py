import os
import stat
from enum import Enum
from pathlib import Path
from typing import NamedTuple
from urllib.parse import unquote

from .http.model import HTTPRequestError

# -----------------------------------------------------------------------------
#
# MODEL
#
# -----------------------------------------------------------------------------


class NotFound(HTTPRequestError):
	"""The only error surfaced to clients. Missing paths, traversal attempts
	and unreadable targets all end up as the same bare 404."""

	def __init__(self, message: str = "Not Found"):
		super().__init__(message, status=404, contentType="text/plain")


class TargetKind(Enum):
	File = "file"
	Directory = "directory"
	Missing = "missing"


class ResolvedTarget(NamedTuple):
	"""A request path that has been confined to the root and classified."""

	path: Path
	kind: TargetKind
	# POSIX path relative to the root, empty for the root itself
	relative: str

	@property
	def isRoot(self) -> bool:
		return not self.relative

	@property
	def isFile(self) -> bool:
		return self.kind is TargetKind.File

	@property
	def isDirectory(self) -> bool:
		return self.kind is TargetKind.Directory


# -----------------------------------------------------------------------------
#
# RESOLUTION
#
# -----------------------------------------------------------------------------


def isWithin(root: Path, path: Path) -> bool:
	"""Tells if `path` is `root` or one of its descendants, comparing path
	components rather than strings."""
	return path.parts[: len(parts := root.parts)] == parts


def classify(path: Path) -> TargetKind:
	"""Classifies the path with a single metadata query, following
	symlinks. Anything that is neither a regular file nor a directory, like
	a FIFO or a device, is treated as missing."""
	try:
		mode = os.stat(path).st_mode
	except (OSError, ValueError):
		return TargetKind.Missing
	if stat.S_ISDIR(mode):
		return TargetKind.Directory
	elif stat.S_ISREG(mode):
		return TargetKind.File
	else:
		return TargetKind.Missing


def confine(root: Path, requestPath: str) -> Path:
	"""Maps the request path to a canonical filesystem path within `root`,
	raising `NotFound` when it can't be done. Symlinks are resolved before
	the check, so a link pointing outside of the root is rejected."""
	# Only the single leading separator is removed: a path like `//etc`
	# becomes absolute and is then rejected by the containment check.
	relative: str = unquote(requestPath, errors="surrogateescape")
	relative = relative[1:] if relative.startswith("/") else relative
	try:
		local_path: Path = root.joinpath(relative).resolve()
	except (OSError, RuntimeError, ValueError) as e:
		# Embedded NUL bytes, symlink loops and the like
		raise NotFound() from e
	if not isWithin(root, local_path):
		raise NotFound()
	return local_path


def resolve(root: Path, requestPath: str) -> ResolvedTarget:
	"""Resolves the URL `requestPath` against the canonical `root`,
	returning a classified target or raising `NotFound`. The classification
	may be outdated by the time the target is used, so callers handle
	filesystem errors again."""
	local_path = confine(root, requestPath)
	kind = classify(local_path)
	if kind is TargetKind.Missing:
		raise NotFound()
	return ResolvedTarget(
		path=local_path,
		kind=kind,
		relative=local_path.relative_to(root).as_posix() if local_path != root else "",
	)


# EOF
