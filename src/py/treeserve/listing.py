import os
from pathlib import Path
from typing import NamedTuple
from urllib.parse import quote

from .resolver import NotFound, ResolvedTarget
from .styles import FILE_ICON, FOLDER_ICON, PAGE_CSS
from .utils.htmpl import H, Node, html, raw
from .utils.logging import warning

PARENT_NAME: str = ".."


class ListingEntry(NamedTuple):
	"""One link of a directory listing."""

	href: str
	name: str
	isDirectory: bool


def linkPath(relative: str) -> str:
	"""Returns the URL for a POSIX path relative to the root, which is always
	absolute."""
	return "/" + quote(relative.strip("/"), safe="/")


def isPrintable(name: str) -> bool:
	"""Tells if the name was valid in the filesystem encoding, undecodable
	bytes show up as lone surrogates."""
	try:
		name.encode("utf-8")
	except UnicodeEncodeError:
		return False
	return True


def listingEntry(target: ResolvedTarget, item: os.DirEntry[str]) -> ListingEntry | None:
	"""Creates the entry for the given directory item, or returns `None`
	when it can't be named or stat'ed."""
	name: str = item.name
	if not isPrintable(name):
		return None
	try:
		is_dir: bool = item.is_dir()
		# Broken symlinks and entries that vanished since the enumeration
		# fail here.
		item.stat()
	except OSError:
		return None
	return ListingEntry(
		href=linkPath(f"{target.relative}/{name}" if target.relative else name),
		name=name,
		isDirectory=is_dir,
	)


def parentEntry(root: Path, target: ResolvedTarget) -> ListingEntry:
	try:
		relative = target.path.parent.relative_to(root)
	except ValueError as e:
		raise NotFound() from e
	return ListingEntry(
		href=linkPath("" if relative == Path(".") else relative.as_posix()),
		name=PARENT_NAME,
		isDirectory=True,
	)


def listDirectory(root: Path, target: ResolvedTarget) -> list[ListingEntry]:
	"""Lists the immediate children of the target directory sorted by name,
	preceded by a link to the parent unless the target is the root. Raises
	`NotFound` when the directory can't be enumerated at all."""
	try:
		items = os.scandir(target.path)
	except OSError as e:
		raise NotFound() from e
	entries: list[ListingEntry] = []
	with items:
		try:
			for item in items:
				if entry := listingEntry(target, item):
					entries.append(entry)
		except OSError as e:
			# We keep what we've got so far.
			warning("Directory listing interrupted", Path=str(target.path), Error=str(e))
	entries.sort(key=lambda _: _.name)
	if not target.isRoot:
		entries.insert(0, parentEntry(root, target))
	return entries


def entryNode(entry: ListingEntry) -> Node:
	return H.a(
		raw(FOLDER_ICON if entry.isDirectory else FILE_ICON),
		H.p(entry.name, _="text"),
		href=entry.href,
		_="content",
	)


def directoryPage(requestPath: str, entries: list[ListingEntry]) -> Node:
	"""Creates the listing page, the request path is shown as-is as the
	header."""
	return H.html(
		H.head(
			H.meta(charset="utf-8"),
			H.meta(name="viewport", content="width=device-width, initial-scale=1.0"),
			H.title(requestPath),
			H.style(raw(PAGE_CSS)),
		),
		H.body(
			H.main(
				H.pre(requestPath, id_="header"),
				H.div([entryNode(_) for _ in entries], id_="wrapper"),
				_="border-box",
			)
		),
	)


def renderDirectory(root: Path, target: ResolvedTarget, requestPath: str) -> str:
	"""Renders the HTML listing of the target directory."""
	return "".join(
		html(directoryPage(requestPath, listDirectory(root, target)), doctype="html")
	)


# EOF
