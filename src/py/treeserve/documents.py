from pathlib import Path
from typing import Callable

import markdown
import markdown.extensions

from .resolver import NotFound, ResolvedTarget
from .styles import DOCUMENT_CSS, PAGE_CSS
from .utils.htmpl import H, Node, html, raw

# A converter turns the text of a document into an HTML fragment
TConverter = Callable[[str], str]


class EscapeHTML(markdown.extensions.Extension):
	"""Renders raw HTML found in documents as text instead of passing it
	through."""

	def extendMarkdown(self, md: markdown.Markdown) -> None:
		md.preprocessors.deregister("html_block")
		md.inlinePatterns.deregister("html")


MARKDOWN_EXTENSIONS: list[str | markdown.extensions.Extension] = [
	"fenced_code",
	"tables",
	"sane_lists",
	EscapeHTML(),
]


def markdownToHTML(text: str) -> str:
	return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS, output_format="html")


# Extensions are matched case-sensitively, in order. Adding a rendered
# format is adding an entry here.
DOCUMENT_RENDERERS: dict[str, TConverter] = {
	"md": markdownToHTML,
	"markdown": markdownToHTML,
}


def documentRenderer(path: Path) -> TConverter | None:
	"""Returns the converter registered for the path's extension, if any."""
	suffix: str = path.suffix
	return DOCUMENT_RENDERERS.get(suffix[1:]) if suffix else None


def documentPage(title: str, content: str) -> Node:
	"""Wraps the converted document in the page shell, with the document
	stylesheet layered over the base one."""
	return H.html(
		H.head(
			H.meta(charset="utf-8"),
			H.meta(name="viewport", content="width=device-width, initial-scale=1.0"),
			H.title(title),
			H.style(raw(PAGE_CSS)),
			H.style(raw(DOCUMENT_CSS)),
		),
		H.body(H.main(raw(content), _="border-box markdown-content")),
	)


def renderDocument(target: ResolvedTarget, converter: TConverter | None = None) -> str:
	"""Reads the whole document and renders it as an HTML page. Any read
	failure raises `NotFound`, documents are never partially rendered."""
	convert: TConverter | None = converter or documentRenderer(target.path)
	if not convert:
		raise NotFound()
	try:
		text: str = target.path.read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as e:
		raise NotFound() from e
	return "".join(
		html(documentPage(target.path.name, convert(text)), doctype="html")
	)


# EOF
