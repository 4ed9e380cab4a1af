import mimetypes
from pathlib import Path

mimetypes.init()

# Types that `mimetypes` gets wrong or doesn't know on some platforms.
MIME_TYPES: dict[str, str] = {
	"bz2": "application/x-bzip",
	"gz": "application/gzip",
	"js": "text/javascript",
	"mjs": "text/javascript",
	"md": "text/markdown",
	"wasm": "application/wasm",
}

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"


def contentType(path: Path | str) -> str:
	"""Guesses the content type from the given path's extension."""
	name = Path(path).name
	ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
	return (
		MIME_TYPES.get(ext) or mimetypes.guess_type(name)[0] or DEFAULT_CONTENT_TYPE
	)


# EOF
