from typing import Callable, Iterable, Iterator, LiteralString, Union, cast

from mypy_extensions import KwArg, VarArg

# --
# HTMPL builds HTML documents as plain trees of `Node` values, which are
# only turned into text by `html()`. Renderers return trees so that their
# structure can be asserted on before serialization.

# Elements without a closing tag
VOID_ELEMENTS: frozenset[LiteralString] = frozenset(
	"area base br col embed hr img input link meta source track wbr".split()
)

TEXT_ENTITIES = str.maketrans(
	{"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#x27;"}
)
ATTRIBUTE_ENTITIES = str.maketrans({"&": "&amp;", '"': "&quot;", "<": "&lt;"})


def escape(text: str) -> str:
	return text.translate(TEXT_ENTITIES)


TNodeContent = Union["Node", str, bool, float, int]
TAttributeContent = str | bool | float | int | None


class Node:
	"""An element, or a `#text`/`#raw` leaf holding its string in the
	`#value` attribute."""

	__slots__ = ["name", "attributes", "children"]

	def __init__(
		self,
		name: str,
		children: Iterable[TNodeContent] | None = None,
		attributes: dict[str, TAttributeContent] | None = None,
	):
		self.name: str = name
		self.attributes: dict[str, TAttributeContent] = attributes or {}
		self.children: list[TNodeContent] = list(children or ())

	@property
	def value(self) -> str:
		return str(self.attributes.get("#value") or "")

	def find(self, name: str) -> Iterator["Node"]:
		"""Yields this node and its descendants named `name`, in document
		order."""
		if self.name == name:
			yield self
		for child in self.children:
			if isinstance(child, Node):
				yield from child.find(name)

	def iterHTML(self) -> Iterator[str]:
		match self.name:
			case "#raw":
				yield self.value
			case "#text":
				yield escape(self.value)
			case _:
				yield f"<{self.name}{''.join(self.iterAttributes())}>"
				if self.children or self.name not in VOID_ELEMENTS:
					for child in self.children:
						if isinstance(child, Node):
							yield from child.iterHTML()
						else:
							yield escape(str(child))
					yield f"</{self.name}>"

	def iterAttributes(self) -> Iterator[str]:
		for name, value in self.attributes.items():
			if value is None:
				yield f" {name}"
			else:
				yield f' {name}="{str(value).translate(ATTRIBUTE_ENTITIES)}"'

	def __str__(self) -> str:
		return "".join(self.iterHTML())

	def __repr__(self) -> str:
		return f"(Node {self.name} {self.attributes} ({len(self.children)}))"


def text(value: str) -> Node:
	return Node("#text", attributes={"#value": value})


def raw(html: str) -> Node:
	"""Wraps an already serialized HTML fragment, which is output verbatim."""
	return Node("#raw", attributes={"#value": html})


NodeFactory = Callable[
	[
		VarArg(TNodeContent | Iterable[TNodeContent]),
		KwArg(TAttributeContent),
	],
	Node,
]


def attributeName(name: str) -> str:
	# `_` stands for `class` and a trailing `_` escapes keywords like `id_`
	return "class" if name == "_" else name.removesuffix("_")


def element(name: str) -> NodeFactory:
	"""Returns a factory for `name` elements. Positional arguments are the
	children, lists and tuples being flattened, strings becoming text nodes.
	Keyword arguments are the attributes."""

	def factory(*children: TNodeContent | Iterable[TNodeContent], **attributes: TAttributeContent) -> Node:
		content: list[TNodeContent] = []
		for child in children:
			content.extend(child if isinstance(child, (list, tuple)) else (child,))
		return Node(
			name,
			[text(_) if isinstance(_, str) else _ for _ in content],
			{attributeName(k): v for k, v in attributes.items()},
		)

	factory.__name__ = name
	return cast(NodeFactory, factory)


class Markup:
	"""A namespace of element factories, as in `H.div(…)`. Unknown tags are
	an error rather than silently produced."""

	def __init__(self, tags: Iterable[str]):
		self.factories: dict[str, NodeFactory] = {_: element(_) for _ in tags}

	def __getattr__(self, name: str) -> NodeFactory:
		try:
			return self.factories[name]
		except KeyError:
			raise AttributeError(
				f"No tag {name}, pick one of {', '.join(sorted(self.factories))}"
			) from None


H: Markup = Markup(
	"""\
a body code div h1 h2 head html li link main meta p pre section span style
title ul""".split()
)


def html(*nodes: Node, doctype: str | None = None) -> Iterator[str]:
	"""Serializes the given nodes, the only way trees are turned into text."""
	if doctype:
		yield doctype if doctype.startswith("<!") else f"<!DOCTYPE {doctype}>"
		yield "\n"
	for node in nodes:
		yield from node.iterHTML()


# EOF
