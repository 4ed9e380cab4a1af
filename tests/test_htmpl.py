import pytest

from treeserve.utils.htmpl import H, Node, escape, html, raw, text


def render(*nodes: Node, doctype: str | None = None) -> str:
    return "".join(html(*nodes, doctype=doctype))


def test_text_is_escaped():
    assert render(text("<a href='x'>&</a>")) == "&lt;a href=&#x27;x&#x27;&gt;&amp;&lt;/a&gt;"
    assert render(H.p("1 < 2")) == "<p>1 &lt; 2</p>"
    assert escape('"') == "&quot;"


def test_raw_is_verbatim():
    assert render(H.div(raw("<b>bold</b>"))) == "<div><b>bold</b></div>"


def test_attributes():
    assert render(H.a("x", href="/a?b=1&c=2", _="content")) == (
        '<a href="/a?b=1&amp;c=2" class="content">x</a>'
    )
    assert render(H.pre("/", id_="header")) == '<pre id="header">/</pre>'
    assert render(H.div(hidden=None)) == "<div hidden></div>"


def test_empty_elements():
    assert render(H.meta(charset="utf-8")) == '<meta charset="utf-8">'
    assert render(H.p()) == "<p></p>"


def test_children_are_flattened():
    items = [H.li(_) for _ in "ab"]
    assert render(H.ul(items)) == "<ul><li>a</li><li>b</li></ul>"
    assert render(H.ul(H.li("0"), tuple(items))) == (
        "<ul><li>0</li><li>a</li><li>b</li></ul>"
    )


def test_doctype():
    assert render(H.html(), doctype="html") == "<!DOCTYPE html>\n<html></html>"


def test_unknown_tag():
    with pytest.raises(AttributeError):
        H.blink("no")


def test_find():
    page = H.html(H.body(H.div(H.p("a"), H.div(H.p("b")))))
    assert [_.children[0].value for _ in page.find("p")] == ["a", "b"]
    assert len(list(page.find("div"))) == 2
    assert list(page.find("span")) == []


# EOF
