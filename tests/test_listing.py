import os
from pathlib import Path

import pytest

from conftest import target
from treeserve.listing import (
    PARENT_NAME,
    ListingEntry,
    directoryPage,
    linkPath,
    listDirectory,
    renderDirectory,
)
from treeserve.resolver import NotFound, ResolvedTarget, TargetKind, resolve
from treeserve.styles import FILE_ICON, FOLDER_ICON, PAGE_CSS


def names(entries: list[ListingEntry]) -> list[str]:
    return [_.name for _ in entries]


def test_root_has_no_parent(root: Path):
    entries = listDirectory(root, target(root))
    assert PARENT_NAME not in names(entries)
    assert names(entries) == ["data.bin", "docs", "empty", "notes.txt", "readme.md"]


def test_parent_comes_first(root: Path):
    entries = listDirectory(root, target(root, "docs"))
    assert entries[0] == ListingEntry(href="/", name="..", isDirectory=True)
    assert names(entries) == ["..", "a b.txt", "guide.markdown", "inner"]
    inner = listDirectory(root, target(root, "docs/inner"))
    assert inner == [ListingEntry(href="/docs", name="..", isDirectory=True)]


def test_empty_directory(root: Path):
    assert listDirectory(root, target(root, "empty")) == [
        ListingEntry(href="/", name="..", isDirectory=True)
    ]


def test_ordering_is_by_code_point(root: Path):
    for name in ("b", "B", "a", "_", "Z.txt"):
        (root / "empty" / name).write_text(name)
    entries = listDirectory(root, target(root, "empty"))
    assert names(entries) == ["..", "B", "Z.txt", "_", "a", "b"]


def test_entries(root: Path):
    entries = {_.name: _ for _ in listDirectory(root, target(root, "docs"))}
    assert entries["a b.txt"] == ListingEntry(
        href="/docs/a%20b.txt", name="a b.txt", isDirectory=False
    )
    assert entries["inner"] == ListingEntry(
        href="/docs/inner", name="inner", isDirectory=True
    )


def test_broken_symlinks_are_skipped(root: Path):
    os.symlink(root / "nowhere", root / "empty" / "dangling")
    os.symlink(root / "notes.txt", root / "empty" / "link.txt")
    entries = listDirectory(root, target(root, "empty"))
    assert names(entries) == ["..", "link.txt"]


def test_undecodable_names_are_skipped(root: Path):
    open(bytes(root / "empty") + b"/bad\xff", "wb").close()
    entries = listDirectory(root, target(root, "empty"))
    assert names(entries) == [".."]


def test_unreadable_directory(root: Path):
    gone = ResolvedTarget(root / "gone", TargetKind.Directory, "gone")
    with pytest.raises(NotFound):
        listDirectory(root, gone)


def test_link_path():
    assert linkPath("") == "/"
    assert linkPath("docs") == "/docs"
    assert linkPath("docs/a b.txt") == "/docs/a%20b.txt"
    assert linkPath("100%/#1?") == "/100%25/%231%3F"


def test_page_structure(root: Path):
    entries = listDirectory(root, target(root, "docs"))
    page = directoryPage("/docs", entries)
    anchors = list(page.find("a"))
    assert [_.attributes["href"] for _ in anchors] == [_.href for _ in entries]
    assert [_.attributes["class"] for _ in anchors] == ["content"] * len(entries)
    (header,) = page.find("pre")
    assert header.attributes["id"] == "header"
    assert header.children[0].value == "/docs"
    assert len(list(page.find("style"))) == 1


def test_render_directory(root: Path):
    html = renderDirectory(root, resolve(root, "/docs"), "/docs")
    assert html.startswith("<!DOCTYPE html>")
    assert html.count("<html") == 1
    assert PAGE_CSS in html
    assert '<pre id="header">/docs</pre>' in html
    assert '<a href="/docs/inner" class="content">' + FOLDER_ICON in html
    assert '<a href="/docs/a%20b.txt" class="content">' + FILE_ICON in html
    assert '<p class="text">a b.txt</p>' in html


def test_names_are_escaped(root: Path):
    (root / "empty" / "<b>&.txt").write_text("")
    html = renderDirectory(root, resolve(root, "/empty"), "/empty?<x>")
    assert "<b>" not in html
    assert '<p class="text">&lt;b&gt;&amp;.txt</p>' in html
    assert "/empty?&lt;x&gt;" in html


# EOF
