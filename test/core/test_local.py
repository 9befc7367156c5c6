"""
Test local folder of posts.
"""

import logging
from pathlib import Path

from pytest import LogCaptureFixture

from blog_cli import Document, LocalStore, sort_by_access_level


def test_list_files(local: LocalStore, blogs_dir: Path, write_post):
    # folder is created if needed
    assert not blogs_dir.exists()
    assert local.list_files() == []
    assert blogs_dir.is_dir()

    write_post("post-a.md")
    write_post("post-b.md")
    write_post("_draft.md")
    write_post(".hidden.md")
    write_post("README.md")
    (blogs_dir / "notes.txt").write_text("not a post")
    (blogs_dir / "folder.md").mkdir()
    (blogs_dir / "nested").mkdir()
    (blogs_dir / "nested" / "post-c.md").write_text("---\n---\n")

    names = sorted(p.name for p in local.list_files())
    assert names == ["post-a.md", "post-b.md"]


def test_load(local: LocalStore, write_post):
    path = write_post("from-filename.md", slug=None)
    assert local.load(path).slug == "from-filename"

    path = write_post("other.md", slug="from-front-matter")
    assert local.load(path).slug == "from-front-matter"


def test_load_all(
    local: LocalStore, write_post, caplog: LogCaptureFixture
):
    write_post("good.md")
    write_post("bad.md", status="bogus")

    with caplog.at_level(logging.WARNING):
        documents = local.load_all()

    assert [d.document.slug for d in documents] == ["good"]
    assert documents[0].path.name == "good.md"
    assert "Skipping 'bad.md'" in caplog.text


def test_write_delete(local: LocalStore, blogs_dir: Path):
    document = Document(slug="written", title="Written", body="Body")

    assert not local.exists("written")

    path = local.write(document)
    assert path == blogs_dir / "written.md"
    assert local.exists("written")
    assert local.exists("written.md")
    assert local.load(path) == document

    assert local.delete("written.md") is True
    assert not path.exists()
    assert local.delete("written") is False


def test_path_for(local: LocalStore, blogs_dir: Path):
    assert local.path_for("a") == blogs_dir / "a.md"
    assert local.path_for("a.md") == blogs_dir / "a.md"


def test_sort_by_access_level():
    documents = [
        Document(slug="admin-post", access_level="admin"),
        Document(slug="public-1"),
        Document(slug="reader-post", access_level="reader"),
        Document(slug="public-2"),
    ]

    assert [d.slug for d in sort_by_access_level(documents)] == [
        "public-1",
        "public-2",
        "reader-post",
        "admin-post",
    ]
