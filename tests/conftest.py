"""Shared fixtures for PostStore tests."""

import tempfile
from pathlib import Path

import pytest

from samples import (
    INJECTABLE_TASK_POST,
    MEMORY_POST,
    PORT_POST,
    SCREWS_POST,
    SCREWS_POST_EDITED,
    SECTION_PAGE,
    write_doc,
)


@pytest.fixture
def content_dir():
    """Create a temporary content tree with a small blog in it."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "content"
        write_doc(root, "posts/port-already-in-use.md", PORT_POST)
        write_doc(root, "posts/injectable-task.md", INJECTABLE_TASK_POST)
        write_doc(root, "posts/3d-printed-screws.md", SCREWS_POST)
        write_doc(root, "posts/3d-printed-screws-edit/index.md", SCREWS_POST_EDITED)
        write_doc(root, "posts/javascript-memory/index.md", MEMORY_POST)
        write_doc(root, "posts/_index.md", SECTION_PAGE)
        (root / "posts/javascript-memory/cover.png").write_bytes(b"\x89PNG\r\n")
        yield root


@pytest.fixture
def empty_content_dir():
    """Create an empty temporary content tree."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "content"
        root.mkdir()
        yield root
