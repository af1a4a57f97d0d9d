"""Tests for the post store."""

from pathlib import Path

import pytest

from poststore.errors import (
    DuplicateIdentifierError,
    MalformedFrontMatterError,
    PostNotFoundError,
)
from poststore.store import PostListing, PostStore, slug_for_path, slugify

from samples import PORT_POST, SCREWS_POST, write_doc

ALL_SLUGS = [
    "posts/3d-printed-screws",
    "posts/3d-printed-screws-edit",
    "posts/injectable-task",
    "posts/javascript-memory",
    "posts/port-already-in-use",
]


class TestSlugForPath:
    """Tests for slug derivation."""

    @pytest.mark.parametrize(
        "relative, expected",
        [
            ("posts/port-already-in-use.md", "posts/port-already-in-use"),
            ("posts/javascript-memory/index.md", "posts/javascript-memory"),
            ("posts/Native Tests For iOS.md", "posts/native-tests-for-ios"),
            ("posts/3D printed screws.markdown", "posts/3d-printed-screws"),
            ("about.md", "about"),
            ("posts/Café Notes/index.md", "posts/cafe-notes"),
            ("posts/über_uns.md", "posts/uber-uns"),
        ],
    )
    def test_posts(self, relative: str, expected: str):
        """Test slugs of documents that are posts."""
        assert slug_for_path(Path(relative)) == expected

    @pytest.mark.parametrize(
        "relative",
        [
            "posts/_index.md",
            "index.md",
            "posts/.hidden.md",
            ".drafts/secret.md",
            "posts/javascript-memory/cover.png",
            "posts/notes.txt",
            "posts/---.md",
        ],
    )
    def test_not_posts(self, relative: str):
        """Test that section pages, hidden and non-Markdown files are skipped."""
        assert slug_for_path(Path(relative)) is None

    def test_slugify(self):
        """Test slugifying one path segment."""
        assert slugify("  Hello, World!  ") == "hello-world"
        assert slugify("already-a-slug") == "already-a-slug"

    @pytest.mark.parametrize(
        "segment, expected",
        [
            ("Zürich", "zurich"),
            ("naïve café", "naive-cafe"),
            ("Mikołaj", "mikoaj"),
            ("snake_case", "snake-case"),
            ("ｆｕｌｌｗｉｄｔｈ", "fullwidth"),
        ],
    )
    def test_slugify_is_ascii(self, segment: str, expected: str):
        """Test that slug segments are plain ASCII."""
        slug = slugify(segment)

        assert slug == expected
        assert slug.isascii()


class TestPostStoreList:
    """Tests for listing posts."""

    def test_list_all_posts(self, content_dir: Path):
        """Test that list returns every post, drafts included, ordered by slug."""
        store = PostStore(content_dir)

        posts = list(store.list())

        assert [post.slug for post in posts] == ALL_SLUGS

    def test_list_is_lazy(self, content_dir: Path):
        """Test that nothing is read until the listing is iterated."""
        store = PostStore(content_dir)
        listing = store.list()

        write_doc(content_dir, "posts/late.md", SCREWS_POST.replace("3D printed screws", "Late"))

        assert isinstance(listing, PostListing)
        assert "posts/late" in [post.slug for post in listing]

    def test_list_is_restartable(self, content_dir: Path):
        """Test that a listing can be iterated more than once."""
        listing = PostStore(content_dir).list()

        first = list(listing)
        second = list(listing)

        assert first == second
        assert len(first) == len(ALL_SLUGS)

    def test_missing_root(self, tmp_path: Path):
        """Test that a missing content directory lists nothing."""
        store = PostStore(tmp_path / "nope")

        assert list(store.list()) == []

    def test_default_root(self):
        """Test the default content directory."""
        assert PostStore().root == Path("content")

    def test_slugs(self, content_dir: Path):
        """Test listing slugs without parsing."""
        assert PostStore(content_dir).slugs() == ALL_SLUGS

    def test_malformed_document_raises(self, content_dir: Path):
        """Test that iterating over a malformed document raises."""
        write_doc(content_dir, "posts/broken.md", "no front matter here")

        with pytest.raises(MalformedFrontMatterError):
            list(PostStore(content_dir).list())


class TestPostStoreGet:
    """Tests for getting a post by slug."""

    def test_get(self, content_dir: Path):
        """Test getting an existing post."""
        post = PostStore(content_dir).get("posts/port-already-in-use")

        assert post.title == "Port is already in use issue on the macOS"
        assert post.path == content_dir / "posts/port-already-in-use.md"

    def test_get_page_bundle(self, content_dir: Path):
        """Test getting a post stored as a page bundle."""
        post = PostStore(content_dir).get("posts/javascript-memory")

        assert post.title == "JavaScript memory management"

    def test_get_not_found(self, content_dir: Path):
        """Test that an unknown slug raises PostNotFoundError."""
        with pytest.raises(PostNotFoundError) as exc_info:
            PostStore(content_dir).get("posts/nope")

        assert exc_info.value.slug == "posts/nope"

    def test_get_malformed(self, content_dir: Path):
        """Test that getting a malformed post raises."""
        write_doc(content_dir, "posts/broken.md", "---\ntitle: Broken\n---\n")

        with pytest.raises(MalformedFrontMatterError) as exc_info:
            PostStore(content_dir).get("posts/broken")

        assert exc_info.value.reason == "missing required key 'date'"


class TestDrafts:
    """Tests for draft handling."""

    def test_is_draft(self, content_dir: Path):
        """Test the draft flag."""
        store = PostStore(content_dir)

        assert store.is_draft(store.get("posts/injectable-task")) is True
        assert store.is_draft(store.get("posts/port-already-in-use")) is False

    def test_published_excludes_drafts(self, content_dir: Path):
        """Test that the draft post never appears in the published listing."""
        store = PostStore(content_dir)

        published = list(store.published())

        assert "posts/injectable-task" not in [post.slug for post in published]
        assert all(not post.draft for post in published)

    def test_published_newest_first(self, content_dir: Path):
        """Test that published posts are in reverse-chronological order."""
        published = list(PostStore(content_dir).published())

        assert [post.slug for post in published] == [
            "posts/javascript-memory",
            "posts/port-already-in-use",
            "posts/3d-printed-screws-edit",
            "posts/3d-printed-screws",
        ]

    def test_published_is_restartable(self, content_dir: Path):
        """Test that the published listing can be iterated twice."""
        listing = PostStore(content_dir).published()

        assert list(listing) == list(listing)


class TestDuplicates:
    """Tests for duplicate titles and identifiers."""

    def test_duplicate_titles_disambiguated_by_path(self, content_dir: Path):
        """Test that two posts with the same title are both kept."""
        store = PostStore(content_dir)

        matches = store.find_by_title("3D printed screws")

        assert [post.slug for post in matches] == [
            "posts/3d-printed-screws-edit",
            "posts/3d-printed-screws",
        ]
        assert "EDIT" in matches[0].body
        assert "EDIT" not in matches[1].body

    def test_find_by_title_no_match(self, content_dir: Path):
        """Test looking up a title nobody uses."""
        assert PostStore(content_dir).find_by_title("Nothing") == []

    def test_bundle_and_file_collide(self, content_dir: Path):
        """Test that foo.md and foo/index.md claiming one slug raise."""
        write_doc(content_dir, "posts/port-already-in-use/index.md", PORT_POST)
        store = PostStore(content_dir)

        with pytest.raises(DuplicateIdentifierError) as exc_info:
            list(store.list())

        assert exc_info.value.slug == "posts/port-already-in-use"
        assert set(exc_info.value.paths) == {
            content_dir / "posts/port-already-in-use.md",
            content_dir / "posts/port-already-in-use/index.md",
        }

    def test_slugified_names_collide(self, empty_content_dir: Path):
        """Test that file names differing only in case and spacing collide."""
        write_doc(empty_content_dir, "Foo Bar.md", PORT_POST)
        write_doc(empty_content_dir, "foo-bar.md", SCREWS_POST)
        store = PostStore(empty_content_dir)

        with pytest.raises(DuplicateIdentifierError):
            store.get("foo-bar")
        with pytest.raises(DuplicateIdentifierError):
            store.slugs()

    def test_claims_report_collisions(self, empty_content_dir: Path):
        """Test that claims lists every document behind a slug."""
        write_doc(empty_content_dir, "Foo Bar.md", PORT_POST)
        write_doc(empty_content_dir, "foo-bar.md", SCREWS_POST)

        claims = PostStore(empty_content_dir).claims()

        assert list(claims) == ["foo-bar"]
        assert len(claims["foo-bar"]) == 2
