"""Post store for PostStore."""

import logging
import re
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional
from unicodedata import normalize

from .errors import DuplicateIdentifierError, PostNotFoundError
from .frontmatter import parse_post_file
from .models import Post

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_DIR = Path("content")
MARKDOWN_SUFFIXES = {".md", ".markdown"}

_SEGMENT_RE = re.compile(r"[^a-z0-9]+")


def slugify(segment: str) -> str:
    """Turn one path segment into a URL-safe slug segment.

    Accented letters lose their accents and other non-ASCII characters are
    dropped, so slugs stay valid in URLs without percent-encoding.
    """
    ascii_segment = normalize("NFKD", segment).encode("ascii", "ignore").decode("ascii")
    return _SEGMENT_RE.sub("-", ascii_segment.lower()).strip("-")


def slug_for_path(relative_path: Path) -> Optional[str]:
    """Derive a post's slug from its path relative to the content root.

    Page bundles (``<dir>/index.md``) take the slug of their directory.

    Args:
        relative_path: Document path relative to the content root

    Returns:
        Slug string, or None if the path is not a post (section pages,
        hidden files, non-Markdown files, the site's root index)
    """
    if relative_path.suffix.lower() not in MARKDOWN_SUFFIXES:
        return None
    if any(part.startswith(".") for part in relative_path.parts):
        return None
    if relative_path.stem.lower() == "_index":
        return None

    parts = list(relative_path.parent.parts)
    if relative_path.stem.lower() != "index":
        parts.append(relative_path.stem)

    segments = [slugify(part) for part in parts]
    if not segments or not all(segments):
        return None
    return "/".join(segments)


class PostListing:
    """Lazy, restartable sequence of posts.

    Every iteration re-reads the content tree, so edits made between two
    passes are picked up.
    """

    def __init__(self, source: Callable[[], Iterable[Post]]):
        self._source = source

    def __iter__(self) -> Iterator[Post]:
        return iter(self._source())


class PostStore:
    """Read-only view of the Markdown posts under a content directory."""

    def __init__(self, root: Optional[Path] = None):
        """Initialize the store.

        Args:
            root: Content directory. Defaults to ./content
        """
        self.root = Path(root) if root is not None else DEFAULT_CONTENT_DIR

    def paths(self) -> dict[str, Path]:
        """Map every slug under the root to its document path.

        Raises:
            DuplicateIdentifierError: If two documents resolve to the same slug
        """
        claims = self.claims()
        for slug, paths in claims.items():
            if len(paths) > 1:
                raise DuplicateIdentifierError(slug, paths)
        return {slug: paths[0] for slug, paths in claims.items()}

    def claims(self) -> dict[str, list[Path]]:
        """Map every slug to all the documents claiming it, collisions included."""
        claims: dict[str, list[Path]] = {}
        if not self.root.is_dir():
            logger.warning("Content directory %s does not exist", self.root)
            return claims

        for path in sorted(self.root.rglob("*")):
            if not path.is_file():
                continue
            slug = slug_for_path(path.relative_to(self.root))
            if slug is None:
                continue
            claims.setdefault(slug, []).append(path)
        return claims

    def slugs(self) -> list[str]:
        """List every slug in the store, sorted."""
        return sorted(self.paths())

    def get(self, slug: str) -> Post:
        """Get a post by slug.

        Raises:
            PostNotFoundError: If no post has that slug
            DuplicateIdentifierError: If the slug is claimed by several documents
            MalformedFrontMatterError: If the document cannot be parsed
        """
        claims = self.claims()
        paths = claims.get(slug)
        if not paths:
            raise PostNotFoundError(slug)
        if len(paths) > 1:
            raise DuplicateIdentifierError(slug, paths)
        return parse_post_file(paths[0], slug)

    def published(self) -> PostListing:
        """Non-draft posts, newest first."""

        def source() -> list[Post]:
            posts = [post for post in self._read_all() if not self.is_draft(post)]
            return sorted(posts, key=lambda post: post.date, reverse=True)

        return PostListing(source)

    def find_by_title(self, title: str) -> list[Post]:
        """Find every post carrying the given title, newest first."""
        matches = [post for post in self._read_all() if post.title == title]
        return sorted(matches, key=lambda post: post.date, reverse=True)

    @staticmethod
    def is_draft(post: Post) -> bool:
        """Whether the post is a draft and must stay out of public listings."""
        return post.draft

    def _read_all(self) -> Iterator[Post]:
        for slug, path in sorted(self.paths().items()):
            yield parse_post_file(path, slug)

    # Keep last: shadows the builtin `list` for the rest of the class body
    def list(self) -> PostListing:
        """All posts, drafts included, ordered by slug."""
        return PostListing(self._read_all)
