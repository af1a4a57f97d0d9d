"""Exceptions raised by PostStore."""

from pathlib import Path
from typing import Iterable


class PostStoreError(Exception):
    """Base class for all PostStore errors."""


class MalformedFrontMatterError(PostStoreError):
    """Raised when a document's front matter is missing or invalid."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class DuplicateIdentifierError(PostStoreError):
    """Raised when two documents resolve to the same slug."""

    def __init__(self, slug: str, paths: Iterable[Path]):
        self.slug = slug
        self.paths = sorted(paths)
        joined = ", ".join(str(p) for p in self.paths)
        super().__init__(f"Slug '{slug}' is claimed by more than one document: {joined}")


class PostNotFoundError(PostStoreError):
    """Raised when a post is not found."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Post '{slug}' not found")


class DraftLeakError(PostStoreError):
    """Raised when a draft post shows up in a public listing."""

    def __init__(self, leaks: list):
        self.leaks = leaks
        slugs = ", ".join(leak.slug for leak in leaks)
        super().__init__(f"{len(leaks)} draft post(s) found in public listing: {slugs}")
