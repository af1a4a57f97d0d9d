"""Business logic controllers for PostStore."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .db import Database
from .errors import DraftLeakError, MalformedFrontMatterError
from .frontmatter import has_unclosed_fence, parse_post_file
from .models import Post
from .store import PostStore

logger = logging.getLogger(__name__)


@dataclass
class CheckReport:
    """Result of checking every document in a store."""

    checked: int = 0
    malformed: list[MalformedFrontMatterError] = field(default_factory=list)
    collisions: dict[str, list[Path]] = field(default_factory=dict)
    unclosed_fences: list[str] = field(default_factory=list)
    duplicate_titles: dict[str, list[str]] = field(default_factory=dict)
    unreadable: dict[str, OSError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the store is consumable. Duplicate titles are only a warning."""
        return not (self.malformed or self.collisions or self.unclosed_fences or self.unreadable)


@dataclass
class IndexResult:
    """Result of synchronising the post index with the store."""

    added: int
    updated: int
    removed: int
    unchanged: int = 0


def get_post(store: PostStore, slug: str) -> Post:
    """Get a post by slug.

    Raises:
        PostNotFoundError: If no post has that slug
    """
    return store.get(slug)


def list_posts(store: PostStore, include_drafts: bool = False) -> list[Post]:
    """List posts.

    Args:
        store: PostStore instance
        include_drafts: If True, list every post ordered by slug; otherwise
            list published posts only, newest first

    Returns:
        List of Post objects
    """
    if include_drafts:
        return list(store.list())
    return list(store.published())


def check_posts(store: PostStore) -> CheckReport:
    """Validate every document in the store without stopping at the first failure.

    Args:
        store: PostStore instance

    Returns:
        CheckReport with everything that was found
    """
    report = CheckReport()
    titles: dict[str, list[str]] = {}

    for slug, paths in sorted(store.claims().items()):
        if len(paths) > 1:
            report.collisions[slug] = paths
            continue

        report.checked += 1
        try:
            post = parse_post_file(paths[0], slug)
        except MalformedFrontMatterError as e:
            logger.debug("Malformed document: %s", e)
            report.malformed.append(e)
            continue
        except OSError as e:
            logger.debug("Unreadable document %s: %s", paths[0], e)
            report.unreadable[slug] = e
            continue

        if has_unclosed_fence(post.body):
            report.unclosed_fences.append(slug)
        titles.setdefault(post.title, []).append(slug)

    report.duplicate_titles = {
        title: slugs for title, slugs in titles.items() if len(slugs) > 1
    }
    return report


def index_posts(store: PostStore, db: Database) -> IndexResult:
    """Synchronise the post index with the store.

    New posts are inserted and posts whose document is gone are removed.
    An indexed post is rewritten only when its document changed.

    Args:
        store: PostStore instance
        db: Database instance

    Returns:
        IndexResult with counts of what changed

    Raises:
        DuplicateIdentifierError: If two documents resolve to the same slug
        MalformedFrontMatterError: If a document cannot be parsed
    """
    # Parse everything first so a bad document leaves the index untouched
    posts = list(store.list())
    indexed = db.get_indexed_slugs()
    seen = {post.slug for post in posts}

    stale = indexed - seen
    for slug in sorted(stale):
        db.remove_post(slug)

    added = updated = unchanged = 0
    for post in posts:
        if post.slug not in indexed:
            added += 1
        elif _same_post(db.get_post(post.slug), post):
            unchanged += 1
            continue
        else:
            updated += 1
        db.upsert_post(post)

    logger.info(
        "Indexed %d post(s): %d new, %d changed, %d removed",
        len(posts), added, updated, len(stale),
    )
    return IndexResult(added=added, updated=updated, removed=len(stale), unchanged=unchanged)


def _same_post(indexed: Optional[Post], post: Post) -> bool:
    if indexed is None:
        return False
    return (
        indexed.path == post.path
        and indexed.title == post.title
        and indexed.date.isoformat() == post.date.isoformat()
        and indexed.authors == post.authors
        and indexed.draft == post.draft
        and indexed.body == post.body
    )


def ensure_no_draft_leaks(leaks: list) -> None:
    """Fail if an audit found draft posts in a public listing.

    Raises:
        DraftLeakError: If leaks is not empty
    """
    if leaks:
        raise DraftLeakError(leaks)
