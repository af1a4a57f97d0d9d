"""Draft-leak auditing of a published site for PostStore."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import Post
from .rss import FeedParseError, ListedEntry, discover_feed_url, parse_feed
from .scraper import ScrapeError, scrape_listing
from .store import PostStore

logger = logging.getLogger(__name__)


@dataclass
class DraftLeak:
    """A draft post that shows up in a public listing."""

    slug: str
    title: str
    url: str
    matched_by: str  # "slug" or "title"


@dataclass
class AuditResult:
    """Result of auditing a published site."""

    site_url: str
    entries_found: int
    source: str  # "rss", "scraper", or "none"
    leaks: list[DraftLeak] = field(default_factory=list)
    error: Optional[str] = None


def shared_tail(entry_slug: str, post_slug: str) -> int:
    """Number of trailing slug segments two slugs have in common."""
    if not entry_slug:
        return 0
    count = 0
    for listed, stored in zip(reversed(entry_slug.split("/")), reversed(post_slug.split("/"))):
        if listed != stored:
            break
        count += 1
    return count


def posts_for_slug(posts: Iterable[Post], entry_slug: str) -> list[Post]:
    """Posts whose slug best matches a listed slug.

    A site may publish a post under a different prefix than its content path
    (``/2023/09/injectable-task/`` for ``posts/injectable-task``), so the
    posts sharing the longest run of trailing segments win.
    """
    best = 0
    matches: list[Post] = []
    for post in posts:
        length = shared_tail(entry_slug, post.slug)
        if length == 0 or length < best:
            continue
        if length > best:
            best = length
            matches = []
        matches.append(post)
    return matches


def find_draft_leaks(store: PostStore, entries: Iterable[ListedEntry]) -> list[DraftLeak]:
    """Match a public listing against the store's drafts.

    An entry belongs to the posts whose slugs best match its URL. It leaks a
    draft only when none of those posts is published. Entries whose URL
    matches no post at all fall back to their title, which must equal a
    draft's title (ignoring case) and no published post's title. Each draft
    is reported once.

    Args:
        store: PostStore instance
        entries: Entries of the public listing

    Returns:
        List of DraftLeak objects, one per leaked draft
    """
    posts = list(store.list())
    drafts = [post for post in posts if store.is_draft(post)]
    if not drafts:
        return []

    published_titles = {post.title.strip().casefold() for post in posts if not store.is_draft(post)}

    leaks: list[DraftLeak] = []
    reported: set[str] = set()

    for entry in entries:
        claimed = posts_for_slug(posts, entry.slug)
        if any(not store.is_draft(post) for post in claimed):
            continue

        matched_by = "slug"
        if not claimed:
            title = entry.title.strip().casefold()
            if not title or title in published_titles:
                continue
            claimed = [draft for draft in drafts if draft.title.strip().casefold() == title]
            matched_by = "title"

        for draft in claimed:
            if draft.slug in reported:
                continue
            logger.warning("Draft '%s' is listed publicly at %s", draft.slug, entry.url)
            reported.add(draft.slug)
            leaks.append(
                DraftLeak(
                    slug=draft.slug,
                    title=draft.title,
                    url=entry.url,
                    matched_by=matched_by,
                )
            )

    return leaks


def audit_site(
    store: PostStore,
    site_url: str,
    feed_url: Optional[str] = None,
    selector: Optional[str] = None,
) -> AuditResult:
    """Audit a published site for draft posts in its public listing.

    Tries the RSS/Atom feed first, then falls back to scraping the site's
    index page if a selector is configured.

    Args:
        store: PostStore instance
        site_url: URL of the published site
        feed_url: Feed URL (auto-discovered if not provided)
        selector: Optional CSS selector for scraping the index page

    Returns:
        AuditResult with every leak that was found
    """
    entries: list[ListedEntry] = []
    source = "none"
    error = None

    if not feed_url:
        feed_url = discover_feed_url(site_url)

    if feed_url:
        try:
            entries = parse_feed(feed_url, site_url)
            source = "rss"
        except FeedParseError as e:
            error = str(e)

    if not entries and selector:
        try:
            entries = scrape_listing(site_url, selector)
            source = "scraper"
            error = None
        except ScrapeError as e:
            if error:
                error = f"RSS: {error}; Scraper: {e}"
            else:
                error = str(e)

    leaks = find_draft_leaks(store, entries)

    return AuditResult(
        site_url=site_url,
        entries_found=len(entries),
        source=source,
        leaks=leaks,
        error=error,
    )
