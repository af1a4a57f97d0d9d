"""Reading a published site's feed for PostStore audits."""

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import unquote, urljoin, urlparse

import feedparser
import requests
from bs4 import BeautifulSoup

from .store import slugify

logger = logging.getLogger(__name__)

FEED_TYPES = [
    "application/rss+xml",
    "application/atom+xml",
    "application/feed+json",
]

# Where Hugo, Jekyll, Eleventy, Ghost and WordPress put their feeds
FEED_PATHS = [
    "index.xml",
    "feed.xml",
    "rss.xml",
    "atom.xml",
    "feed/",
    "rss/",
]

PAGE_SUFFIXES = (".html", ".htm")


@dataclass
class ListedEntry:
    """A post as it appears in a site's public listing (feed or index page).

    ``slug`` is the entry's URL path below the site root, slugified segment by
    segment the way content paths are, or ``""`` when the URL points outside
    the site or at the site root itself. Left out, it is taken below the
    root of the URL's domain.
    """

    title: str
    url: str
    slug: Optional[str] = None

    def __post_init__(self):
        if self.slug is None:
            self.slug = site_slug(self.url, urljoin(self.url, "/"))


def site_slug(url: str, site_url: str) -> str:
    """Slug of a published URL relative to the site it was listed on.

    ``index.html`` resolves to its directory and ``.html`` pages drop the
    suffix, mirroring how page bundles and plain documents are published.
    """
    parsed = urlparse(url)
    site = urlparse(site_url)
    if parsed.netloc and site.netloc and parsed.netloc.lower() != site.netloc.lower():
        return ""

    parts = [part for part in PurePosixPath(unquote(parsed.path)).parts if part != "/"]
    if parts:
        page = PurePosixPath(parts[-1])
        if page.suffix.lower() in PAGE_SUFFIXES:
            parts = parts[:-1] if page.stem.lower() == "index" else parts[:-1] + [page.stem]

    base = [part for part in PurePosixPath(unquote(site.path or "/")).parts if part != "/"]
    if parts[: len(base)] != base:
        return ""

    segments = (slugify(part) for part in parts[len(base):])
    return "/".join(segment for segment in segments if segment)


def parse_feed(feed_url: str, site_url: Optional[str] = None, timeout: int = 30) -> list[ListedEntry]:
    """Fetch a site's RSS/Atom feed and return the posts it lists.

    Args:
        feed_url: URL of the RSS/Atom feed
        site_url: Root URL of the site, slugs are taken relative to it
            (defaults to the feed's directory)
        timeout: Request timeout in seconds

    Returns:
        List of ListedEntry objects, one per listed post

    Raises:
        FeedParseError: If the feed cannot be fetched or parsed
    """
    try:
        response = requests.get(feed_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedParseError(f"Failed to fetch feed: {e}") from e

    feed = feedparser.parse(response.content)

    if feed.bozo and not feed.entries:
        raise FeedParseError(f"Failed to parse feed: {feed.bozo_exception}")

    root = site_url or urljoin(feed_url, ".")
    entries = []
    for entry in feed.entries:
        title = entry.get("title", "").strip()
        link = _entry_link(entry)
        if not title or not link:
            continue

        url = urljoin(feed_url, link)
        entries.append(ListedEntry(title=title, url=url, slug=site_slug(url, root)))

    logger.debug("Feed %s lists %d posts", feed_url, len(entries))
    return entries


def discover_feed_url(site_url: str, timeout: int = 30) -> Optional[str]:
    """Find the feed a published site advertises.

    Reads the <link rel="alternate"> tags of the home page, then tries the
    paths static site generators publish their feed at.

    Returns:
        Feed URL if found, None otherwise
    """
    try:
        response = requests.get(site_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.debug("Could not fetch %s for feed discovery: %s", site_url, e)
        return None

    soup = BeautifulSoup(response.content, "html.parser")

    for feed_type in FEED_TYPES:
        link = soup.find("link", rel="alternate", type=feed_type)
        if link and link.get("href"):
            return urljoin(site_url, link["href"])

    base = site_url if site_url.endswith("/") else site_url + "/"
    for path in FEED_PATHS:
        feed_url = urljoin(base, path)
        if _is_valid_feed(feed_url, timeout):
            return feed_url

    return None


def _entry_link(entry: dict) -> str:
    """Permalink of a feed entry.

    Falls back to the entry id, which Hugo and Jekyll set to the permalink.
    """
    link = entry.get("link", "").strip()
    if link:
        return link
    guid = entry.get("id", "").strip()
    if urlparse(guid).scheme in ("http", "https"):
        return guid
    return ""


def _is_valid_feed(url: str, timeout: int = 10) -> bool:
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException:
        return False
    if response.status_code != 200:
        return False

    feed = feedparser.parse(response.content)
    return bool(feed.entries or feed.feed.get("title"))


class FeedParseError(Exception):
    """Raised when a feed cannot be fetched or parsed."""

    pass
