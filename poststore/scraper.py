"""Scraping a published site's index page for PostStore audits."""

import logging
from typing import Iterator, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Tag

from .rss import ListedEntry, site_slug

logger = logging.getLogger(__name__)

HEADINGS = ["h1", "h2", "h3", "h4"]


def scrape_listing(site_url: str, selector: str, timeout: int = 30) -> list[ListedEntry]:
    """Scrape a site's index page for the posts it links to.

    Each element matched by ``selector`` is a post card: an <a> tag or an
    element holding one. The first link in a card that stays on the site is
    the post's link. Links to other sites and back to the home page are not
    posts and are skipped, and a post linked from several cards is listed
    once.

    Args:
        site_url: URL of the site's index page
        selector: CSS selector matching the post cards
        timeout: Request timeout in seconds

    Returns:
        List of ListedEntry objects in page order

    Raises:
        ScrapeError: If the page cannot be fetched
    """
    try:
        response = requests.get(site_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ScrapeError(f"Failed to fetch page: {e}") from e

    soup = BeautifulSoup(response.content, "html.parser")

    entries: list[ListedEntry] = []
    listed: set[str] = set()

    for card in soup.select(selector):
        for link in _links(card):
            url = urljoin(site_url, link["href"].strip())
            slug = site_slug(url, site_url)
            if not slug:
                continue
            if slug not in listed:
                listed.add(slug)
                entries.append(ListedEntry(title=card_title(link, card) or "", url=url, slug=slug))
            break

    logger.debug("Index page %s links %d posts", site_url, len(entries))
    return entries


def _links(card: Tag) -> Iterator[Tag]:
    if card.name == "a":
        if card.get("href", "").strip():
            yield card
        return
    for link in card.find_all("a", href=True):
        if link["href"].strip():
            yield link


def card_title(link: Tag, card: Tag) -> Optional[str]:
    """Title of the post a card links to.

    Uses the link text, then its title attribute, then a heading in the card,
    then the card's own text.
    """
    for title in (link.get_text(" ", strip=True), link.get("title", "").strip()):
        if title:
            return title

    if card is link:
        return None

    heading = card.find(HEADINGS)
    if heading:
        title = heading.get_text(" ", strip=True)
        if title:
            return title

    return card.get_text(" ", strip=True) or None


class ScrapeError(Exception):
    """Raised when a page cannot be fetched or scraped."""

    pass
