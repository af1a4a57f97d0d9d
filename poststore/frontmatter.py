"""Front matter parsing for PostStore."""

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from .errors import MalformedFrontMatterError
from .models import CodeBlock, Post

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("title", "date", "authors")
KNOWN_KEYS = REQUIRED_KEYS + ("draft",)

FENCE_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")


def parse_post(text: str, path: Path, slug: str) -> Post:
    """Parse a Markdown document into a Post.

    Args:
        text: Full document text, front matter included
        path: Path the document was read from (used in error messages)
        slug: Identifier assigned to the post by the store

    Returns:
        The parsed Post

    Raises:
        MalformedFrontMatterError: If the front matter is missing, not valid
            YAML, or a required key is missing or has the wrong type
    """
    text = text.lstrip("\ufeff")
    handler = YAMLHandler()
    if not handler.detect(text):
        raise MalformedFrontMatterError(path, "document has no front matter block")

    try:
        document = frontmatter.loads(text, handler=handler)
    except (yaml.YAMLError, ValueError) as e:
        raise MalformedFrontMatterError(path, f"front matter is not valid YAML: {e}") from e

    metadata = dict(document.metadata)
    for key in REQUIRED_KEYS:
        if key not in metadata:
            raise MalformedFrontMatterError(path, f"missing required key '{key}'")

    post = Post(
        slug=slug,
        path=path,
        title=_parse_title(path, metadata["title"]),
        date=_parse_date(path, metadata["date"]),
        authors=_parse_authors(path, metadata["authors"]),
        body=document.content,
        draft=_parse_draft(path, metadata),
        extra={k: v for k, v in metadata.items() if k not in KNOWN_KEYS},
    )
    logger.debug("Parsed %s as '%s' (draft=%s)", path, post.slug, post.draft)
    return post


def parse_post_file(path: Path, slug: str) -> Post:
    """Read a Markdown file and parse it into a Post.

    Raises:
        MalformedFrontMatterError: If the file is not valid UTF-8 or its
            front matter is invalid
        OSError: If the file cannot be read
    """
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedFrontMatterError(path, f"document is not valid UTF-8: {e}") from e
    return parse_post(text, path, slug)


def _parse_title(path: Path, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedFrontMatterError(path, "'title' must be a non-empty string")
    return value


def _parse_date(path: Path, value: Any) -> datetime:
    """Accept a YAML timestamp or an ISO-8601 string carrying a UTC offset."""
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(raw)
        except ValueError as e:
            raise MalformedFrontMatterError(path, f"'date' is not a valid timestamp: {value!r}") from e

    if not isinstance(value, datetime):
        if isinstance(value, date):
            raise MalformedFrontMatterError(path, "'date' must include a time and a UTC offset")
        raise MalformedFrontMatterError(path, f"'date' is not a valid timestamp: {value!r}")

    if value.tzinfo is None or value.utcoffset() is None:
        raise MalformedFrontMatterError(path, "'date' must carry an explicit UTC offset")
    return value


def _parse_authors(path: Path, value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise MalformedFrontMatterError(path, "'authors' must be a non-empty list")
    for author in value:
        if not isinstance(author, str) or not author.strip():
            raise MalformedFrontMatterError(path, "'authors' entries must be non-empty strings")
    return tuple(value)


def _parse_draft(path: Path, metadata: dict[str, Any]) -> bool:
    # Only a missing key means published; `draft:` with no value is malformed
    if "draft" not in metadata:
        return False
    value = metadata["draft"]
    if not isinstance(value, bool):
        raise MalformedFrontMatterError(path, "'draft' must be true or false")
    return value


def fenced_code_blocks(body: str) -> list[CodeBlock]:
    """Extract fenced code blocks from a Markdown body.

    A fence is three or more backticks or tildes; the first word of the info
    string is taken as the language hint. An unclosed fence runs to the end
    of the body, as CommonMark renders it.

    Args:
        body: Markdown text

    Returns:
        List of CodeBlock objects in document order
    """
    blocks = []
    for language, lines, _closed in _scan_fences(body):
        blocks.append(CodeBlock(language=language, code="\n".join(lines)))
    return blocks


def has_unclosed_fence(body: str) -> bool:
    """Check whether the body ends inside a fenced code block."""
    return any(not closed for _language, _lines, closed in _scan_fences(body))


def _scan_fences(body: str) -> list[tuple[Optional[str], list[str], bool]]:
    found = []
    fence: Optional[str] = None
    language: Optional[str] = None
    lines: list[str] = []

    for line in body.splitlines():
        match = FENCE_RE.match(line)
        if fence is None:
            if match is None:
                continue
            info = match.group("info").strip()
            # Backtick fences may not carry backticks in their info string
            if match.group("fence")[0] == "`" and "`" in info:
                continue
            fence = match.group("fence")
            language = info.split()[0] if info else None
            lines = []
        elif (
            match is not None
            and match.group("fence")[0] == fence[0]
            and len(match.group("fence")) >= len(fence)
            and not match.group("info").strip()
        ):
            found.append((language, lines, True))
            fence = None
        else:
            lines.append(line)

    if fence is not None:
        found.append((language, lines, False))
    return found
