"""Data models for PostStore."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class Post:
    """Represents a single Markdown post."""

    slug: str
    path: Path
    title: str
    date: datetime
    authors: tuple[str, ...]
    body: str
    draft: bool = False
    extra: dict[str, Any] = field(default_factory=dict, compare=True, hash=False)


@dataclass(frozen=True)
class CodeBlock:
    """Represents a fenced code block found in a post body."""

    language: Optional[str]
    code: str
