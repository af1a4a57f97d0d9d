"""SQLite post index for PostStore."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import Post

DEFAULT_DB_PATH = Path.home() / ".poststore" / "index.db"


class Database:
    """SQLite snapshot of a post store."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize database connection.

        Args:
            db_path: Path to the SQLite database file. Defaults to ~/.poststore/index.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_db(self) -> None:
        """Create tables if they don't exist."""
        conn = self._get_conn()
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS posts (
                slug TEXT PRIMARY KEY,
                path TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                date TIMESTAMP NOT NULL,
                draft BOOLEAN DEFAULT FALSE,
                body TEXT NOT NULL,
                indexed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS post_authors (
                slug TEXT NOT NULL,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                PRIMARY KEY (slug, position),
                FOREIGN KEY (slug) REFERENCES posts(slug)
            );
        """)
        conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def upsert_post(self, post: Post) -> None:
        """Insert a post, or replace the indexed copy with the same slug.

        Args:
            post: Post to index
        """
        conn = self._get_conn()
        conn.execute(
            """
            INSERT INTO posts (slug, path, title, date, draft, body, indexed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(slug) DO UPDATE SET
                path = excluded.path,
                title = excluded.title,
                date = excluded.date,
                draft = excluded.draft,
                body = excluded.body,
                indexed_at = excluded.indexed_at
            """,
            (
                post.slug,
                str(post.path),
                post.title,
                post.date.isoformat(),
                post.draft,
                post.body,
                datetime.now().isoformat(),
            ),
        )
        conn.execute("DELETE FROM post_authors WHERE slug = ?", (post.slug,))
        conn.executemany(
            "INSERT INTO post_authors (slug, position, name) VALUES (?, ?, ?)",
            [(post.slug, position, name) for position, name in enumerate(post.authors)],
        )
        conn.commit()

    def get_post(self, slug: str) -> Optional[Post]:
        """Get an indexed post by slug.

        Args:
            slug: The post's slug

        Returns:
            Post object or None if not found
        """
        conn = self._get_conn()
        row = conn.execute("SELECT * FROM posts WHERE slug = ?", (slug,)).fetchone()
        return self._row_to_post(row) if row else None

    def list_posts(self, published_only: bool = False) -> list[Post]:
        """List indexed posts, newest first.

        Args:
            published_only: If True, leave drafts out

        Returns:
            List of Post objects
        """
        conn = self._get_conn()
        query = "SELECT * FROM posts"
        if published_only:
            query += " WHERE draft = 0"
        rows = conn.execute(query).fetchall()
        posts = [self._row_to_post(row) for row in rows]
        # ISO text with mixed offsets does not sort chronologically
        return sorted(posts, key=lambda post: post.date, reverse=True)

    def get_indexed_slugs(self) -> set[str]:
        """Get the slugs of every indexed post."""
        conn = self._get_conn()
        rows = conn.execute("SELECT slug FROM posts").fetchall()
        return {row["slug"] for row in rows}

    def remove_post(self, slug: str) -> bool:
        """Remove a post and its authors from the index.

        Args:
            slug: The post's slug

        Returns:
            True if post was removed, False if not found
        """
        conn = self._get_conn()
        conn.execute("DELETE FROM post_authors WHERE slug = ?", (slug,))
        cursor = conn.execute("DELETE FROM posts WHERE slug = ?", (slug,))
        conn.commit()
        return cursor.rowcount > 0

    def _get_authors(self, slug: str) -> tuple[str, ...]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT name FROM post_authors WHERE slug = ? ORDER BY position",
            (slug,),
        ).fetchall()
        return tuple(row["name"] for row in rows)

    def _row_to_post(self, row: sqlite3.Row) -> Post:
        """Convert a database row to a Post object."""
        return Post(
            slug=row["slug"],
            path=Path(row["path"]),
            title=row["title"],
            date=datetime.fromisoformat(row["date"]),
            authors=self._get_authors(row["slug"]),
            body=row["body"],
            draft=bool(row["draft"]),
        )
