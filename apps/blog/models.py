"""
Blog database models.

A blog post keeps its author as a free-form JSON object and exposes a
redacted public view through serialize().
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, String, Text, JSON, DateTime
from sqlalchemy.orm import validates

from apps.shared.database import Base


def generate_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_author(author: Optional[dict]) -> str:
    """Human readable "First Last" from an author object; missing parts are blank."""
    author = author or {}
    parts = [author.get("firstName"), author.get("lastName")]
    return " ".join("" if part is None else str(part) for part in parts).strip()


class BlogPost(Base):
    """
    Blog post record.

    - id: assigned by the store on insert, never updated
    - title, content: required text
    - author: {"firstName": ..., "lastName": ..., ...}
    - created: set on insert, never updated
    """
    __tablename__ = "blog_posts"

    id = Column(String(32), primary_key=True, default=generate_id)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    author = Column(JSON, nullable=False)
    created = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @validates("title", "content")
    def validate_text(self, key, value):
        if value is None or value == "":
            raise ValueError(f"Path `{key}` is required.")
        return value

    @validates("author")
    def validate_author(self, key, value):
        if value is None:
            raise ValueError("Path `author` is required.")
        return value

    @property
    def author_string(self) -> str:
        return format_author(self.author)

    def serialize(self) -> dict:
        """Public view for API responses. Never exposes the raw author object."""
        created = self.created
        # SQLite hands timestamps back without tzinfo; they are stored as UTC
        if created is not None and created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "author": self.author_string,
            "created": created,
        }
