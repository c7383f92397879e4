"""
Pydantic schemas for the Blog API.

Request schemas keep every field optional so the routes can check which keys
the client actually sent (model_fields_set) and report them in order.
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class Author(BaseModel):
    """Author object. Anything beyond the two names is kept as-is."""
    model_config = ConfigDict(extra="allow")

    firstName: Any = None
    lastName: Any = None


class BlogPostCreate(BaseModel):
    """Schema for creating a blog post. Presence is checked by the route."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[Author] = None


class BlogPostUpdate(BaseModel):
    """Schema for updating a blog post. `id` must repeat the path id."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[Author] = None


class BlogPostResponse(BaseModel):
    """Public view of a blog post."""
    id: str
    title: str
    content: str
    author: str
    created: datetime


class BlogPostList(BaseModel):
    blogposts: list[BlogPostResponse]
