"""
Blog post store operations.

The only five operations the HTTP layer needs from the document store. Every
failure surfaces as StoreError so callers never see driver exceptions.
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from apps.blog.models import BlogPost
from apps.shared.errors import RecordNotFound, StoreError

LIST_LIMIT = 10

# Fields a client may change after creation
UPDATEABLE_FIELDS = ("title", "content", "author")


class BlogPostNotFound(RecordNotFound):
    pass


class BlogPostRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _store_errors(self, operation: str):
        try:
            yield
        except StoreError:
            raise
        except (SQLAlchemyError, ValueError) as e:
            await self.session.rollback()
            raise StoreError(f"{operation}: {e}") from e

    async def find(self, limit: int = LIST_LIMIT) -> List[BlogPost]:
        """Up to `limit` posts in the store's natural order."""
        async with self._store_errors("find"):
            result = await self.session.execute(select(BlogPost).limit(limit))
            return list(result.scalars().all())

    async def find_by_id(self, post_id: str) -> BlogPost:
        async with self._store_errors("find_by_id"):
            post = await self.session.get(BlogPost, post_id)
        if post is None:
            raise BlogPostNotFound(f"No blog post with id {post_id!r}")
        return post

    async def create(self, title: Any, content: Any, author: Any) -> BlogPost:
        async with self._store_errors("create"):
            post = BlogPost(title=title, content=content, author=author)
            self.session.add(post)
            await self.session.commit()
            return post

    async def update_by_id(self, post_id: str, changes: Dict[str, Any]) -> None:
        """
        Set only the given whitelisted fields. Unknown ids match nothing and
        are not an error.
        """
        values = {k: v for k, v in changes.items() if k in UPDATEABLE_FIELDS}
        if not values:
            return
        async with self._store_errors("update_by_id"):
            await self.session.execute(
                update(BlogPost).where(BlogPost.id == post_id).values(**values)
            )
            await self.session.commit()

    async def delete_by_id(self, post_id: str) -> None:
        async with self._store_errors("delete_by_id"):
            await self.session.execute(delete(BlogPost).where(BlogPost.id == post_id))
            await self.session.commit()
