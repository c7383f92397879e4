"""
Blog Posts API

CRUD endpoints for blog posts stored in the document store. Responses only
ever carry the public view produced by BlogPost.serialize().
"""
import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession

from apps.blog.config import PUBLIC_DIR
from apps.blog.repository import BlogPostRepository, UPDATEABLE_FIELDS
from apps.blog.schemas import (
    BlogPostCreate,
    BlogPostUpdate,
    BlogPostResponse,
    BlogPostList,
)
from apps.shared.cors import setup_cors
from apps.shared.database import DocumentStore, get_session
from apps.shared.errors import setup_error_handlers

logger = logging.getLogger(__name__)

# Checked in this order; the first missing one is reported
REQUIRED_FIELDS = ("title", "content", "author")

router = APIRouter(prefix="/blog-posts", tags=["blog-posts"])


@router.get("", response_model=BlogPostList)
async def list_blog_posts(session: AsyncSession = Depends(get_session)):
    """Up to 10 blog posts, in the store's natural order."""
    posts = await BlogPostRepository(session).find()
    return {"blogposts": [post.serialize() for post in posts]}


@router.get("/{post_id}", response_model=BlogPostResponse)
async def get_blog_post(post_id: str, session: AsyncSession = Depends(get_session)):
    """
    Get a single blog post by id.
    A missing id is reported as a generic 500, same as any store failure.
    """
    post = await BlogPostRepository(session).find_by_id(post_id)
    return post.serialize()


@router.post(
    "",
    response_model=BlogPostResponse,
    status_code=201,
    responses={400: {"description": "Missing field", "content": {"text/plain": {}}}},
)
async def create_blog_post(
    post_data: Optional[BlogPostCreate] = None,
    session: AsyncSession = Depends(get_session),
):
    """Create a blog post from title, content and author. Nothing else is stored."""
    sent = post_data.model_fields_set if post_data is not None else set()
    for field in REQUIRED_FIELDS:
        if field not in sent:
            message = f"Missing `{field}` in request body"
            logger.warning(message)
            return PlainTextResponse(message, status_code=400)

    author = post_data.author.model_dump(exclude_unset=True) if post_data.author is not None else None
    post = await BlogPostRepository(session).create(
        title=post_data.title,
        content=post_data.content,
        author=author,
    )
    logger.info(f"Created blog post {post.id}")
    return post.serialize()


@router.put(
    "/{post_id}",
    status_code=204,
    responses={400: {"description": "Path id and body id do not match"}},
)
async def update_blog_post(
    post_id: str,
    post_data: Optional[BlogPostUpdate] = None,
    session: AsyncSession = Depends(get_session),
):
    """
    Partially update a blog post.
    The body must repeat the path id; only title, content and author are applied.
    """
    body_id = post_data.id if post_data is not None else None
    if not (post_id and body_id and post_id == body_id):
        message = (
            f"Request path id ({post_id}) and request body id "
            f"({body_id}) must match"
        )
        logger.warning(message)
        return JSONResponse(status_code=400, content={"message": message})

    changes = post_data.model_dump(include=set(UPDATEABLE_FIELDS), exclude_unset=True)
    await BlogPostRepository(session).update_by_id(post_id, changes)
    return Response(status_code=204)


@router.delete("/{post_id}", status_code=204)
async def delete_blog_post(post_id: str, session: AsyncSession = Depends(get_session)):
    """Delete a blog post. Deleting an unknown id is not an error."""
    await BlogPostRepository(session).delete_by_id(post_id)
    return Response(status_code=204)


def create_app(store: Optional[DocumentStore] = None, public_dir: str = PUBLIC_DIR) -> FastAPI:
    """
    Build the blog service around a document store.

    A store that is already connected is left to its owner; otherwise the
    app connects it on startup and disconnects it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = app.state.store
        owns_connection = not store.connected
        if owns_connection:
            await store.connect()
        try:
            yield
        finally:
            if owns_connection:
                await store.disconnect()

    app = FastAPI(
        title="Blog Service",
        version="1.0.0",
        description="Blog posts backed by a document store",
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else DocumentStore()

    setup_cors(app)
    setup_error_handlers(app)

    @app.get("/health")
    async def health():
        """Health check endpoint - returns service status"""
        db_connected = await app.state.store.check_connection()
        return {
            "status": "ok" if db_connected else "degraded",
            "service": "blog",
            "database": "connected" if db_connected else "disconnected",
        }

    app.include_router(router)

    # Mounted last so the API routes win
    if os.path.isdir(public_dir):
        app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")

    return app


app = create_app()
