"""Blog post endpoints: public reading, comments and likes, admin CRUD."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from inkwell.auth import current_admin_user
from inkwell.database import get_db
from inkwell.models.post import Post
from inkwell.models.user import User
from inkwell.schemas.post import (
    MAX_COMMENT_LENGTH,
    CommentCreate,
    CommentOut,
    PostCreate,
    PostStatus,
    PostUpdate,
)
from inkwell.services.blog_service import InvalidSortError, blog_service
from inkwell.services.storage import (
    ImageValidationError,
    StoredImage,
    discard_image,
    save_upload,
)
from inkwell.utils.responses import envelope
from inkwell.utils.text import normalize_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blogs", tags=["blogs"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def _read_payload(request: Request) -> tuple[dict, UploadFile | None]:
    """Return the body fields and an optional ``featuredImage`` upload.

    Admin forms post multipart data; API clients may send JSON.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data: dict = {k: v for k, v in form.items() if not isinstance(v, UploadFile)}
        tags = form.getlist("tags")
        if len(tags) > 1:
            data["tags"] = tags
        image = form.get("featuredImage")
        if isinstance(image, UploadFile):
            data.pop("featuredImage", None)
            return data, image if image.filename else None
        return data, None

    body = await request.body()
    if not body:
        return {}, None
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Malformed JSON body")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Request body must be an object")
    return data, None


async def _store_image(upload: UploadFile) -> StoredImage:
    try:
        return await save_upload(upload)
    except ImageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


def _get_post_or_404(db: Session, post_id: int, *, published_only: bool = False) -> Post:
    query = db.query(Post).filter(Post.id == post_id)
    if published_only:
        query = query.filter(Post.status == PostStatus.PUBLISHED.value)
    post = query.first()
    if not post:
        raise HTTPException(status_code=404, detail="Blog not found")
    return post


@router.get("")
async def list_blogs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    category: str | None = Query(None),
    search: str | None = Query(None),
    sort: str = Query("-publishedAt"),
    db: Session = Depends(get_db),
):
    """Published posts, filtered, sorted and paginated."""
    try:
        posts, pagination = blog_service.list_posts(
            db,
            page=page,
            limit=limit,
            category=category,
            search=search,
            status=PostStatus.PUBLISHED,
            sort=sort,
        )
    except InvalidSortError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return envelope(
        "Blogs retrieved successfully",
        [blog_service.to_public(p) for p in posts],
        meta={"pagination": pagination},
    )


# Admin routes are registered before /{slug} so "admin" is never read as a slug.
@router.get("/admin/all")
async def list_blogs_admin(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: PostStatus | None = Query(None, alias="status"),
    category: str | None = Query(None),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    posts, pagination = blog_service.list_posts(
        db,
        page=page,
        limit=limit,
        category=category,
        search=search,
        status=status_filter,
        sort="-createdAt",
    )
    return envelope(
        "Blogs retrieved successfully",
        [blog_service.to_public(p) for p in posts],
        meta={"pagination": pagination},
    )


@router.get("/admin/{post_id}")
async def get_blog_admin(
    post_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    """Any post by id, whatever its status."""
    if not post_id.isdigit():
        raise HTTPException(status_code=400, detail="Invalid blog ID")
    post = _get_post_or_404(db, int(post_id))
    return envelope("Blog retrieved successfully", blog_service.to_public(post))


@router.get("/{slug}")
async def get_blog(slug: str, db: Session = Depends(get_db)):
    """Single published post; counts as a view."""
    post = blog_service.find_post(db, slug, published_only=True)
    if not post:
        raise HTTPException(status_code=404, detail="Blog not found")

    post.views += 1
    db.commit()
    db.refresh(post)

    return envelope("Blog retrieved successfully", blog_service.to_detail(post))


@router.get("/{slug}/related")
async def get_related_blogs(slug: str, db: Session = Depends(get_db)):
    post = blog_service.find_post(db, slug)
    if not post:
        raise HTTPException(status_code=404, detail="Blog not found")
    related = blog_service.related_posts(db, post)
    return envelope("Related blogs retrieved successfully", related)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_blog(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(current_admin_user),
):
    data, upload = await _read_payload(request)
    try:
        payload = PostCreate.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

    post = Post(
        title=payload.title,
        slug=blog_service.unique_slug(db, payload.title),
        excerpt=payload.excerpt,
        content=payload.content,
        category=payload.category,
        status=payload.status.value,
        author_id=user.id,
        author_name=user.name or "Anonymous",
    )
    post.tag_list = payload.tags

    if upload is not None:
        stored = await _store_image(upload)
        post.featured_image_url = stored.url
        post.featured_image_public_id = stored.public_id
        post.featured_image_alt = payload.title
    elif payload.featured_image:
        post.featured_image_url = payload.featured_image
        post.featured_image_alt = payload.title

    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("Created post %s (%s)", post.id, post.slug)

    return envelope("Blog created successfully", blog_service.to_public(post))


@router.put("/{post_id}")
async def update_blog(
    post_id: int,
    request: Request,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    """Partial update. Blank fields are left unchanged."""
    post = _get_post_or_404(db, post_id)
    data, upload = await _read_payload(request)
    try:
        payload = PostUpdate.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

    if payload.title:
        post.title = payload.title
        post.slug = blog_service.unique_slug(db, payload.title, exclude_id=post.id)
    if payload.excerpt:
        post.excerpt = payload.excerpt
    if payload.content:
        post.content = payload.content
    if payload.category:
        post.category = payload.category
    if payload.tags is not None:
        post.tag_list = payload.tags
    if payload.status:
        post.status = payload.status.value

    if upload is not None:
        stored = await _store_image(upload)
        await discard_image(post.featured_image_public_id)
        post.featured_image_url = stored.url
        post.featured_image_public_id = stored.public_id
        post.featured_image_alt = post.title
    elif payload.featured_image and payload.featured_image != post.featured_image_url:
        post.featured_image_url = payload.featured_image
        post.featured_image_public_id = None
        post.featured_image_alt = post.title

    db.commit()
    db.refresh(post)
    return envelope("Blog updated successfully", blog_service.to_public(post))


@router.delete("/{post_id}")
async def delete_blog(
    post_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    post = _get_post_or_404(db, post_id)
    await discard_image(post.featured_image_public_id)
    db.delete(post)
    db.commit()
    logger.info("Deleted post %s", post_id)
    return envelope("Blog deleted successfully")


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    post_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
):
    name = (payload.name or "").strip()
    raw_content = payload.content or ""
    content = raw_content.strip()
    if not name or not content:
        raise HTTPException(status_code=400, detail="Name and content are required")
    if len(raw_content) > MAX_COMMENT_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Comment content must be less than {MAX_COMMENT_LENGTH} characters",
        )

    post = _get_post_or_404(db, post_id, published_only=True)
    email = normalize_email(payload.email) if payload.email else None
    comment = post.add_comment(name=name, content=content, email=email)
    db.commit()
    db.refresh(comment)

    return envelope(
        "Comment added successfully", {"comment": CommentOut.model_validate(comment)}
    )


@router.post("/{post_id}/like")
async def like_blog(post_id: int, db: Session = Depends(get_db)):
    post = _get_post_or_404(db, post_id, published_only=True)
    post.likes += 1
    db.commit()
    return envelope("Blog liked successfully", {"likes": post.likes})
