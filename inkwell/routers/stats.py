from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from inkwell.auth import current_admin_user
from inkwell.database import get_db
from inkwell.models.post import Post
from inkwell.models.user import User
from inkwell.services.blog_service import blog_service
from inkwell.utils.responses import envelope

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    """Totals for the admin dashboard."""
    return envelope(
        "Dashboard stats retrieved successfully", blog_service.dashboard_stats(db)
    )


@router.get("/blog/{post_id}")
async def blog_stats(
    post_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    post = db.get(Post, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Blog not found")
    return envelope("Blog stats retrieved successfully", blog_service.post_stats(post))
