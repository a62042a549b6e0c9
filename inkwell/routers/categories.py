"""Post category endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inkwell.auth import current_admin_user
from inkwell.database import get_db
from inkwell.models.category import Category
from inkwell.models.user import User
from inkwell.schemas.category import CategoryIn, CategoryOut
from inkwell.utils.responses import envelope

router = APIRouter(prefix="/api/categories", tags=["categories"])


def _name_taken(db: Session, name: str, exclude_id: int | None = None) -> bool:
    query = db.query(Category.id).filter(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def _commit_unique(db: Session) -> None:
    """Commit, mapping a unique-name violation from a concurrent write to 400."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Category already exists")


def _get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("")
async def list_categories(db: Session = Depends(get_db)):
    categories = db.query(Category).order_by(Category.name).all()
    return envelope(
        "Categories retrieved successfully",
        [CategoryOut.model_validate(c) for c in categories],
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryIn,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Category name is required")
    if _name_taken(db, name):
        raise HTTPException(status_code=400, detail="Category already exists")

    category = Category(name=name, description=(payload.description or "").strip())
    db.add(category)
    _commit_unique(db)
    db.refresh(category)
    return envelope("Category created successfully", CategoryOut.model_validate(category))


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    payload: CategoryIn,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    category = _get_category_or_404(db, category_id)
    name = (payload.name or "").strip()
    if name:
        if _name_taken(db, name, exclude_id=category.id):
            raise HTTPException(status_code=400, detail="Category already exists")
        category.name = name
    if payload.description is not None:
        category.description = payload.description.strip()

    _commit_unique(db)
    db.refresh(category)
    return envelope("Category updated successfully", CategoryOut.model_validate(category))


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(current_admin_user),
):
    category = _get_category_or_404(db, category_id)
    db.delete(category)
    db.commit()
    return envelope("Category deleted successfully")
