from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.db.database import get_db
from auction_admin.db import crud
from auction_admin.schemas.category import CategoryPayload

router = APIRouter(prefix="/api/category", tags=["category"])


def _active_filter(active: str | None) -> bool | None:
    if active == "true":
        return True
    if active == "false":
        return False
    return None


@router.get("")
async def list_categories(
    handle: str | None = None,
    q: str | None = None,
    active: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    categories = await crud.list_categories(db, handle=handle, q=q, active=_active_filter(active))
    return {"success": True, "data": categories}


@router.post("")
async def upsert_category(payload: CategoryPayload, db: AsyncSession = Depends(get_db)):
    if not payload.handle or not payload.title:
        raise HTTPException(status_code=400, detail="Missing required fields: handle and title")

    values = {
        "handle": payload.handle,
        "title": payload.title,
        "short_desc": payload.short_desc,
        "long_desc": payload.long_desc,
        "image_url": payload.image_url,
        "taxonomy": payload.taxonomy if payload.taxonomy is not None else [],
        "metadata": payload.metadata if payload.metadata is not None else {"created_via": "api"},
        "is_active": payload.is_active if payload.is_active is not None else True,
    }
    category = await crud.upsert_category(db, values)
    return {"success": True, "data": category.to_dict()}


@router.put("")
async def update_category(payload: CategoryPayload, db: AsyncSession = Depends(get_db)):
    if not payload.handle:
        raise HTTPException(status_code=400, detail="handle is required for update")

    updates = payload.model_dump(include=set(crud.CATEGORY_UPDATABLE), exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No updatable fields provided")

    category = await crud.update_category(db, payload.handle, updates)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "data": [category.to_dict()]}


@router.delete("")
async def delete_category(handle: str | None = None, db: AsyncSession = Depends(get_db)):
    if not handle:
        raise HTTPException(status_code=400, detail="Query parameter 'handle' is required")
    deleted = await crud.delete_category(db, handle)
    return {"success": True, "data": {"deleted": deleted}}
