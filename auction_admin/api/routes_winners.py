from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.db.database import get_db
from auction_admin.services.datasets import load_winners

router = APIRouter(prefix="/api", tags=["winners"])


@router.get("/all-winners")
async def all_winners(type: str | None = None, db: AsyncSession = Depends(get_db)):
    result = await load_winners(db, filter_type=type)
    return {"success": True, **result}
