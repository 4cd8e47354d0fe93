import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}


@router.get("/readyz")
async def readyz(
    response: Response, db: AsyncSession = Depends(get_db)
) -> dict[str, bool]:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("readyz.database_unavailable", exc_info=True)
        response.status_code = 503
        return {"ready": False}
    return {"ready": True}
