from typing import Any, Dict, List

from fastapi import APIRouter

from ..db import get_db
from ..repositories.success_counter import SuccessCounterRepository

router = APIRouter(tags=["success"])


@router.get("/success-counter")
async def success_counter() -> List[Dict[str, Any]]:
    return await SuccessCounterRepository(get_db()).list_all()


__all__ = ["router"]
