from fastapi import APIRouter

from .endpoints import achievements_router, insights_router, leaderboard_router

router = APIRouter()


# ============== Health Check ==============

@router.get("/health")
async def health_check():
    return {"status": "ok"}


router.include_router(insights_router)
router.include_router(achievements_router)
router.include_router(leaderboard_router)
