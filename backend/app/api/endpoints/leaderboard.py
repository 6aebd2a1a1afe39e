from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.leaderboard import LeaderboardEntry
from app.services.leaderboard import LeaderboardService

router = APIRouter()


def entry_to_dict(entry: LeaderboardEntry) -> dict:
    return {
        "username": entry.username,
        "name": entry.name,
        "avatar": entry.avatar,
        "score": entry.score,
        "grade": entry.grade,
        "location": entry.location,
        "bio": entry.bio,
        "publicRepos": entry.public_repos,
        "followers": entry.followers,
        "totalStars": entry.total_stars,
        "topLanguage": entry.top_language,
        "profileUrl": entry.profile_url,
        "languages": entry.languages or [],
        "topics": entry.topics or [],
        "updatedAt": entry.updated_at.isoformat() if entry.updated_at else None,
    }


def page_response(result: dict) -> dict:
    return {
        "entries": [{**entry_to_dict(entry), "rank": rank} for rank, entry in result["entries"]],
        "pagination": result["pagination"],
    }


def rank_response(ranking: Optional[dict]) -> dict:
    if ranking is None:
        raise HTTPException(status_code=404, detail="User not found in leaderboard")
    return {
        **entry_to_dict(ranking["entry"]),
        "rank": ranking["rank"],
        "total": ranking["total"],
        "percentile": ranking["percentile"],
    }


# Fixed paths first so they are never captured as a username

@router.get("/leaderboard")
async def get_global_leaderboard(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Get the global leaderboard, highest score first."""
    return page_response(await LeaderboardService(db).get_page(page, limit))


@router.get("/leaderboard/stats")
async def get_leaderboard_stats(db: AsyncSession = Depends(get_db)):
    return await LeaderboardService(db).get_stats()


@router.get("/leaderboard/filters")
async def get_available_filters(db: AsyncSession = Depends(get_db)):
    """Languages and topics present on the leaderboard, with entry counts."""
    return await LeaderboardService(db).get_filters()


@router.get("/leaderboard/top10-average")
async def get_top10_average(db: AsyncSession = Depends(get_db)):
    result = await LeaderboardService(db).get_top_average()
    return {
        "average": result["average"],
        "top10Users": result["top_users"],
        "top10Count": result["count"],
    }


@router.get("/leaderboard/language/{language}")
async def get_language_leaderboard(
    language: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await LeaderboardService(db).get_language_page(language, page, limit)
    return {"language": language, **page_response(result)}


@router.get("/leaderboard/topic/{topic}")
async def get_topic_leaderboard(
    topic: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await LeaderboardService(db).get_topic_page(topic, page, limit)
    return {"topic": topic, **page_response(result)}


@router.get("/leaderboard/{username}/rank")
async def get_user_rank(username: str, db: AsyncSession = Depends(get_db)):
    """Get a user's rank and percentile."""
    return rank_response(await LeaderboardService(db).get_rank(username))


@router.get("/leaderboard/{username}/rank/niche")
async def get_user_niche_rank(
    username: str,
    language: Optional[str] = None,
    topic: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Rank within a language (or topic) niche; language wins when both are given."""
    ranking = await LeaderboardService(db).get_niche_rank(username, language=language, topic=topic)
    response = rank_response(ranking)
    response["nicheType"] = ranking["niche_type"]
    return response
