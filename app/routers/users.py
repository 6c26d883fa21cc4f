import logging
import math
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_session
from app.models.models import Outfit, TryOnResult, User
from app.schemas.catalog import OutfitOut
from app.schemas.users import (
    FavoriteOutfitOut,
    TryOnHistoryOut,
    TryOnStats,
    UserCreateOut,
    UserDetailOut,
    UserIn,
    UserListItem,
    UserListOut,
    UserOut,
    UserPagination,
    UserStatsOut,
    UserUpdate,
)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger("uvicorn.error")


async def _get_user_or_404(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="user_not_found")
    return user


async def _recent_try_ons(session: AsyncSession, user_id: int, take: int) -> list[TryOnHistoryOut]:
    res = await session.execute(
        select(TryOnResult)
        .where(TryOnResult.user_id == user_id)
        .order_by(TryOnResult.created_at.desc(), TryOnResult.id.desc())
        .limit(take)
    )
    return [TryOnHistoryOut.model_validate(r) for r in res.scalars().all()]


@router.post("", response_model=UserCreateOut)
async def create_or_get_user(payload: UserIn, session: AsyncSession = Depends(get_session)):
    if not payload.name:
        raise HTTPException(status_code=400, detail="name_required")
    if payload.email:
        res = await session.execute(select(User).where(User.email == payload.email))
        existing = res.scalar_one_or_none()
        if existing:
            return UserCreateOut(message="User already exists", created=False, user=UserOut.model_validate(existing))

    user = User(name=payload.name, email=payload.email or None, plan="Free")
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("users: created user_id=%s", user.id)
    return UserCreateOut(message="User created successfully", created=True, user=UserOut.model_validate(user))


@router.get("", response_model=UserListOut)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    total = (await session.execute(select(func.count()).select_from(User))).scalar_one()
    counts = (
        select(TryOnResult.user_id, func.count(TryOnResult.id).label("n"))
        .group_by(TryOnResult.user_id)
        .subquery()
    )
    res = await session.execute(
        select(User, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.user_id == User.id)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    users = []
    for user, n in res.all():
        item = UserListItem.model_validate(user)
        item.try_on_count = int(n)
        users.append(item)
    total_pages = math.ceil(total / limit)
    return UserListOut(
        users=users,
        pagination=UserPagination(
            current_page=page,
            total_pages=total_pages,
            total_count=total,
            has_next=page < total_pages,
            has_prev=page > 1,
        ),
    )


@router.get("/{user_id}", response_model=UserDetailOut)
async def get_user(user_id: int, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, user_id)
    out = UserDetailOut.model_validate(user)
    out.try_on_results = await _recent_try_ons(session, user_id, 10)
    return out


@router.put("/{user_id}", response_model=UserOut)
async def update_user(user_id: int, payload: UserUpdate, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, user_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name"):
        user.name = data["name"]
    if "email" in data:
        user.email = data["email"]
    if data.get("plan"):
        user.plan = data["plan"]
    await session.commit()
    await session.refresh(user)
    return UserOut.model_validate(user)


@router.get("/{user_id}/stats", response_model=UserStatsOut)
async def user_stats(user_id: int, session: AsyncSession = Depends(get_session)):
    user = await _get_user_or_404(session, user_id)
    total = (
        await session.execute(select(func.count(TryOnResult.id)).where(TryOnResult.user_id == user_id))
    ).scalar_one()
    now = datetime.now(timezone.utc)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    this_month = (
        await session.execute(
            select(func.count(TryOnResult.id)).where(
                TryOnResult.user_id == user_id, TryOnResult.created_at >= month_start
            )
        )
    ).scalar_one()
    fav = (
        await session.execute(
            select(TryOnResult.outfit_id, func.count(TryOnResult.id).label("n"))
            .where(TryOnResult.user_id == user_id, TryOnResult.outfit_id.is_not(None))
            .group_by(TryOnResult.outfit_id)
            .order_by(func.count(TryOnResult.id).desc())
            .limit(1)
        )
    ).first()

    favorite = None
    if fav:
        outfit = await session.get(Outfit, fav[0])
        if outfit:
            favorite = FavoriteOutfitOut(
                **OutfitOut.model_validate(outfit).model_dump(), try_on_count=int(fav[1])
            )
    return UserStatsOut(
        user=UserOut.model_validate(user),
        try_on_stats=TryOnStats(total_try_ons=total, this_month_try_ons=this_month, favorite_outfit=favorite),
        recent_try_ons=await _recent_try_ons(session, user_id, 5),
    )
