import math
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_session
from app.models.models import Category, Gender, Outfit
from app.schemas.catalog import (
    CategoryOut,
    GenderCategoriesOut,
    GenderOut,
    OutfitDetailOut,
    OutfitOut,
    OutfitPageOut,
    PageInfo,
    PriceFilter,
    PriceRangeOut,
)

router = APIRouter(prefix="/outfits", tags=["outfits"])


def _category_out(cat: Category, outfit_count: int = 0) -> CategoryOut:
    return CategoryOut(
        id=cat.id,
        name=cat.name,
        display_name=cat.display_name,
        banner_image=cat.banner_image,
        outfit_count=outfit_count,
    )


@router.get("/genders", response_model=List[GenderOut])
async def list_genders(session: AsyncSession = Depends(get_session)):
    res = await session.execute(select(Gender).where(Gender.is_active.is_(True)).order_by(Gender.id))
    return [GenderOut.model_validate(g) for g in res.scalars().all()]


@router.get("/categories/{gender_name}", response_model=GenderCategoriesOut)
async def list_categories(gender_name: str, session: AsyncSession = Depends(get_session)):
    res = await session.execute(select(Gender).where(Gender.name == gender_name))
    gender = res.scalar_one_or_none()
    if not gender:
        raise HTTPException(status_code=404, detail="gender_not_found")

    counts = await session.execute(
        select(Category, func.count(Outfit.id))
        .outerjoin(Outfit, Outfit.category_id == Category.id)
        .where(Category.gender_id == gender.id, Category.is_active.is_(True))
        .group_by(Category.id)
        .order_by(Category.id)
    )
    return GenderCategoriesOut(
        gender=GenderOut.model_validate(gender),
        categories=[_category_out(cat, int(n)) for cat, n in counts.all()],
    )


@router.get("/price-range/{category_name}", response_model=PriceRangeOut)
async def price_range(category_name: str, session: AsyncSession = Depends(get_session)):
    res = await session.execute(
        select(func.min(Outfit.price), func.max(Outfit.price))
        .join(Category, Category.id == Outfit.category_id)
        .where(Category.name == category_name, Outfit.is_active.is_(True))
    )
    lo, hi = res.one()
    return PriceRangeOut(min_price=lo or 0, max_price=hi or 0)


@router.get("/outfit/{outfit_id}", response_model=OutfitDetailOut)
async def get_outfit(outfit_id: int, session: AsyncSession = Depends(get_session)):
    outfit = await session.get(Outfit, outfit_id)
    if not outfit:
        raise HTTPException(status_code=404, detail="outfit_not_found")
    return OutfitDetailOut.model_validate(outfit)


@router.get("/{gender_name}/{category_name}", response_model=OutfitPageOut)
async def list_outfits(
    gender_name: str,
    category_name: str,
    page: int = Query(1, ge=1),
    limit: int = Query(9, ge=1, le=100),
    min_price: Optional[int] = Query(None, alias="minPrice"),
    max_price: Optional[int] = Query(None, alias="maxPrice"),
    session: AsyncSession = Depends(get_session),
):
    res = await session.execute(
        select(Category)
        .join(Gender, Gender.id == Category.gender_id)
        .where(
            Category.name == category_name,
            Gender.name == gender_name,
            Category.is_active.is_(True),
        )
    )
    category = res.scalars().first()
    if not category:
        raise HTTPException(status_code=404, detail="category_not_found")

    where = [Outfit.category_id == category.id, Outfit.is_active.is_(True)]
    if min_price is not None:
        where.append(Outfit.price >= min_price)
    if max_price is not None:
        where.append(Outfit.price <= max_price)

    total = (await session.execute(select(func.count()).select_from(Outfit).where(*where))).scalar_one()
    rows = await session.execute(
        select(Outfit)
        .where(*where)
        .order_by(Outfit.created_at.desc(), Outfit.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    total_pages = math.ceil(total / limit)
    return OutfitPageOut(
        outfits=[OutfitOut.model_validate(o) for o in rows.scalars().all()],
        pagination=PageInfo(
            current_page=page,
            total_pages=total_pages,
            total_count=total,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
        category=_category_out(category, total),
        gender=GenderOut.model_validate(category.gender),
        filters=PriceFilter(min_price=min_price, max_price=max_price),
    )
