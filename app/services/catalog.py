from __future__ import annotations

import math
import random
from typing import List, Optional, Protocol, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.models import Category, Gender, Outfit
from app.services.tryon.types import OutfitRef


def random_offset(total: int, take: int, rng: random.Random | None = None) -> int:
    """Offset for a random window of `take` rows; clamps to 0 when total <= take."""
    r = (rng or random).random()
    return math.floor(r * max(0, total - take))


def to_ref(outfit: Outfit) -> OutfitRef:
    return OutfitRef(
        id=outfit.id,
        image_url=outfit.image_url,
        cloth_type=outfit.cloth_type,
        is_active=bool(outfit.is_active),
    )


class Catalog(Protocol):
    async def find_outfits_by_ids(self, ids: Sequence[int], active_only: bool = True) -> List[Outfit]:
        ...

    async def get_outfit(self, outfit_id: int, active_only: bool = False) -> Optional[Outfit]:
        ...

    async def find_category(self, gender_name: str, category_name: str) -> Optional[Category]:
        ...

    async def random_outfits(self, category_id: int, take: int) -> List[Outfit]:
        ...


class SqlCatalog:
    def __init__(self, session: AsyncSession, rng: random.Random | None = None):
        self.session = session
        self.rng = rng

    async def find_outfits_by_ids(self, ids: Sequence[int], active_only: bool = True) -> List[Outfit]:
        if not ids:
            return []
        stmt = select(Outfit).where(Outfit.id.in_(list(ids)))
        if active_only:
            stmt = stmt.where(Outfit.is_active.is_(True))
        res = await self.session.execute(stmt)
        found = {o.id: o for o in res.scalars().all()}
        # keep the caller's order, dropping duplicates and misses
        out: List[Outfit] = []
        seen: set[int] = set()
        for oid in ids:
            if oid in found and oid not in seen:
                out.append(found[oid])
                seen.add(oid)
        return out

    async def get_outfit(self, outfit_id: int, active_only: bool = False) -> Optional[Outfit]:
        outfit = await self.session.get(Outfit, outfit_id)
        if outfit is None or (active_only and not outfit.is_active):
            return None
        return outfit

    async def find_category(self, gender_name: str, category_name: str) -> Optional[Category]:
        res = await self.session.execute(
            select(Category)
            .join(Gender, Gender.id == Category.gender_id)
            .where(Category.name == category_name, Gender.name == gender_name)
        )
        return res.scalars().first()

    async def random_outfits(self, category_id: int, take: int) -> List[Outfit]:
        where = (Outfit.category_id == category_id, Outfit.is_active.is_(True))
        total = (await self.session.execute(select(func.count()).select_from(Outfit).where(*where))).scalar_one()
        offset = random_offset(int(total), take, self.rng)
        res = await self.session.execute(
            select(Outfit).where(*where).order_by(Outfit.id).offset(offset).limit(take)
        )
        return list(res.scalars().all())
