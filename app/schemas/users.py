from typing import Optional, List
from datetime import datetime

from app.schemas.base import CamelModel
from app.schemas.catalog import OutfitOut


class UserIn(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None


class UserUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    plan: Optional[str] = None


class UserOut(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    plan: str = "Free"
    created_at: Optional[datetime] = None


class UserCreateOut(CamelModel):
    message: str
    created: bool
    user: UserOut


class TryOnHistoryOut(CamelModel):
    id: int
    outfit_id: Optional[int] = None
    result_image_url: str = ""
    task_id: Optional[str] = None
    created_at: Optional[datetime] = None
    outfit: Optional[OutfitOut] = None


class UserDetailOut(UserOut):
    try_on_results: List[TryOnHistoryOut] = []


class UserListItem(UserOut):
    try_on_count: int = 0


class UserPagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool


class UserListOut(CamelModel):
    users: List[UserListItem]
    pagination: UserPagination


class FavoriteOutfitOut(OutfitOut):
    try_on_count: int


class TryOnStats(CamelModel):
    total_try_ons: int
    this_month_try_ons: int
    favorite_outfit: Optional[FavoriteOutfitOut] = None


class UserStatsOut(CamelModel):
    user: UserOut
    try_on_stats: TryOnStats
    recent_try_ons: List[TryOnHistoryOut]
