from typing import Optional, List
from datetime import datetime

from app.schemas.base import CamelModel


class GenderOut(CamelModel):
    id: int
    name: str
    display_name: str
    banner_image: Optional[str] = None


class CategoryOut(CamelModel):
    id: int
    name: str
    display_name: str
    banner_image: Optional[str] = None
    outfit_count: int = 0


class GenderCategoriesOut(CamelModel):
    gender: GenderOut
    categories: List[CategoryOut]


class OutfitOut(CamelModel):
    id: int
    name: str
    image_url: str
    description: Optional[str] = None
    cloth_type: Optional[str] = None
    price: Optional[int] = None


class CategoryWithGenderOut(CamelModel):
    id: int
    name: str
    display_name: str
    banner_image: Optional[str] = None
    gender: GenderOut


class OutfitDetailOut(OutfitOut):
    is_active: bool = True
    created_at: Optional[datetime] = None
    category: Optional[CategoryWithGenderOut] = None


class PageInfo(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class PriceFilter(CamelModel):
    min_price: Optional[int] = None
    max_price: Optional[int] = None


class OutfitPageOut(CamelModel):
    outfits: List[OutfitOut]
    pagination: PageInfo
    category: CategoryOut
    gender: GenderOut
    filters: PriceFilter


class PriceRangeOut(CamelModel):
    min_price: int = 0
    max_price: int = 0
