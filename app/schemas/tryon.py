from typing import Optional, List, Literal

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.catalog import OutfitOut


class TryOnStartIn(CamelModel):
    user_image_path: Optional[str] = None
    user_image_base64: Optional[str] = None
    selected_outfit_ids: List[int] = Field(default_factory=list)
    user_id: Optional[int] = None


class MultipleTryOnIn(CamelModel):
    captured_image: Optional[str] = None
    outfit_ids: List[int] = Field(default_factory=list)
    user_id: Optional[int] = None


class AISuggestionIn(CamelModel):
    captured_image: Optional[str] = None
    gender: Optional[str] = None
    category: Optional[str] = None
    user_id: Optional[int] = None


class SingleTryOnIn(CamelModel):
    captured_image: Optional[str] = None
    outfit_id: Optional[int] = None
    user_id: Optional[int] = None


class BatchStartOut(CamelModel):
    batch_id: str
    total_outfits: int
    message: str
    user_image_path: Optional[str] = None
    selected_outfits: Optional[List[OutfitOut]] = None


class OutfitResultOut(CamelModel):
    id: int
    outfit_id: int
    result_image_url: Optional[str] = None
    status: Literal["completed", "failed"]
    task_id: Optional[str] = None
    processed_at: str
    error: Optional[str] = None
    outfit: Optional[OutfitOut] = None


class ResultsPagination(CamelModel):
    offset: int
    limit: int
    total: int
    has_more: bool


class BatchSummary(CamelModel):
    batch_id: str
    status: str
    total_outfits: int
    completed_count: int


class BatchResultsOut(CamelModel):
    results: List[OutfitResultOut]
    pagination: ResultsPagination
    batch: BatchSummary


class BatchProgress(CamelModel):
    completed: int
    total: int
    percentage: int


class BatchStatusOut(CamelModel):
    batch_id: str
    status: str
    progress: BatchProgress
    available_results: int


class SuggestionStatusOut(CamelModel):
    batch_id: str
    results: List[OutfitResultOut]
    total_processed: int
    total_outfits: int
    is_complete: bool
    has_more: bool


class MultipleBatchStatusOut(CamelModel):
    batch_id: str
    status: str
    total_outfits: int
    completed_count: int
    failed_count: int
    results: List[OutfitResultOut]
    is_complete: bool


class SingleTryOnOut(CamelModel):
    outfit_id: int
    result_image_url: Optional[str] = None
    status: Literal["completed", "failed"]
    task_id: Optional[str] = None
    error: Optional[str] = None
    outfit: OutfitOut
