from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.services.tryon.errors import BatchClosedError, OrchestrationError

BatchStatus = Literal["processing", "completed", "failed"]
TERMINAL_STATUSES = {"completed", "failed"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class OutfitRef:
    """The slice of a catalog outfit the orchestrator needs."""

    id: int
    image_url: str
    cloth_type: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class SynthesisResult:
    task_id: str
    result_image_url: str


class OutfitResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    outfit_id: int = Field(alias="outfitId")
    result_image_url: Optional[str] = Field(None, alias="resultImageUrl")
    status: Literal["completed", "failed"]
    task_id: Optional[str] = Field(None, alias="taskId")
    processed_at: str = Field(default_factory=_now_iso, alias="processedAt")
    error: Optional[str] = None

    @classmethod
    def completed(cls, outfit_id: int, result: SynthesisResult) -> "OutfitResult":
        return cls(
            outfit_id=outfit_id,
            result_image_url=result.result_image_url,
            status="completed",
            task_id=result.task_id,
        )

    @classmethod
    def failed(cls, outfit_id: int, error: str) -> "OutfitResult":
        return cls(outfit_id=outfit_id, status="failed", error=error)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


_results_adapter = TypeAdapter(List[OutfitResult])


def dump_results(results: List[OutfitResult]) -> str:
    return json.dumps([r.to_wire() for r in results])


def load_results(raw: Optional[str]) -> List[OutfitResult]:
    """Parse the stored JSON blob; a bad shape raises OrchestrationError."""
    if not raw:
        return []
    try:
        return _results_adapter.validate_json(raw)
    except PydanticValidationError as e:
        raise OrchestrationError(f"unreadable batch results: {e.error_count()} errors") from e


class BatchRecord(BaseModel):
    batch_id: str
    user_id: Optional[int] = None
    user_image_path: str
    total_outfits: int
    completed_count: int = 0
    status: BatchStatus = "processing"
    results: List[OutfitResult] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_complete(self) -> bool:
        return self.status == "completed"

    @property
    def percentage(self) -> int:
        if self.total_outfits <= 0:
            return 0
        return round(self.completed_count / self.total_outfits * 100)

    def append_result(self, result: OutfitResult) -> None:
        if self.is_terminal:
            raise BatchClosedError(f"batch {self.batch_id} is {self.status}")
        if self.completed_count >= self.total_outfits:
            raise BatchClosedError(f"batch {self.batch_id} already holds {self.total_outfits} results")
        self.results.append(result)
        self.completed_count += 1
        if self.completed_count == self.total_outfits:
            self.status = "completed"

    def mark_failed(self) -> None:
        if self.is_terminal:
            return
        self.status = "failed"
