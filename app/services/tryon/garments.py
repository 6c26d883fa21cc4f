from typing import Optional

FULL_SET_KEYWORDS = ("traditional", "blazer", "chudi", "modern", "fullbody", "full")


def map_cloth_type(cloth_type: Optional[str]) -> str:
    """Map a catalog cloth type onto FitRoom's `upper` / `full_set` vocabulary."""
    lowered = (cloth_type or "").lower()
    if any(k in lowered for k in FULL_SET_KEYWORDS):
        return "full_set"
    return "upper"
