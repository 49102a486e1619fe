"""
Stage value type and pure pipeline rules.

A location's pipeline is an ordered list of ``Stage`` values; a stage's
position in the list is its rank. These helpers never touch the database,
so the registry and workflow services share one definition of "next
stage" and "valid reorder".
"""

import uuid
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from carlet.app.core.exceptions import InvalidPermutation, ValidationError


class Stage(BaseModel):
    """One step of a location's pipeline. Name and color are display only."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#64748b", max_length=32)


def new_stage_id() -> str:
    return str(uuid.uuid4())


def load_stages(raw: Optional[Iterable[dict]]) -> List[Stage]:
    """Parse the JSON column value of ``Location.stages``."""
    return [Stage.model_validate(item) for item in (raw or [])]


def dump_stages(stages: Sequence[Stage]) -> List[dict]:
    """Serialize stages for storage. Always returns a new list."""
    return [stage.model_dump() for stage in stages]


def ensure_unique_ids(stages: Sequence[Stage]) -> None:
    duplicates = sorted(stage_id for stage_id, count in Counter(s.id for s in stages).items() if count > 1)
    if duplicates:
        raise ValidationError("Stage ids must be unique within a location", details={"duplicate_ids": duplicates})


def find_stage(stages: Sequence[Stage], stage_id: Optional[str]) -> Optional[Stage]:
    if stage_id is None:
        return None
    for stage in stages:
        if stage.id == stage_id:
            return stage
    return None


def stage_index(stages: Sequence[Stage], stage_id: Optional[str]) -> int:
    """Pipeline rank of ``stage_id`` or -1 when it is null or unknown."""
    for index, stage in enumerate(stages):
        if stage.id == stage_id:
            return index
    return -1


def next_stage(stages: Sequence[Stage], current_stage_id: Optional[str]) -> Optional[Stage]:
    """
    Stage immediately following ``current_stage_id``.

    Returns None when the current stage is the last one, unknown, or null.
    """
    index = stage_index(stages, current_stage_id)
    if index < 0 or index + 1 >= len(stages):
        return None
    return stages[index + 1]


def reorder(stages: Sequence[Stage], new_order: Sequence[str]) -> List[Stage]:
    """
    Return ``stages`` rearranged to follow ``new_order``.

    Raises:
        InvalidPermutation: ``new_order`` adds, omits or repeats an id
    """
    current_ids = [stage.id for stage in stages]
    requested = Counter(new_order)
    duplicates = sorted(stage_id for stage_id, count in requested.items() if count > 1)
    missing = sorted(set(current_ids) - set(requested))
    unknown = sorted(set(requested) - set(current_ids))

    if duplicates or missing or unknown:
        raise InvalidPermutation(details={
            "duplicate_ids": duplicates,
            "missing_ids": missing,
            "unknown_ids": unknown,
        })

    by_id = {stage.id: stage for stage in stages}
    return [by_id[stage_id] for stage_id in new_order]
