from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ..pipeline.model import PipelineConfig

CheckFunc = Callable[[Path, "PipelineConfig"], tuple[int, list[str]]]


@dataclass(frozen=True)
class CheckDef:
    check_id: str
    domain: str
    description: str
    budget_ms: int
    fn: CheckFunc
