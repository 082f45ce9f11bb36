"""
Tool argument models, one per tool, validated before any index lookup.
Length bounds depend on the active security tier and are checked by
the query service, not here.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .enums import ComplianceFramework


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass; JSON true must not pass as level 1
    if isinstance(value, bool):
        raise ValueError("level must be an integer, not a boolean")
    return value


Level = Annotated[Literal[1, 2, 3], BeforeValidator(_reject_bool)]
CurrentLevel = Annotated[int, BeforeValidator(_reject_bool), Field(ge=0, le=3)]


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class _Paged(_ToolArgs):
    offset: int = 0
    limit: int = 100


class LevelQuery(_Paged):
    level: Level


class CategoryQuery(_Paged):
    category: str = Field(min_length=1)
    level: Optional[Level] = None


class RequirementLookup(_ToolArgs):
    requirement_id: str = Field(min_length=1)


class SearchQuery(_Paged):
    query: str
    level: Optional[Level] = None
    limit: int = 50


class RecommendationQuery(_Paged):
    target_level: Level
    current_level: CurrentLevel = 0
    focus_areas: list[str] = []
    application_type: Optional[str] = None  # echoed back only
    limit: int = 50


class ComplianceQuery(_Paged):
    framework: ComplianceFramework
    level: Optional[Level] = None


class GapAnalysisQuery(_ToolArgs):
    frameworks: list[ComplianceFramework] = Field(min_length=1)
    target_level: Level
    implemented_requirements: list[str] = []

    def unique_frameworks(self) -> list[ComplianceFramework]:
        return list(dict.fromkeys(self.frameworks))
