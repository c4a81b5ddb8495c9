"""
Schemas for parsed slide decks.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Slide(BaseModel):
    """A single addressable slide."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(default=0, ge=0)
    content: str = ""
    frontmatter: Optional[Dict[str, Any]] = None
    layout: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def sync_layout(cls, data: Any) -> Any:
        # layout mirrors frontmatter["layout"]
        if not isinstance(data, dict):
            return data
        data = dict(data)
        frontmatter = data.get("frontmatter") or None
        fm_layout = (frontmatter or {}).get("layout")
        if fm_layout is not None:
            data["layout"] = str(fm_layout)
        elif data.get("layout"):
            frontmatter = {**(frontmatter or {}), "layout": data["layout"]}
        data["frontmatter"] = frontmatter
        return data

    def content_equals(self, other: "Slide") -> bool:
        """Compare slides ignoring surrounding whitespace."""
        return (
            self.index == other.index
            and self.content.strip() == other.content.strip()
            and (self.frontmatter or {}) == (other.frontmatter or {})
            and self.layout == other.layout
            and (self.notes or "").strip() == (other.notes or "").strip()
        )


class SlideDeck(BaseModel):
    """A complete parsed presentation."""
    model_config = ConfigDict(frozen=True)

    frontmatter: Dict[str, Any] = Field(default_factory=dict)
    slides: List[Slide] = Field(default_factory=list)
    raw: str = ""

    @property
    def slide_count(self) -> int:
        return len(self.slides)

    def content_equals(self, other: "SlideDeck") -> bool:
        """Compare decks up to whitespace normalisation, ignoring ``raw``."""
        if self.frontmatter != other.frontmatter or len(self.slides) != len(other.slides):
            return False
        return all(a.content_equals(b) for a, b in zip(self.slides, other.slides))


class SlideInput(BaseModel):
    """Partial slide used when inserting into a deck."""
    content: str = ""
    frontmatter: Optional[Dict[str, Any]] = None
    layout: Optional[str] = None
    notes: Optional[str] = None
