"""
Desired-state catalog.

The catalog is a JSON document mapping an exact tour title to the content
that tour should carry:

    {
      "Test Tour": {
        "city": "Rome", "country": "Italy", "description": "...",
        "tags": ["history"],
        "daily_plan": [
          {"day": 1, "blocks": [
            {"time": "10:00 - 12:00", "items": [
              {"title": "Colosseum", "address": "...", "category": "landmark",
               "description": "...", "recommendations": "..."}
            ]}
          ]}
        ]
      }
    }

Loaded documents are immutable: the models are frozen and the catalog
itself is a read-only mapping.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

TIME_RANGE_SEPARATOR = " - "


def parse_time_range(text: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split "09:00 - 11:00" into ("09:00", "11:00").
    Without the separator both sides are empty (None).
    """
    if not text or TIME_RANGE_SEPARATOR not in text:
        return None, None
    parts = text.split(TIME_RANGE_SEPARATOR)
    start = parts[0].strip() or None
    end = parts[1].strip() or None
    return start, end


class ItemPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    address: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    recommendations: Optional[str] = None


class BlockPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: str = ""
    items: Tuple[ItemPlan, ...] = ()

    @property
    def start_time(self) -> Optional[str]:
        return parse_time_range(self.time)[0]

    @property
    def end_time(self) -> Optional[str]:
        return parse_time_range(self.time)[1]


class DayPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(ge=1)
    blocks: Tuple[BlockPlan, ...] = ()


class TourPlan(BaseModel):
    """Desired content for one tour."""
    model_config = ConfigDict(frozen=True)

    city: str = Field(min_length=1)
    country: Optional[str] = None
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()
    daily_plan: Tuple[DayPlan, ...] = Field(min_length=1)

    @property
    def duration_days(self) -> int:
        """Highest day number in the plan (not the number of days)."""
        return max(day.day for day in self.daily_plan)

    @property
    def block_count(self) -> int:
        return sum(len(day.blocks) for day in self.daily_plan)

    @property
    def item_count(self) -> int:
        return sum(len(block.items) for day in self.daily_plan for block in day.blocks)


class TourCatalog(Mapping[str, TourPlan]):
    """Read-only mapping of exact tour title -> TourPlan."""

    def __init__(self, tours: Mapping[str, TourPlan]):
        self._tours = MappingProxyType(dict(tours))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TourCatalog":
        return cls({title: TourPlan.model_validate(entry) for title, entry in data.items()})

    def __getitem__(self, title: str) -> TourPlan:
        return self._tours[title]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tours)

    def __len__(self) -> int:
        return len(self._tours)

    def __repr__(self) -> str:
        return f"TourCatalog({len(self)} tours)"


def load_catalog(path: Union[str, Path]) -> TourCatalog:
    """Load and validate a catalog JSON document."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)
    catalog = TourCatalog.from_dict(data)
    logger.info(f"Loaded catalog with {len(catalog)} tours from {path}")
    return catalog
