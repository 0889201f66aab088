from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class LinkBase(BaseModel):
    title: str = ""
    url: str = ""
    category: str = ""
    description: Optional[str] = None


class LinkCreate(LinkBase):
    pass


class LinkUpdate(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None


class LinkOut(LinkBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None


# Insertion-ordered: categories appear in the order they were first seen.
CategoryGroups = Dict[str, List[LinkOut]]
