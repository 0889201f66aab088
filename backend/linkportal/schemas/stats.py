from typing import Dict

from pydantic import BaseModel, Field


class PortalStatsOut(BaseModel):
    total_links: int = 0
    total_users: int = 0
    regular_users: int = 0
    total_categories: int = 0
    total_assignments: int = 0
    users_with_assignments: int = 0
    links_with_assignments: int = 0
    avg_assignments_per_user: float = 0.0
    links_per_category: Dict[str, int] = Field(default_factory=dict)
