# team_resolver/models/team.py
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class CanonicalTeamRecord(BaseModel):
    """A team as known to the statistics provider (GRID)."""

    model_config = ConfigDict(frozen=True)

    id: str  # Provider-assigned, stable
    name: str
    # Branding metadata, never used for matching
    color_primary: Optional[str] = None
    color_secondary: Optional[str] = None
    logo_url: Optional[str] = None
    game: Optional[str] = None


class AliasEntry(BaseModel):
    """One curated alias -> canonical team mapping."""

    model_config = ConfigDict(frozen=True)

    normalized_alias: str
    canonical_name: str
    canonical_id: str = ""  # Empty when the curator does not know the GRID id


class StoreMatch(BaseModel):
    """A registry row returned by the authoritative store search."""

    id: str
    name: str
    similarity: float = Field(..., ge=0, le=1)  # 1.0 = identical


class IndexMatch(BaseModel):
    """A fuzzy index hit; ``score`` is a distance (0.0 = perfect, 1.0 = no match)."""

    record: CanonicalTeamRecord
    score: float = Field(..., ge=0, le=1)


class TeamsPage(BaseModel):
    """One page of the GRID ``teams`` connection."""

    records: List[CanonicalTeamRecord] = Field(default_factory=list)
    has_next_page: bool = False
    end_cursor: Optional[str] = None
    total_count: Optional[int] = None
