from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .enums import Confidence, ResolutionSource, TierErrorKind


class ResolvedTeam(BaseModel):
    """Result of resolving a market team name to a GRID team.

    ``canonical_id`` is an empty string when only the canonical name is known
    (alias entries without an id). Callers that need an id must re-resolve by
    ``canonical_name`` instead of treating it as a failure.

    ``raw_score`` is the tier-specific similarity or distance, kept for
    diagnostics only. Scores from different sources are not comparable.
    """

    model_config = ConfigDict(frozen=True)

    canonical_id: str
    canonical_name: str
    query_name: str  # Original input, before normalization
    confidence: Confidence
    source: ResolutionSource
    raw_score: Optional[float] = None

    @computed_field  # type: ignore[misc]
    @property
    def needs_id_lookup(self) -> bool:
        return not self.canonical_id

    @computed_field  # type: ignore[misc]
    @property
    def is_provisional(self) -> bool:
        """Low confidence matches (live tier only) should not be trusted blindly."""
        return self.confidence == Confidence.LOW


class TierError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TierErrorKind
    message: str = ""


class TierResult(BaseModel):
    """Outcome of a single tier: either a resolved team or the reason it missed."""

    model_config = ConfigDict(frozen=True)

    source: ResolutionSource
    resolved: Optional[ResolvedTeam] = None
    error: Optional[TierError] = None

    @classmethod
    def hit(cls, resolved: ResolvedTeam) -> "TierResult":
        return cls(source=resolved.source, resolved=resolved)

    @classmethod
    def miss(
        cls, source: ResolutionSource, kind: TierErrorKind, message: str = ""
    ) -> "TierResult":
        return cls(source=source, error=TierError(kind=kind, message=message))


class MarketTeams(BaseModel):
    """Both sides of a two-outcome market."""

    team1: Optional[ResolvedTeam] = None
    team2: Optional[ResolvedTeam] = None


class ResolutionStats(BaseModel):
    """Diagnostics snapshot used to monitor and extend the alias table."""

    game: str
    alias_count: int
    supported_games: List[str]
    index_size: int
    cache_size: int
    hits_by_source: Dict[str, int] = Field(default_factory=dict)
    misses: int = 0
    cache_hits: int = 0
    tier_errors: Dict[str, int] = Field(default_factory=dict)


class SyncReport(BaseModel):
    teams_fetched: int = 0
    inserted: int = 0
    updated: int = 0
    pages: int = 0
    duration_seconds: float = 0.0
    skipped_reason: Optional[str] = None


class RegistryStatus(BaseModel):
    record_count: int
    last_sync: Optional[datetime] = None
    age_hours: Optional[float] = None
    is_stale: bool = True
