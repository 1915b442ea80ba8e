from enum import Enum


class Game(str, Enum):
    CS2 = "cs2"
    LOL = "lol"
    DOTA2 = "dota2"
    VALORANT = "valorant"


class Confidence(str, Enum):
    """Calibrated quality label shared by every resolution tier."""

    EXACT = "exact"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    def at_most(self, cap: "Confidence") -> "Confidence":
        """Returns the weaker of this confidence and ``cap``."""
        return self if self.rank <= cap.rank else cap


_CONFIDENCE_RANK = {
    Confidence.LOW: 0,
    Confidence.MEDIUM: 1,
    Confidence.HIGH: 2,
    Confidence.EXACT: 3,
}


class ResolutionSource(str, Enum):
    ALIAS = "alias"
    STORE = "store"
    INDEX = "index"
    LIVE = "live"


class TierErrorKind(str, Enum):
    SKIPPED = "skipped"  # Tier not applicable (empty store, unsupported game)
    NO_CANDIDATES = "no_candidates"
    BELOW_THRESHOLD = "below_threshold"
    UNAVAILABLE = "unavailable"  # Collaborator not configured or unreachable
    FAILED = "failed"
