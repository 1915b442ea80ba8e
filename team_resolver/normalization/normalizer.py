"""Team name normalization shared by every resolution tier.

``normalize_team_name`` is the single definition of "same team name": alias
keys are normalized with it at load time, and the fuzzy index and live tier
compare normalized forms. It must stay idempotent.
"""

import re
import unicodedata
from typing import Iterable, List, Optional

from team_resolver.config.settings import settings

# Generic organisation words that carry no identity ("Team Liquid", "FaZe Clan")
DEFAULT_NOISE_TOKENS = frozenset(
    token.lower().strip() for token in settings.normalization_noise_tokens
)

# Letters NFKD does not decompose
_CHAR_MAP = str.maketrans({
    "ß": "ss", "ø": "o", "ð": "d", "þ": "th", "æ": "ae", "œ": "oe",
    "ł": "l", "đ": "d", "ı": "i",
})

_PUNCTUATION_RE = re.compile(r"[^a-z0-9\s]")
# Joiners inside a word ("G2-Esports", "team_liquid"); only used to find noise
_SEPARATOR_RE = re.compile(r"[-._]")


def normalize_team_name(
    name: Optional[str], noise_tokens: Iterable[str] = DEFAULT_NOISE_TOKENS
) -> str:
    """Normalize a team name for matching.

    Lowercases, folds accents, removes punctuation without inserting spaces
    ("Na'Vi" -> "navi", "Virtus.pro" -> "virtuspro"), drops generic tokens and
    collapses whitespace. Generic tokens joined by "-", "." or "_" are dropped
    too ("G2-Esports" -> "g2", "Team-Liquid" -> "liquid"). A name made only of
    generic tokens keeps them, so "Team" normalizes to "team" rather than to
    an empty string.

    Examples:
        normalize_team_name("FaZe Clan") -> "faze"
        normalize_team_name("Team Liquid Gaming") -> "liquid"
        normalize_team_name("Natus Vincere") -> "natus vincere"
        normalize_team_name("G2-Esports") -> "g2"
    """
    s = (name or "").lower().strip()
    s = s.translate(_CHAR_MAP)
    s = unicodedata.normalize("NFKD", s)
    s = "".join(c for c in s if not unicodedata.combining(c))
    noise = noise_tokens if isinstance(noise_tokens, (set, frozenset)) else set(noise_tokens)

    kept: List[str] = []
    all_parts: List[str] = []
    for word in s.split():
        parts = [_PUNCTUATION_RE.sub("", p) for p in _SEPARATOR_RE.split(word)]
        parts = [p for p in parts if p]
        all_parts.extend(parts)
        token = "".join(p for p in parts if p not in noise)
        if token and token not in noise:
            kept.append(token)

    # A name made only of generic tokens keeps all of them
    return " ".join(kept or all_parts)
