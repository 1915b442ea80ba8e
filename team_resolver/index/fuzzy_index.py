"""In-memory fuzzy index over a snapshot of known GRID teams.

Safety net for the authoritative store: it is built once per process and
searched without any I/O. Scores are distances (0.0 = perfect, 1.0 = no
match), computed per searchable key as ``1 - weight * ratio / 100`` with the
key weights below, so only a match on the display name itself can reach 0.
"""

from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, TYPE_CHECKING

from loguru import logger
from rapidfuzz import fuzz, process

from team_resolver.models.team import CanonicalTeamRecord, IndexMatch
from team_resolver.normalization.normalizer import normalize_team_name
from team_resolver.storage.team_store import StoreError, TeamStore

if TYPE_CHECKING:
    from team_resolver.aliases.alias_table import AliasTable
    from team_resolver.clients.grid_client import GridClient

KEY_WEIGHTS = {
    "name": 1.0,
    "normalized_name": 0.9,
    "aliases": 0.85,
}

# Candidates further away than this are not returned at all
MATCH_THRESHOLD = 0.4

# Lowest raw ratio that can still land under MATCH_THRESHOLD (weight 1.0 key)
_SCORE_CUTOFF = (1.0 - MATCH_THRESHOLD) * 100


class _Choice(NamedTuple):
    entry: int
    weight: float


class FuzzyIndex:
    """Approximate team-name search over a fixed set of records.

    Usage:
        index = FuzzyIndex(records, aliases_by_name={"natus vincere": ["navi"]})
        index.search("navi", game="cs2", limit=3)
    """

    def __init__(
        self,
        records: Iterable[CanonicalTeamRecord],
        aliases_by_name: Optional[Mapping[str, List[str]]] = None,
    ):
        self._records: List[CanonicalTeamRecord] = []
        self._by_id: Dict[str, CanonicalTeamRecord] = {}
        self._choice_strings: List[str] = []
        self._choices: List[_Choice] = []

        aliases_by_name = aliases_by_name or {}
        seen_ids = set()
        for record in records:
            if record.id and record.id in seen_ids:
                continue
            seen_ids.add(record.id)
            self._add(record, aliases_by_name)

        logger.debug(
            f"FuzzyIndex built: {len(self._records)} teams, {len(self._choices)} searchable keys"
        )

    def _add(
        self, record: CanonicalTeamRecord, aliases_by_name: Mapping[str, List[str]]
    ) -> None:
        entry = len(self._records)
        self._records.append(record)
        if record.id:
            self._by_id[record.id] = record

        normalized = normalize_team_name(record.name)
        # Only the display name can score 0; a normalized-only match bottoms out at 0.1
        keys = [
            (record.name.lower().strip(), KEY_WEIGHTS["name"]),
            (normalized, KEY_WEIGHTS["normalized_name"]),
        ]
        for alias in aliases_by_name.get(normalized, []):
            alias_norm = normalize_team_name(alias)
            if alias_norm and alias_norm != normalized:
                keys.append((alias_norm, KEY_WEIGHTS["aliases"]))

        for key, weight in keys:
            if key:
                self._choice_strings.append(key)
                self._choices.append(_Choice(entry, weight))

    def search(
        self, query: str, game: Optional[str] = None, limit: int = 5
    ) -> List[IndexMatch]:
        """Ranked matches for a (normalized) query, best first.

        Records without a game match every game; records tagged with a game
        only match searches for that game.
        """
        query = query.lower().strip()
        if not query or not self._choices:
            return []

        best: Dict[int, float] = {}
        for _, ratio, position in process.extract(
            query,
            self._choice_strings,
            scorer=fuzz.ratio,
            limit=None,
            score_cutoff=_SCORE_CUTOFF,
        ):
            choice = self._choices[position]
            record = self._records[choice.entry]
            if game and record.game and record.game != game:
                continue
            distance = max(0.0, 1.0 - choice.weight * ratio / 100.0)
            if distance > MATCH_THRESHOLD:
                continue
            if distance < best.get(choice.entry, 2.0):
                best[choice.entry] = distance

        ranked = sorted(
            best.items(),
            key=lambda item: (item[1], len(self._records[item[0]].name)),
        )
        return [
            IndexMatch(record=self._records[entry], score=distance)
            for entry, distance in ranked[:limit]
        ]

    def get_by_id(self, team_id: str) -> Optional[CanonicalTeamRecord]:
        return self._by_id.get(team_id)

    @property
    def size(self) -> int:
        return len(self._records)


def _aliases_by_canonical_name(alias_table: "AliasTable", game: str) -> Dict[str, List[str]]:
    aliases: Dict[str, List[str]] = {}
    for entry in alias_table.entries(game):
        aliases.setdefault(normalize_team_name(entry.canonical_name), []).append(
            entry.normalized_alias
        )
    return aliases


async def build_fuzzy_index(
    store: Optional[TeamStore] = None,
    alias_table: Optional["AliasTable"] = None,
    live_client: Optional["GridClient"] = None,
    game: str = "cs2",
    seed_limit: int = 50,
) -> FuzzyIndex:
    """Builds the process-wide index from the best snapshot available.

    Prefers the full registry. When the registry is empty or unreachable and
    a live client is given, the curated team names are looked up upstream
    (at most ``seed_limit`` searches) and the best hit of each is indexed.
    """
    aliases = _aliases_by_canonical_name(alias_table, game) if alias_table else {}
    records: List[CanonicalTeamRecord] = []

    if store is not None:
        try:
            records = await store.fetch_all_records()
        except StoreError as e:
            logger.warning(f"Registry snapshot unavailable for fuzzy index: {e}")

    if not records and live_client is not None and alias_table is not None:
        names = sorted({e.canonical_name for e in alias_table.entries(game)})
        logger.info(
            f"Seeding fuzzy index from GRID for {min(len(names), seed_limit)} curated {game} teams"
        )
        seen = set()
        for name in names[:seed_limit]:
            results = await live_client.search_teams_by_name(name)
            if results and results[0].id not in seen:
                seen.add(results[0].id)
                records.append(results[0].model_copy(update={"game": game}))

    index = FuzzyIndex(records, aliases_by_name=aliases)
    logger.info(f"Fuzzy index ready with {index.size} teams")
    return index
