# team_resolver/resolution/resolver.py
"""Resolves free-text market team names to canonical GRID teams.

Tiers run in a fixed order and the first confident hit wins:

1. Alias table: curated, exact lookup on the normalized name.
2. Store: trigram search over the authoritative registry.
3. Fuzzy index: in-memory snapshot, no I/O.
4. Live: paged search against GRID Central Data.

Every outcome, including "not found", is cached for a fixed TTL. A tier that
fails is logged and treated as a miss; only cache errors escape ``resolve``.
"""

import asyncio
from collections import Counter
from typing import Dict, List, Optional, Sequence

from loguru import logger

from team_resolver.aliases.alias_table import AliasTable, default_alias_table
from team_resolver.cache.resolution_cache import ResolutionCache, get_cache_key
from team_resolver.clients.grid_client import GridClient
from team_resolver.config.settings import settings
from team_resolver.index.fuzzy_index import FuzzyIndex, build_fuzzy_index
from team_resolver.models.enums import Confidence, ResolutionSource, TierErrorKind
from team_resolver.models.resolution import (
    MarketTeams,
    ResolutionStats,
    ResolvedTeam,
    TierResult,
)
from team_resolver.normalization.normalizer import normalize_team_name
from team_resolver.storage.supabase_client import initialize_supabase
from team_resolver.storage.team_store import (
    StoreError,
    TeamStore,
    TrigramUnavailableError,
)


def store_confidence(similarity: float) -> Confidence:
    """Calibrates a trigram similarity (1.0 = identical)."""
    if similarity >= 0.99:
        return Confidence.EXACT
    if similarity >= 0.70:
        return Confidence.HIGH
    if similarity >= 0.50:
        return Confidence.MEDIUM
    return Confidence.LOW


def index_confidence(distance: float) -> Confidence:
    """Calibrates a fuzzy index distance (0.0 = identical)."""
    if distance == 0:
        return Confidence.EXACT
    if distance < 0.2:
        return Confidence.HIGH
    if distance < 0.4:
        return Confidence.MEDIUM
    return Confidence.LOW


class TeamResolver:
    """Four-tier team name resolver.

    All collaborators are optional; a missing one makes its tier miss with
    ``unavailable``. The cache is the only shared mutable state.

    Usage:
        resolver = TeamResolver(alias_table, fuzzy_index=index, store=store)
        team = await resolver.resolve("Navi", game="cs2")
    """

    def __init__(
        self,
        alias_table: Optional[AliasTable] = None,
        fuzzy_index: Optional[FuzzyIndex] = None,
        store: Optional[TeamStore] = None,
        live_client: Optional[GridClient] = None,
        cache: Optional[ResolutionCache] = None,
        store_search_limit: Optional[int] = None,
        index_search_limit: Optional[int] = None,
    ):
        self.alias_table = alias_table or default_alias_table()
        self.fuzzy_index = fuzzy_index
        self.store = store
        self.live_client = live_client
        self.cache = cache or ResolutionCache()
        self.store_search_limit = store_search_limit or settings.store_search_limit
        self.index_search_limit = index_search_limit or settings.index_search_limit

        self._hits_by_source: Counter = Counter()
        self._tier_errors: Counter = Counter()
        self._misses = 0
        self._cache_hits = 0

    async def resolve(
        self, name: Optional[str], game: Optional[str] = None
    ) -> Optional[ResolvedTeam]:
        """Resolves one name; ``None`` when no tier produced a usable match."""
        if not name or not name.strip():
            return None
        game = game or settings.default_game

        cache_key = get_cache_key(name, game)
        found, cached = self.cache.get(cache_key)
        if found:
            self._cache_hits += 1
            outcome = cached.canonical_name if cached else "not found"
            logger.debug(f"Cache hit for '{name}' ({game}): {outcome}")
            return cached

        normalized = normalize_team_name(name)
        tiers = (
            lambda: self._try_alias(name, normalized, game),
            lambda: self._try_store(name),
            lambda: self._try_index(name, normalized, game),
            lambda: self._try_live(name, normalized),
        )

        for run_tier in tiers:
            result = await run_tier()
            if result.resolved is not None:
                resolved = result.resolved
                self._hits_by_source[resolved.source.value] += 1
                logger.info(
                    f"Resolved '{name}' -> '{resolved.canonical_name}' "
                    f"via {resolved.source.value} ({resolved.confidence.value})"
                )
                self.cache.set(cache_key, resolved)
                return resolved

            self._tier_errors[f"{result.source.value}.{result.error.kind.value}"] += 1
            logger.debug(
                f"Tier {result.source.value} missed '{name}': "
                f"{result.error.kind.value} {result.error.message}".rstrip()
            )

        self._misses += 1
        logger.info(f"Could not resolve '{name}' ({game}); caching negative result")
        self.cache.set(cache_key, None)
        return None

    # --- Tiers ---

    async def _try_alias(self, name: str, normalized: str, game: str) -> TierResult:
        source = ResolutionSource.ALIAS
        if game not in self.alias_table.supported_games:
            return TierResult.miss(source, TierErrorKind.SKIPPED, f"no aliases for {game}")

        entry = self.alias_table.lookup(normalized, game)
        if entry is None:
            return TierResult.miss(source, TierErrorKind.NO_CANDIDATES)

        return TierResult.hit(
            ResolvedTeam(
                canonical_id=entry.canonical_id,
                canonical_name=entry.canonical_name,
                query_name=name,
                confidence=Confidence.EXACT,
                source=source,
                raw_score=1.0,
            )
        )

    async def _try_store(self, name: str) -> TierResult:
        source = ResolutionSource.STORE
        if self.store is None:
            return TierResult.miss(source, TierErrorKind.UNAVAILABLE, "no store configured")

        try:
            if await self.store.get_record_count() == 0:
                return TierResult.miss(source, TierErrorKind.SKIPPED, "registry is empty")

            cap = Confidence.EXACT
            try:
                matches = await self.store.search_by_trigram(name, self.store_search_limit)
            except TrigramUnavailableError as e:
                logger.warning(f"{e}; falling back to basic registry search")
                matches = await self.store.search_basic(name, self.store_search_limit)
                cap = Confidence.MEDIUM
        except StoreError as e:
            logger.warning(f"Registry search failed for '{name}': {e}")
            return TierResult.miss(source, TierErrorKind.UNAVAILABLE, str(e))
        except Exception as e:
            logger.exception(f"Unexpected registry error for '{name}': {e}")
            return TierResult.miss(source, TierErrorKind.FAILED, str(e))

        if not matches:
            return TierResult.miss(source, TierErrorKind.NO_CANDIDATES)

        top = matches[0]
        confidence = store_confidence(top.similarity).at_most(cap)
        if confidence == Confidence.LOW:
            return TierResult.miss(
                source,
                TierErrorKind.BELOW_THRESHOLD,
                f"best '{top.name}' at {top.similarity:.2f}",
            )

        return TierResult.hit(
            ResolvedTeam(
                canonical_id=top.id,
                canonical_name=top.name,
                query_name=name,
                confidence=confidence,
                source=source,
                raw_score=top.similarity,
            )
        )

    async def _try_index(self, name: str, normalized: str, game: str) -> TierResult:
        source = ResolutionSource.INDEX
        if self.fuzzy_index is None:
            return TierResult.miss(source, TierErrorKind.UNAVAILABLE, "no index built")

        try:
            matches = self.fuzzy_index.search(normalized, game, self.index_search_limit)
        except Exception as e:
            logger.exception(f"Fuzzy index search failed for '{name}': {e}")
            return TierResult.miss(source, TierErrorKind.FAILED, str(e))

        if not matches:
            return TierResult.miss(source, TierErrorKind.NO_CANDIDATES)

        top = matches[0]
        confidence = index_confidence(top.score)
        if confidence == Confidence.LOW:
            return TierResult.miss(
                source,
                TierErrorKind.BELOW_THRESHOLD,
                f"best '{top.record.name}' at {top.score:.2f}",
            )

        return TierResult.hit(
            ResolvedTeam(
                canonical_id=top.record.id,
                canonical_name=top.record.name,
                query_name=name,
                confidence=confidence,
                source=source,
                raw_score=top.score,
            )
        )

    async def _try_live(self, name: str, normalized: str) -> TierResult:
        source = ResolutionSource.LIVE
        if self.live_client is None:
            return TierResult.miss(source, TierErrorKind.UNAVAILABLE, "no GRID client")

        try:
            results = await self.live_client.search_teams_by_name(name)
        except Exception as e:
            logger.exception(f"Live GRID search failed for '{name}': {e}")
            return TierResult.miss(source, TierErrorKind.FAILED, str(e))

        if not results:
            return TierResult.miss(source, TierErrorKind.NO_CANDIDATES)

        # Any live hit is accepted; only an exact name match is trusted
        top = results[0]
        exact = normalize_team_name(top.name) == normalized
        return TierResult.hit(
            ResolvedTeam(
                canonical_id=top.id,
                canonical_name=top.name,
                query_name=name,
                confidence=Confidence.EXACT if exact else Confidence.LOW,
                source=source,
                raw_score=1.0 if exact else None,
            )
        )

    # --- Batch helpers ---

    async def resolve_many(
        self, names: Sequence[str], game: Optional[str] = None
    ) -> Dict[str, Optional[ResolvedTeam]]:
        """Resolves a batch, once per distinct normalized name.

        Every input string is a key of the result, blank ones mapping to None.
        """
        groups: Dict[str, List[str]] = {}
        for name in names:
            if not name or not name.strip():
                continue
            group_key = normalize_team_name(name) or name.strip().lower()
            groups.setdefault(group_key, []).append(name)

        representatives = [members[0] for members in groups.values()]
        logger.debug(
            f"Resolving {len(names)} names as {len(representatives)} unique teams"
        )
        resolved = await asyncio.gather(
            *(self.resolve(name, game) for name in representatives)
        )

        results: Dict[str, Optional[ResolvedTeam]] = {name: None for name in names}
        for members, team in zip(groups.values(), resolved):
            for name in members:
                results[name] = team
        return results

    async def resolve_market_teams(
        self, team1: str, team2: str, game: Optional[str] = None
    ) -> MarketTeams:
        """Resolves both sides of a two-outcome market concurrently."""
        first, second = await asyncio.gather(
            self.resolve(team1, game), self.resolve(team2, game)
        )
        return MarketTeams(team1=first, team2=second)

    # --- Diagnostics ---

    def get_resolution_stats(self, game: Optional[str] = None) -> ResolutionStats:
        game = game or settings.default_game
        return ResolutionStats(
            game=game,
            alias_count=self.alias_table.alias_count(game),
            supported_games=self.alias_table.supported_games,
            index_size=self.fuzzy_index.size if self.fuzzy_index else 0,
            cache_size=self.cache.size,
            hits_by_source=dict(self._hits_by_source),
            misses=self._misses,
            cache_hits=self._cache_hits,
            tier_errors=dict(self._tier_errors),
        )


async def build_team_resolver(
    game: Optional[str] = None, use_live: bool = True
) -> TeamResolver:
    """Wires a resolver from settings: Supabase store, GRID client, index, cache."""
    game = game or settings.default_game
    alias_table = default_alias_table()

    supabase = await initialize_supabase()
    store = TeamStore(supabase) if supabase else None

    live_client = None
    if use_live and settings.grid_api_key:
        live_client = GridClient()
    elif use_live:
        logger.warning("GRID_API_KEY not set; live tier disabled.")

    fuzzy_index = await build_fuzzy_index(
        store=store, alias_table=alias_table, live_client=live_client, game=game
    )
    return TeamResolver(
        alias_table=alias_table,
        fuzzy_index=fuzzy_index,
        store=store,
        live_client=live_client,
    )
