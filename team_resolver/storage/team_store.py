# team_resolver/storage/team_store.py
"""Authoritative GRID team registry stored in Postgres (Supabase).

The ``grid_teams`` table and the ``search_teams_by_trigram`` function are
created by ``sql/grid_teams.sql``. Similarity search needs the ``pg_trgm``
extension; without it the function call fails and callers switch to
``search_basic``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger
from postgrest.exceptions import APIError
from postgrest.types import CountMethod
from supabase import AsyncClient

from team_resolver.config.settings import settings
from team_resolver.models.team import CanonicalTeamRecord, StoreMatch

# Postgres "undefined_function" and PostgREST "function not found in schema cache"
TRIGRAM_UNAVAILABLE_CODES = {"42883", "PGRST202"}

# Scores assigned by the substring fallback, mirroring exact/prefix/contains
BASIC_EXACT_SIMILARITY = 1.0
BASIC_PREFIX_SIMILARITY = 0.8
BASIC_CONTAINS_SIMILARITY = 0.5

_RECORD_COLUMNS = "grid_id,name,color_primary,color_secondary,logo_url,game"


class StoreError(Exception):
    """Custom exception for team registry failures."""

    pass


class TrigramUnavailableError(StoreError):
    """Raised when pg_trgm (or the similarity function) is missing."""

    pass


def _clamp_similarity(value: Any) -> float:
    return min(1.0, max(0.0, float(value or 0.0)))


def _escape_like(query: str) -> str:
    return query.replace("%", "").replace("*", "").replace("_", r"\_")


class TeamStore:
    """Search and maintenance operations on the GRID team registry table."""

    def __init__(
        self,
        client: AsyncClient,
        table_name: Optional[str] = None,
        trigram_function: Optional[str] = None,
    ):
        self.client = client
        self.table_name = table_name or settings.grid_teams_table
        self.trigram_function = trigram_function or settings.trigram_function

    # --- Search ---

    async def search_by_trigram(self, query: str, limit: int = 5) -> List[StoreMatch]:
        """Trigram similarity search, best match first.

        Raises:
            TrigramUnavailableError: pg_trgm or the search function is missing.
            StoreError: any other registry failure.
        """
        query_lower = query.lower().strip()
        try:
            response = await self.client.rpc(
                self.trigram_function, {"query": query_lower, "match_limit": limit}
            ).execute()
        except APIError as e:
            if e.code in TRIGRAM_UNAVAILABLE_CODES:
                raise TrigramUnavailableError(
                    f"Trigram search unavailable ({e.code}): {e.message}"
                ) from e
            raise StoreError(f"Trigram search failed: {e.message}") from e
        except Exception as e:
            raise StoreError(f"Trigram search failed: {e}") from e

        matches = [
            StoreMatch(
                id=str(row["grid_id"]),
                name=row["name"],
                similarity=_clamp_similarity(row.get("similarity")),
            )
            for row in response.data or []
        ]
        matches.sort(key=lambda m: m.similarity, reverse=True)
        return matches[:limit]

    async def search_basic(self, query: str, limit: int = 5) -> List[StoreMatch]:
        """Exact, then starts-with, then contains match on the lowercased name."""
        query_lower = query.lower().strip()
        pattern = _escape_like(query_lower)
        if not pattern:
            return []

        try:
            exact = await self._select_names(
                lambda q: q.eq("name_lower", query_lower), 1
            )
            if exact:
                return self._to_matches(exact, BASIC_EXACT_SIMILARITY, limit)

            starts_with = await self._select_names(
                lambda q: q.ilike("name_lower", f"{pattern}%"), limit
            )
            if starts_with:
                return self._to_matches(starts_with, BASIC_PREFIX_SIMILARITY, limit)

            contains = await self._select_names(
                lambda q: q.ilike("name_lower", f"%{pattern}%"), limit
            )
            return self._to_matches(contains, BASIC_CONTAINS_SIMILARITY, limit)
        except APIError as e:
            raise StoreError(f"Basic search failed: {e.message}") from e
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Basic search failed: {e}") from e

    async def _select_names(self, apply_filter, limit: int) -> List[Dict[str, Any]]:
        # PostgREST cannot order by length(name); over-fetch and sort locally
        query = self.client.table(self.table_name).select("grid_id,name")
        response = await apply_filter(query).order("name").limit(limit * 4).execute()
        rows = response.data or []
        rows.sort(key=lambda r: (len(r["name"]), r["name"]))
        return rows

    @staticmethod
    def _to_matches(
        rows: List[Dict[str, Any]], similarity: float, limit: int
    ) -> List[StoreMatch]:
        return [
            StoreMatch(id=str(r["grid_id"]), name=r["name"], similarity=similarity)
            for r in rows[:limit]
        ]

    # --- Registry probes ---

    async def get_record_count(self) -> int:
        """Total number of teams in the registry."""
        try:
            response = (
                await self.client.table(self.table_name)
                .select("grid_id", count=CountMethod.exact)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise StoreError(f"Record count failed: {e.message}") from e
        except Exception as e:
            raise StoreError(f"Record count failed: {e}") from e
        return int(response.count or 0)

    async def get_last_sync_time(self) -> Optional[datetime]:
        """Most recent ``updated_at`` in the registry, None if never synced."""
        try:
            response = (
                await self.client.table(self.table_name)
                .select("updated_at")
                .order("updated_at", desc=True)
                .limit(1)
                .execute()
            )
        except APIError as e:
            raise StoreError(f"Last sync lookup failed: {e.message}") from e
        except Exception as e:
            raise StoreError(f"Last sync lookup failed: {e}") from e

        rows = response.data or []
        if not rows or not rows[0].get("updated_at"):
            return None
        last_sync = datetime.fromisoformat(rows[0]["updated_at"])
        if last_sync.tzinfo is None:
            last_sync = last_sync.replace(tzinfo=timezone.utc)
        return last_sync

    async def fetch_all_records(self, page_size: int = 1000) -> List[CanonicalTeamRecord]:
        """Snapshot of the whole registry, used to build the fuzzy index."""
        records: List[CanonicalTeamRecord] = []
        offset = 0
        try:
            while True:
                response = (
                    await self.client.table(self.table_name)
                    .select(_RECORD_COLUMNS)
                    .order("grid_id")
                    .range(offset, offset + page_size - 1)
                    .execute()
                )
                rows = response.data or []
                records.extend(self._row_to_record(row) for row in rows)
                if len(rows) < page_size:
                    break
                offset += page_size
        except APIError as e:
            raise StoreError(f"Registry snapshot failed: {e.message}") from e
        except Exception as e:
            raise StoreError(f"Registry snapshot failed: {e}") from e

        logger.debug(f"Fetched {len(records)} team records from {self.table_name}")
        return records

    @staticmethod
    def _row_to_record(row: Dict[str, Any]) -> CanonicalTeamRecord:
        return CanonicalTeamRecord(
            id=str(row["grid_id"]),
            name=row["name"],
            color_primary=row.get("color_primary"),
            color_secondary=row.get("color_secondary"),
            logo_url=row.get("logo_url"),
            game=row.get("game"),
        )

    # --- Writes ---

    async def upsert_teams(
        self, records: List[CanonicalTeamRecord], batch_size: int = 500
    ) -> Dict[str, int]:
        """Bulk upsert on ``grid_id``. Returns inserted/updated counts.

        ``game`` is never written, so a curated game assignment survives syncs.
        """
        if not records:
            logger.debug(f"No records provided for upsert to {self.table_name}.")
            return {"inserted": 0, "updated": 0}

        before_count = await self.get_record_count()
        now = datetime.now(timezone.utc).isoformat()

        for start in range(0, len(records), batch_size):
            batch = records[start : start + batch_size]
            rows = [
                {
                    "grid_id": r.id,
                    "name": r.name,
                    "name_lower": r.name.lower().strip(),
                    "color_primary": r.color_primary,
                    "color_secondary": r.color_secondary,
                    "logo_url": r.logo_url,
                    "updated_at": now,
                }
                for r in batch
            ]
            try:
                await self.client.table(self.table_name).upsert(
                    rows, on_conflict="grid_id"
                ).execute()
            except APIError as e:
                logger.error(f"Error during upsert to {self.table_name}: {e.message}")
                raise StoreError(f"Upsert failed: {e.message}") from e
            except Exception as e:
                raise StoreError(f"Upsert failed: {e}") from e

            processed = min(start + batch_size, len(records))
            logger.info(f"Upserted {processed}/{len(records)} teams to {self.table_name}")

        after_count = await self.get_record_count()
        inserted = max(0, after_count - before_count)
        updated = max(0, len(records) - inserted)
        return {"inserted": inserted, "updated": updated}
