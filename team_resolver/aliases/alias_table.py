from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from team_resolver.models.team import AliasEntry
from team_resolver.normalization.normalizer import normalize_team_name


class AliasConflictError(ValueError):
    """Raised when one normalized alias points at two different teams of a game."""

    pass


class AliasTable:
    """Immutable, per-game map from normalized alias to curated canonical team.

    Lookups are exact only. Keys are normalized once, at construction.
    """

    def __init__(self, entries_by_game: Mapping[str, List[AliasEntry]]):
        self._tables: Dict[str, Dict[str, AliasEntry]] = {}
        self._canonical_counts: Dict[str, int] = {}

        for game, entries in entries_by_game.items():
            table: Dict[str, AliasEntry] = {}
            for entry in entries:
                key = normalize_team_name(entry.normalized_alias)
                if not key:
                    continue
                existing = table.get(key)
                if existing and existing.canonical_name != entry.canonical_name:
                    raise AliasConflictError(
                        f"Alias '{key}' for {game} maps to both "
                        f"'{existing.canonical_name}' and '{entry.canonical_name}'"
                    )
                table[key] = entry.model_copy(update={"normalized_alias": key})
            self._tables[game] = table
            self._canonical_counts[game] = len(
                {e.canonical_name for e in table.values()}
            )

        key_counts = {game: len(table) for game, table in self._tables.items()}
        logger.debug(f"AliasTable loaded with keys per game: {key_counts}")

    @classmethod
    def from_mapping(
        cls, mapping_by_game: Mapping[str, Mapping[str, Mapping[str, Any]]]
    ) -> "AliasTable":
        """Builds a table from ``{game: {key: {canonical_name, canonical_id, aliases}}}``.

        The key and every alias of a team become lookup keys for that team.
        """
        entries_by_game: Dict[str, List[AliasEntry]] = {}
        for game, teams in mapping_by_game.items():
            entries: List[AliasEntry] = []
            for key, team in teams.items():
                canonical_name = team["canonical_name"]
                canonical_id = team.get("canonical_id") or ""
                for alias in [key, canonical_name, *team.get("aliases", [])]:
                    entries.append(
                        AliasEntry(
                            normalized_alias=alias,
                            canonical_name=canonical_name,
                            canonical_id=canonical_id,
                        )
                    )
            entries_by_game[game] = entries
        return cls(entries_by_game)

    def lookup(self, normalized_name: str, game: str) -> Optional[AliasEntry]:
        """Exact lookup; games without a curated table always miss."""
        table = self._tables.get(game)
        if not table:
            return None
        return table.get(normalized_name)

    @property
    def supported_games(self) -> List[str]:
        return [game for game, table in self._tables.items() if table]

    def alias_count(self, game: str) -> int:
        """Number of curated teams (not lookup keys) for a game."""
        return self._canonical_counts.get(game, 0)

    def entries(self, game: str) -> List[AliasEntry]:
        return list(self._tables.get(game, {}).values())


def default_alias_table() -> AliasTable:
    """The curated table shipped with the package (CS2 only)."""
    from team_resolver.aliases.cs2_aliases import CS2_TEAM_ALIASES

    return AliasTable.from_mapping({"cs2": CS2_TEAM_ALIASES})
