# team_resolver/aliases/cs2_aliases.py
#
# Curated CS2 aliases. Key: canonical short name, value: GRID display name,
# GRID id (empty when not yet looked up) and known aliases. Keys and aliases
# are normalized when the AliasTable is built.

CS2_TEAM_ALIASES = {
    # Tier 1 Teams
    "natus vincere": {
        "canonical_name": "Natus Vincere",
        "canonical_id": "",
        "aliases": ["navi", "na'vi", "natus", "natus vincere"],
    },
    "faze": {
        "canonical_name": "FaZe Clan",
        "canonical_id": "",
        "aliases": ["faze clan", "faze esports", "fazeclan"],
    },
    "liquid": {
        "canonical_name": "Team Liquid",
        "canonical_id": "",
        "aliases": ["team liquid", "tl", "teamliquid"],
    },
    "g2": {
        "canonical_name": "G2 Esports",
        "canonical_id": "",
        "aliases": ["g2 esports", "g2esports", "g2.esports"],
    },
    "vitality": {
        "canonical_name": "Team Vitality",
        "canonical_id": "",
        "aliases": ["team vitality", "vit", "vita"],
    },
    "heroic": {
        "canonical_name": "HEROIC",
        "canonical_id": "",
        "aliases": ["heroic gaming"],
    },
    "virtus pro": {
        "canonical_name": "Virtus.pro",
        "canonical_id": "",
        "aliases": ["virtuspro", "vp", "virtus.pro"],
    },
    "cloud9": {
        "canonical_name": "Cloud9",
        "canonical_id": "",
        "aliases": ["c9", "cloud 9"],
    },
    "mouz": {
        "canonical_name": "MOUZ",
        "canonical_id": "",
        "aliases": ["mousesports", "mouse", "mouz nxt"],
    },
    "spirit": {
        "canonical_name": "Team Spirit",
        "canonical_id": "",
        "aliases": ["team spirit", "spirit gaming"],
    },
    "astralis": {
        "canonical_name": "Astralis",
        "canonical_id": "",
        "aliases": ["astralis talent"],
    },
    "complexity": {
        "canonical_name": "Complexity Gaming",
        "canonical_id": "",
        "aliases": ["complexity gaming", "col", "complexity"],
    },
    "ence": {
        "canonical_name": "ENCE",
        "canonical_id": "",
        "aliases": ["ence esports"],
    },
    "eternal fire": {
        "canonical_name": "Eternal Fire",
        "canonical_id": "",
        "aliases": ["eternal fire", "ef"],
    },
    "falcons": {
        "canonical_name": "Falcons Esports",
        "canonical_id": "",
        "aliases": ["falcons", "falcons esports"],
    },
    "fnatic": {
        "canonical_name": "Fnatic",
        "canonical_id": "",
        "aliases": ["fnc"],
    },
    "furia": {
        "canonical_name": "FURIA Esports",
        "canonical_id": "",
        "aliases": ["furia", "furia esports"],
    },
    "monte": {
        "canonical_name": "Monte",
        "canonical_id": "",
        "aliases": ["monte esports"],
    },
    "ninjas in pyjamas": {
        "canonical_name": "Ninjas in Pyjamas",
        "canonical_id": "",
        "aliases": ["ninjas in pyjamas", "nip", "ninjas"],
    },
    "pain": {
        "canonical_name": "paiN Gaming",
        "canonical_id": "",
        "aliases": ["pain gaming", "pain", "paingaming"],
    },
    "saw": {
        "canonical_name": "SAW",
        "canonical_id": "",
        "aliases": ["saw esports"],
    },
    "the mongolz": {
        "canonical_name": "The MongolZ",
        "canonical_id": "",
        "aliases": ["mongolz", "the mongolz", "themongolz"],
    },
    "3dmax": {
        "canonical_name": "3DMAX",
        "canonical_id": "",
        "aliases": ["3d max"],
    },
    "betboom": {
        "canonical_name": "BetBoom Team",
        "canonical_id": "",
        "aliases": ["betboom", "betboom team"],
    },
    "big": {
        "canonical_name": "BIG",
        "canonical_id": "",
        "aliases": ["big clan"],
    },
    "gamerlegion": {
        "canonical_name": "GamerLegion",
        "canonical_id": "",
        "aliases": ["gamer legion", "gl"],
    },
    "imperial": {
        "canonical_name": "Imperial Esports",
        "canonical_id": "",
        "aliases": ["imperial", "imperial esports"],
    },
    "m80": {
        "canonical_name": "M80",
        "canonical_id": "",
        "aliases": ["m80 esports"],
    },
    "mibr": {
        "canonical_name": "MIBR",
        "canonical_id": "",
        "aliases": ["made in brazil"],
    },
    "nrg": {
        "canonical_name": "NRG Esports",
        "canonical_id": "",
        "aliases": ["nrg", "nrg esports"],
    },
    "og": {
        "canonical_name": "OG",
        "canonical_id": "",
        "aliases": ["og esports"],
    },
    "wildcard": {
        "canonical_name": "Wildcard Gaming",
        "canonical_id": "",
        "aliases": ["wildcard", "wildcard gaming"],
    },
}
