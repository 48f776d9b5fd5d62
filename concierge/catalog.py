"""
Building index and entity resolver.

The index is built once from the campus catalog and is read-only afterwards.
`find_buildings` scores free text against every building:
- alias phrase found in the query -> fixed ALIAS score, listed first
- exact normalized name/id        -> +EXACT
- name contains query (or reverse) -> +CONTAINS
- per token: in name +TOKEN_NAME, else in id +TOKEN_ID, else in blob +TOKEN_BLOB
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Union

from concierge.errors import ConfigError
from concierge.text import normalize, tokenize
from concierge.types import Building, BuildingService

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_CATALOG_PATH = DATA_DIR / "campus_data.json"

# A match below this score is too weak to pin on the map.
CONFIDENT_MATCH_SCORE = 10

# phrase -> building id (many-to-one)
LOCATION_ALIASES: Dict[str, str] = {
    "dean": "dean-office",
    "dean office": "dean-office",
    "exam office": "exam-control-office",
    "exam control": "exam-control-office",
    "library": "pulchowk-library",
    # Scanned in table order: "fsu clinic" hits "fsu" first and resolves to FSU Office.
    "fsu": "fsu-office",
    "clinic": "fsu-clinic",
    "canteen": "campus-canteen",
    "mess": "campus-mess",
    "stationery": "om-stationery",
    "print shop": "om-stationery",
    "niraula": "niraula-stores",
    "robotics": "robotics-club",
    "electrical club": "electrical-club",
    "music club": "music-club",
    "seds": "seds-pulchowk",
    "locus": "locus-office",
    "atm": "nabil-bank-atm",
    "nabil atm": "nabil-bank-atm",
    "siddhartha atm": "siddhartha-bank-atm",
    "boys hostel": "block-a-hostel",
    "girls hostel": "girls-hostel",
    "msc hostel": "msc-hostel",
    "civil department": "dept-civil",
    "architecture department": "dept-architecture",
    "electrical department": "dept-electrical-electronics-computer",
    "mechanical department": "dept-mechanical-aerospace",
    "applied sciences": "dept-applied-sciences",
    "humanities": "dept-science-humanities",
}


@dataclass(frozen=True)
class MatchWeights:
    alias: int = 120
    exact: int = 100
    contains: int = 40
    token_name: int = 8
    token_id: int = 5
    token_blob: int = 2

    @classmethod
    def from_config(cls, cfg: Optional[Mapping[str, Any]]) -> "MatchWeights":
        if not cfg:
            return cls()
        known = {k: int(v) for k, v in cfg.items() if k in cls.__dataclass_fields__}
        return cls(**known)


class BuildingMatch(NamedTuple):
    building: Building
    score: int


class _IndexedBuilding(NamedTuple):
    building: Building
    name: str
    id: str
    blob: str


def _search_blob(building: Building) -> str:
    service_text = " ".join(
        part
        for service in building.services
        for part in (service.name, service.purpose, service.location)
        if part
    )
    return normalize(" ".join([building.id, building.name, building.description, service_text]))


class BuildingIndex:
    """
    Immutable, preprocessed view of the building catalog plus the alias table.
    """

    def __init__(
        self,
        buildings: Sequence[Building],
        aliases: Optional[Mapping[str, str]] = None,
        weights: Optional[MatchWeights] = None,
    ) -> None:
        self._buildings = tuple(buildings)
        self._by_id: Dict[str, Building] = {b.id: b for b in self._buildings}
        self._indexed = tuple(
            _IndexedBuilding(b, normalize(b.name), normalize(b.id), _search_blob(b))
            for b in self._buildings
        )
        alias_table = LOCATION_ALIASES if aliases is None else aliases
        # aliases pointing at unknown buildings are never usable
        self._aliases = tuple(
            (normalize(phrase), building_id)
            for phrase, building_id in alias_table.items()
            if building_id in self._by_id and normalize(phrase)
        )
        self.weights = weights or MatchWeights()

    @classmethod
    def from_dicts(cls, rows: Sequence[Dict[str, Any]], **kwargs) -> "BuildingIndex":
        try:
            buildings = [Building.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid building record: {exc}") from exc
        return cls(buildings, **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path, None] = None, **kwargs) -> "BuildingIndex":
        return cls.from_dicts(load_building_catalog(path), **kwargs)

    def __len__(self) -> int:
        return len(self._buildings)

    def __contains__(self, building_id: object) -> bool:
        return building_id in self._by_id

    @property
    def buildings(self) -> Sequence[Building]:
        return self._buildings

    def get(self, building_id: str) -> Optional[Building]:
        return self._by_id.get(building_id)

    def alias_ids(self, query: str) -> List[str]:
        normalized = normalize(query)
        matches: List[str] = []
        for phrase, building_id in self._aliases:
            if phrase in normalized and building_id not in matches:
                matches.append(building_id)
        return matches

    def score(self, building: Building, query: str) -> int:
        return self._score(self._indexed_for(building), normalize(query), tokenize(query))

    def find_buildings(self, query: str, limit: int = 3) -> List[BuildingMatch]:
        """
        Rank buildings for a free-text fragment, alias hits first.
        """
        normalized = normalize(query)
        tokens = tokenize(query)
        merged = [BuildingMatch(self._by_id[bid], self.weights.alias) for bid in self.alias_ids(query)]
        seen = {match.building.id for match in merged}

        scored = [
            BuildingMatch(item.building, self._score(item, normalized, tokens))
            for item in self._indexed
        ]
        scored = sorted((m for m in scored if m.score > 0), key=lambda m: m.score, reverse=True)
        for match in scored:
            if len(merged) >= limit:
                break
            if match.building.id in seen:
                continue
            seen.add(match.building.id)
            merged.append(match)
        return merged[:limit]

    def best_match(self, query: str, min_score: int = CONFIDENT_MATCH_SCORE) -> Optional[BuildingMatch]:
        matches = self.find_buildings(query, limit=1)
        if not matches or matches[0].score < min_score:
            return None
        return matches[0]

    def match_service(self, building: Building, query: str) -> Optional[BuildingService]:
        normalized = normalize(query)
        for service in building.services:
            name = normalize(service.name)
            if name and name in normalized:
                return service
        return None

    def _indexed_for(self, building: Building) -> _IndexedBuilding:
        for item in self._indexed:
            if item.building.id == building.id:
                return item
        return _IndexedBuilding(building, normalize(building.name), normalize(building.id), _search_blob(building))

    def _score(self, item: _IndexedBuilding, normalized: str, tokens: List[str]) -> int:
        if not normalized:
            return 0
        w = self.weights
        score = 0
        if item.name == normalized or item.id == normalized:
            score += w.exact
        if normalized in item.name or item.name in normalized:
            score += w.contains
        for token in tokens:
            if token in item.name:
                score += w.token_name
            elif token in item.id:
                score += w.token_id
            elif token in item.blob:
                score += w.token_blob
        return score


def load_building_catalog(path: Union[str, Path, None] = None) -> List[Dict[str, Any]]:
    """
    Read the raw building rows from a catalog JSON file ({"buildings": [...]} or a bare list).
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    if not catalog_path.exists():
        raise ConfigError(f"Building catalog not found: {catalog_path}")
    try:
        with catalog_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Building catalog is not valid JSON ({catalog_path}): {exc}") from exc
    rows = data.get("buildings", []) if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise ConfigError(f"Building catalog has no building list: {catalog_path}")
    return rows
