"""Data types shared by the search engine modules."""
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


DEFAULT_LIMIT = 20
DEFAULT_THRESHOLD = 0.4


class EntityType(str, Enum):
    """Kinds of planner records that can be searched."""
    TASKS = "tasks"
    LISTS = "lists"
    LABELS = "labels"


class SearchScope(str, Enum):
    """Which categories a combined search covers."""
    ALL = "all"
    TASKS = "tasks"
    LISTS = "lists"
    LABELS = "labels"

    def covers(self, entity_type: EntityType) -> bool:
        return self is SearchScope.ALL or self.value == entity_type.value


@dataclass(frozen=True)
class FieldSpec:
    """A searchable field and its weight in the aggregate score."""
    name: str
    weight: float

    def __post_init__(self):
        if not 0.0 < self.weight <= 1.0:
            raise ValueError(f"Field weight must be in (0, 1], got {self.weight} for {self.name!r}")


@dataclass(frozen=True)
class Record:
    """Immutable snapshot of one searchable entity.

    ``fields`` holds the text of every searchable field (missing text is
    stored as ``None``). ``payload`` is a read-only copy of the source entity,
    used for predicates such as ``is_completed`` and for display.
    """
    id: str
    fields: Mapping[str, Optional[str]]
    payload: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_entity(cls, entity: Mapping[str, Any], field_names: List[str]) -> "Record":
        """Snapshot a plain entity dict into a Record.

        Args:
            entity: Entity as returned by the planner store
            field_names: Names of the fields to index

        Returns:
            Record with text fields copied out of the entity
        """
        fields = {}
        for name in field_names:
            value = entity.get(name)
            fields[name] = None if value is None else str(value)

        return cls(
            id="" if entity.get("id") is None else str(entity["id"]),
            fields=MappingProxyType(fields),
            payload=MappingProxyType(dict(entity)),
        )

    def text(self, field_name: str) -> str:
        return self.fields.get(field_name) or ""

    @property
    def name(self) -> str:
        """Display name of the record (task, list and label names)."""
        name = self.fields.get("name")
        if name is None:
            name = self.payload.get("name")
        return "" if name is None else str(name)


# (start, end), both inclusive, offsets into the original field text
MatchRange = Tuple[int, int]


@dataclass(frozen=True)
class FieldMatchResult:
    """Outcome of matching a pattern against one field that did match."""
    field_name: str
    sub_score: float
    ranges: Tuple[MatchRange, ...] = ()


class _NoMatch:
    """Result of a field that produced no acceptable window."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH = _NoMatch()

FieldOutcome = Union[FieldMatchResult, _NoMatch]


@dataclass(frozen=True)
class ScoredResult:
    """A record that passed the threshold, with its score and per-field matches."""
    record: Record
    score: float
    per_field: Tuple[FieldMatchResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.record.id,
            "score": round(self.score, 6),
            "item": dict(self.record.payload),
            "matches": [
                {
                    "field": match.field_name,
                    "value": self.record.text(match.field_name),
                    "score": round(match.sub_score, 6),
                    "indices": [list(r) for r in match.ranges],
                }
                for match in self.per_field
            ],
        }


@dataclass
class SearchOptions:
    """Options for a search call.

    Out-of-range values are clamped instead of rejected: ``threshold`` to
    [0, 1] and ``limit`` to at least 1. ``include_completed`` only affects
    tasks.
    """
    limit: int = DEFAULT_LIMIT
    threshold: float = DEFAULT_THRESHOLD
    scope: SearchScope = SearchScope.ALL
    include_completed: bool = False

    def __post_init__(self):
        try:
            limit = int(self.limit)
        except (TypeError, ValueError, OverflowError):
            limit = DEFAULT_LIMIT
        self.limit = max(1, limit)

        try:
            threshold = float(self.threshold)
        except (TypeError, ValueError):
            threshold = DEFAULT_THRESHOLD
        if math.isnan(threshold):
            threshold = DEFAULT_THRESHOLD
        self.threshold = min(1.0, max(0.0, threshold))

        self.scope = SearchScope(self.scope)
        self.include_completed = bool(self.include_completed)

    @classmethod
    def from_partial(
        cls, options: Union["SearchOptions", Mapping[str, Any], None] = None
    ) -> "SearchOptions":
        """Build options from a partial mapping, filling in defaults.

        Keys set to ``None`` are treated as missing.
        """
        if isinstance(options, SearchOptions):
            return options
        if not options:
            return cls()

        known = ("limit", "threshold", "scope", "include_completed")
        values = {key: options[key] for key in known if options.get(key) is not None}
        return cls(**values)


@dataclass(frozen=True)
class Segment:
    """A run of display text, flagged when it is part of a match."""
    text: str
    matched: bool


@dataclass
class CombinedSearchResult:
    """Per-category ranked results of a multi-entity search."""
    tasks: List[ScoredResult] = field(default_factory=list)
    lists: List[ScoredResult] = field(default_factory=list)
    labels: List[ScoredResult] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return len(self.tasks) + len(self.lists) + len(self.labels)

    def for_entity(self, entity_type: EntityType) -> List[ScoredResult]:
        return getattr(self, entity_type.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [dict(r.record.payload) for r in self.tasks],
            "lists": [dict(r.record.payload) for r in self.lists],
            "labels": [dict(r.record.payload) for r in self.labels],
            "totalMatches": self.total_matches,
        }


@dataclass
class HighlightedSearchResult:
    """Combined results plus highlight segments for each matched task field."""
    results: CombinedSearchResult
    highlights: Dict[str, Dict[str, List[Segment]]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = self.results.to_dict()
        data["highlights"] = {
            record_id: {
                field_name: [{"text": s.text, "matched": s.matched} for s in segments]
                for field_name, segments in fields.items()
            }
            for record_id, fields in self.highlights.items()
        }
        return data
