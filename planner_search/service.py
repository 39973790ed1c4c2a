"""Multi-entity search service for tasks, lists and labels.

Fans one query out to an index per entity type and merges the ranked
results. Indexes are plain values owned by the caller (or by a
``SearchService``) and are rebuilt explicitly after the planner data changes.
"""
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from planner_search.config import SearchConfig, get_config
from planner_search.highlight import highlight
from planner_search.index import EntityLike, Index, build_index, empty_index, refresh_index
from planner_search.models import (
    CombinedSearchResult,
    EntityType,
    FieldSpec,
    HighlightedSearchResult,
    Record,
    ScoredResult,
    SearchOptions,
)
from planner_search.search import FuzzySearchEngine, RecordPredicate, SearchEngine


TASK_FIELDS = (
    FieldSpec("name", 0.7),
    FieldSpec("description", 0.3),
)

LIST_FIELDS = (
    FieldSpec("name", 0.8),
    FieldSpec("emoji", 0.2),
)

LABEL_FIELDS = (
    FieldSpec("name", 0.8),
    FieldSpec("emoji", 0.2),
)

ENTITY_FIELDS = {
    EntityType.TASKS: TASK_FIELDS,
    EntityType.LISTS: LIST_FIELDS,
    EntityType.LABELS: LABEL_FIELDS,
}

# Tasks collect every matching window for highlighting
FIND_ALL_MATCHES = {
    EntityType.TASKS: True,
    EntityType.LISTS: False,
    EntityType.LABELS: False,
}

EXACT_SEARCH_FIELDS = ("name", "description", "priority")

RecordSource = Callable[[], Iterable[EntityLike]]
OptionsLike = Union[SearchOptions, Mapping[str, Any], None]


def is_open_task(record: Record) -> bool:
    return not record.payload.get("is_completed")


def predicate_for(entity_type: EntityType, options: SearchOptions) -> Optional[RecordPredicate]:
    """Entity-specific filter implied by the options (tasks only)."""
    if entity_type is EntityType.TASKS and not options.include_completed:
        return is_open_task
    return None


def new_index(entity_type: EntityType) -> Index:
    """Unbuilt index configured for an entity type."""
    entity_type = EntityType(entity_type)
    return empty_index(entity_type, ENTITY_FIELDS[entity_type], FIND_ALL_MATCHES[entity_type])


def index_entities(entity_type: EntityType, entities: Iterable[EntityLike]) -> Index:
    """Build an index for an entity type with its standard field weights."""
    entity_type = EntityType(entity_type)
    return build_index(entity_type, entities, ENTITY_FIELDS[entity_type], FIND_ALL_MATCHES[entity_type])


def search_all(
    indexes: Mapping[EntityType, Index],
    query: str,
    options: OptionsLike = None,
    engine: Optional[SearchEngine] = None,
) -> CombinedSearchResult:
    """Run one query against the task, list and label indexes.

    Categories outside the requested scope, or without an index, come back
    as empty lists.

    Args:
        indexes: Index per entity type
        query: Search query string
        options: SearchOptions or a partial mapping of them
        engine: Engine to use (defaults to FuzzySearchEngine)

    Returns:
        CombinedSearchResult with per-category ranked results
    """
    options = SearchOptions.from_partial(options)
    engine = engine or FuzzySearchEngine()
    result = CombinedSearchResult()

    if not query or not query.strip():
        return result

    for entity_type in EntityType:
        if not options.scope.covers(entity_type):
            continue
        index = indexes.get(entity_type)
        if index is None:
            continue
        hits = engine.search(index, query, options, predicate_for(entity_type, options))
        setattr(result, entity_type.value, hits)

    return result


class SearchService:
    """Owns the task, list and label indexes and answers queries against them.

    Record sources are optional callables returning the current entities of
    one type. A query against an index that was never built builds it from
    its source first; without a source the category stays empty.

    Not safe to ``refresh`` an entity type while a search on it is running.
    """

    def __init__(self, engine: Optional[SearchEngine] = None, config: Optional[SearchConfig] = None):
        self.engine = engine or FuzzySearchEngine()
        self.config = config or get_config().search
        self._indexes: Dict[EntityType, Index] = {
            entity_type: new_index(entity_type) for entity_type in EntityType
        }
        self._sources: Dict[EntityType, RecordSource] = {}

    # ------------------------------------------------------------------
    # Index lifecycle
    # ------------------------------------------------------------------

    def register_source(self, entity_type: EntityType, source: RecordSource) -> None:
        """Set the callable used to (re)load records of an entity type."""
        self._sources[EntityType(entity_type)] = source

    def refresh(self, entity_type: EntityType, records: Optional[Iterable[EntityLike]] = None) -> Index:
        """Rebuild one index.

        Args:
            entity_type: Index to rebuild
            records: New records; if omitted, loaded from the registered source

        Returns:
            The rebuilt index
        """
        entity_type = EntityType(entity_type)
        if records is None:
            source = self._sources.get(entity_type)
            records = source() if source is not None else []

        self._indexes[entity_type] = refresh_index(self._indexes[entity_type], records)
        return self._indexes[entity_type]

    def refresh_all(self, records: Optional[Mapping[EntityType, Iterable[EntityLike]]] = None) -> None:
        """Rebuild every index, from ``records`` where given and sources otherwise."""
        records = records or {}
        for entity_type in EntityType:
            self.refresh(entity_type, records.get(entity_type))

    def index(self, entity_type: EntityType) -> Index:
        """Current index for an entity type, built lazily on first use."""
        entity_type = EntityType(entity_type)
        current = self._indexes[entity_type]
        if not current.is_built and entity_type in self._sources:
            current = self.refresh(entity_type)
        return current

    def indexes(self) -> Dict[EntityType, Index]:
        return {entity_type: self.index(entity_type) for entity_type in EntityType}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _options(self, options: OptionsLike) -> SearchOptions:
        """Fill in missing options from configuration."""
        if isinstance(options, SearchOptions):
            return options
        values = {
            "limit": self.config.default_limit,
            "threshold": self.config.default_threshold,
        }
        for key, value in (options or {}).items():
            if value is not None:
                values[key] = value
        return SearchOptions.from_partial(values)

    def search(self, entity_type: EntityType, query: str, options: OptionsLike = None) -> List[ScoredResult]:
        """Search a single entity type."""
        entity_type = EntityType(entity_type)
        options = self._options(options)
        if not query or not query.strip():
            return []
        return self.engine.search(
            self.index(entity_type), query, options, predicate_for(entity_type, options)
        )

    def search_tasks(self, query: str, options: OptionsLike = None) -> List[ScoredResult]:
        return self.search(EntityType.TASKS, query, options)

    def search_all(self, query: str, options: OptionsLike = None) -> CombinedSearchResult:
        """Search tasks, lists and labels at once."""
        options = self._options(options)
        if not query or not query.strip():
            return CombinedSearchResult()
        return search_all(self.indexes(), query, options, engine=self.engine)

    def quick_search(self, query: str) -> CombinedSearchResult:
        """Small, strict search used for autocomplete."""
        return self.search_all(query, SearchOptions(
            limit=self.config.quick_limit,
            threshold=self.config.quick_threshold,
        ))

    def suggestions(self, partial_query: str) -> List[str]:
        """Display names matching partially typed input.

        Names come from tasks, then lists, then labels, each in score order.
        Duplicates are dropped (case-sensitive, as stored).

        Args:
            partial_query: Text typed so far

        Returns:
            Up to ``suggestion_limit`` names
        """
        if not partial_query or len(partial_query.strip()) < self.config.min_suggestion_length:
            return []

        combined = self.quick_search(partial_query)
        suggestions: List[str] = []
        seen = set()
        for entity_type in EntityType:
            for result in combined.for_entity(entity_type):
                name = result.record.name
                if name and name not in seen:
                    seen.add(name)
                    suggestions.append(name)

        return suggestions[:self.config.suggestion_limit]

    def search_with_highlights(self, query: str, options: OptionsLike = None) -> HighlightedSearchResult:
        """Combined search plus highlight segments for every matched task field."""
        combined = self.search_all(query, options)
        highlights = {}

        for result in combined.tasks:
            fields = {
                match.field_name: highlight(result.record.text(match.field_name), match.ranges)
                for match in result.per_field
                if match.ranges
            }
            if fields:
                highlights[result.record.id] = fields

        return HighlightedSearchResult(results=combined, highlights=highlights)

    def search_exact(self, field: str, value: Any) -> List[Record]:
        """Find tasks by exact field content.

        ``name`` and ``description`` match when they contain ``value``
        (ignoring case); ``priority`` matches by equality. Completed tasks
        are included.

        Raises:
            ValueError: If ``field`` is not an exact-search field
        """
        if field not in EXACT_SEARCH_FIELDS:
            raise ValueError(f"Unsupported exact search field: {field}")

        tasks = self.index(EntityType.TASKS)

        if field == "priority":
            return [record for record in tasks.records if record.payload.get("priority") == value]

        exact = build_index(EntityType.TASKS, tasks.records, [FieldSpec(field, 1.0)])
        options = SearchOptions(limit=max(1, len(exact)), threshold=0.0, include_completed=True)
        return [result.record for result in self.engine.search(exact, str(value), options)]
