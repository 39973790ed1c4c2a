"""Search engine module for planner records."""
from typing import Callable, List, Optional, Protocol, Union, Mapping, Any

from planner_search.index import Index
from planner_search.matcher import match_field
from planner_search.models import FieldMatchResult, Record, ScoredResult, SearchOptions
from planner_search.pattern import compile_pattern
from planner_search.scoring import aggregate


RecordPredicate = Callable[[Record], bool]
OptionsLike = Union[SearchOptions, Mapping[str, Any], None]

# Absorbs float rounding in weighted averages that sit exactly on the threshold
_SCORE_EPSILON = 1e-9


class SearchEngine(Protocol):
    """Protocol for search engines to allow extensibility."""

    def search(
        self,
        index: Index,
        query: str,
        options: OptionsLike = None,
        predicate: Optional[RecordPredicate] = None,
    ) -> List[ScoredResult]:
        """Search an index.

        Args:
            index: Index to scan
            query: Search query string
            options: Limit and threshold (other options are ignored here)
            predicate: Entity-specific filter applied after scoring

        Returns:
            Matching records, best first
        """
        ...


class FuzzySearchEngine:
    """Approximate-matching search over every record of an index."""

    def _score_record(self, pattern, record: Record, index: Index) -> Optional[ScoredResult]:
        """Score one record against the compiled pattern.

        Args:
            pattern: Pattern compiled for the current query
            record: Record to score
            index: Index holding the field configuration

        Returns:
            ScoredResult, or None if no field matched
        """
        per_field: List[FieldMatchResult] = []
        for spec in index.field_specs:
            result = match_field(
                pattern,
                record.fields.get(spec.name),
                find_all_matches=index.find_all_matches,
                field_name=spec.name,
            )
            if result:
                per_field.append(result)

        score = aggregate(per_field, index.field_specs)
        if score is None:
            return None

        return ScoredResult(record=record, score=score, per_field=tuple(per_field))

    def search(
        self,
        index: Index,
        query: str,
        options: OptionsLike = None,
        predicate: Optional[RecordPredicate] = None,
    ) -> List[ScoredResult]:
        """Search an index using fuzzy matching.

        Every record is scored; records scoring above the threshold or
        rejected by ``predicate`` are dropped before the limit is applied.

        Args:
            index: Index to scan
            query: Search query string
            options: SearchOptions or a partial mapping of them
            predicate: Entity-specific filter (for example hiding completed tasks)

        Returns:
            Results sorted by score (lower is better), ties in index order
        """
        options = SearchOptions.from_partial(options)

        if not query or not query.strip() or not index.records:
            return []

        pattern = compile_pattern(query, options.threshold)

        scored = []
        for position, record in enumerate(index.records):
            result = self._score_record(pattern, record, index)
            if result is None or result.score > options.threshold + _SCORE_EPSILON:
                continue
            if predicate is not None and not predicate(record):
                continue
            scored.append((result.score, position, result))

        scored.sort(key=lambda x: (x[0], x[1]))

        return [result for _, _, result in scored[:options.limit]]


_default_engine = FuzzySearchEngine()


def search(index: Index, query: str, options: OptionsLike = None) -> List[ScoredResult]:
    """Search one index with the default fuzzy engine."""
    return _default_engine.search(index, query, options)
