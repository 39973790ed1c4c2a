"""In-memory search indexes, one per entity type."""
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Tuple, Union

from planner_search.models import EntityType, FieldSpec, Record


EntityLike = Union[Record, Mapping[str, Any]]


@dataclass(frozen=True)
class Index:
    """Snapshot of the records of one entity type and how to search them.

    Indexes are never mutated: ``refresh_index`` returns a new Index with a
    higher ``built_at_version``. Version 0 means the index was never built.
    Record order is kept from the input and only used to break score ties.

    Callers rebuild an index after changing the underlying data; nothing here
    detects staleness.
    """
    entity_type: EntityType
    field_specs: Tuple[FieldSpec, ...]
    records: Tuple[Record, ...] = ()
    built_at_version: int = 0
    find_all_matches: bool = False

    @property
    def is_built(self) -> bool:
        return self.built_at_version > 0

    @property
    def field_names(self):
        return [spec.name for spec in self.field_specs]

    def __len__(self) -> int:
        return len(self.records)


def _snapshot(entities: Iterable[EntityLike], field_names) -> Tuple[Record, ...]:
    records = []
    for entity in entities:
        if isinstance(entity, Record):
            records.append(entity)
        else:
            records.append(Record.from_entity(entity, field_names))
    return tuple(records)


def empty_index(
    entity_type: EntityType,
    field_specs: Sequence[FieldSpec],
    find_all_matches: bool = False,
) -> Index:
    """Create an index that has not been built yet."""
    return Index(
        entity_type=EntityType(entity_type),
        field_specs=tuple(field_specs),
        find_all_matches=find_all_matches,
    )


def build_index(
    entity_type: EntityType,
    records: Iterable[EntityLike],
    field_specs: Sequence[FieldSpec],
    find_all_matches: bool = False,
) -> Index:
    """Build a fresh index.

    Args:
        entity_type: Kind of records being indexed
        records: Records, or entity dicts to snapshot into records
        field_specs: Searchable fields and their weights
        find_all_matches: Collect every matching window per field, not just the best

    Returns:
        Index at version 1
    """
    specs = tuple(field_specs)
    return Index(
        entity_type=EntityType(entity_type),
        field_specs=specs,
        records=_snapshot(records, [spec.name for spec in specs]),
        built_at_version=1,
        find_all_matches=find_all_matches,
    )


def refresh_index(index: Index, records: Iterable[EntityLike]) -> Index:
    """Replace every record of an index, bumping its version.

    There is no incremental update; the whole record set is rebuilt.
    """
    return Index(
        entity_type=index.entity_type,
        field_specs=index.field_specs,
        records=_snapshot(records, index.field_names),
        built_at_version=index.built_at_version + 1,
        find_all_matches=index.find_all_matches,
    )
