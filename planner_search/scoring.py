"""Score aggregation across the weighted fields of one record."""
from typing import Optional, Sequence

from planner_search.models import FieldMatchResult, FieldSpec


def aggregate(per_field: Sequence[FieldMatchResult], field_specs: Sequence[FieldSpec]) -> Optional[float]:
    """Combine per-field sub-scores into one item score.

    Only fields that matched take part: the result is the weighted average of
    their sub-scores, normalised over the weights of the matched fields. A
    strong match on a low-weight field therefore still ranks, while matches
    concentrated in high-weight fields are preferred when several fields
    match.

    Args:
        per_field: Results of the fields that matched
        field_specs: Configured fields with their weights

    Returns:
        Score in [0, 1] (lower is better), or None when no field matched
    """
    weights = {spec.name: spec.weight for spec in field_specs}

    total_weight = 0.0
    weighted = 0.0
    for match in per_field:
        weight = weights.get(match.field_name)
        if weight is None:
            continue
        total_weight += weight
        weighted += weight * match.sub_score

    if total_weight == 0.0:
        return None

    return min(1.0, max(0.0, weighted / total_weight))
