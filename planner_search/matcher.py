"""Approximate field matching with the bitap (Wu-Manber) automaton.

The automaton keeps one bit vector per error level. Bit ``i`` of level ``d``
is set when the first ``i + 1`` pattern characters can be aligned with a
window ending at the current text position using at most ``d`` insertions,
deletions or substitutions. A window matches the whole pattern once the
highest pattern bit is set.

Python integers have no fixed width, so patterns of any length are matched
in a single pass.
"""
from typing import List, Optional, Tuple

from planner_search.models import NO_MATCH, FieldMatchResult, FieldOutcome, MatchRange
from planner_search.pattern import CompiledPattern, fold_case


def _best_end(pattern: CompiledPattern, folded: str, lower: int, upper: int, budget: int) -> Optional[Tuple[int, int]]:
    """Scan ``folded[lower:upper]`` for the lowest-error window end.

    Returns:
        (errors, end) of the leftmost window with the fewest errors, or None
    """
    full = (1 << pattern.length) - 1
    accept = pattern.accept_mask
    states = [(1 << d) - 1 for d in range(budget + 1)]

    best_errors = budget + 1
    best_end = -1

    for position in range(lower, upper):
        mask = pattern.mask_for(folded[position])

        previous = states[0]
        current = ((previous << 1) | 1) & mask
        states[0] = current

        for d in range(1, budget + 1):
            old = states[d]
            current = (
                (((old << 1) | 1) & mask)   # match
                | previous                  # text character inserted
                | (previous << 1)           # substitution
                | (current << 1)            # pattern character deleted
                | 1
            ) & full
            previous = old
            states[d] = current

        # Levels are nested, so the first level with the accept bit is the minimum
        for d in range(best_errors):
            if states[d] & accept:
                best_errors = d
                best_end = position
                break

        if best_errors == 0:
            break

    if best_end < 0:
        return None
    return best_errors, best_end


def _window_start(pattern: CompiledPattern, folded: str, end: int, errors: int, lower: int) -> int:
    """Find where the tightest window ending at ``end`` with ``errors`` edits starts.

    Grows the window leftwards one character at a time, keeping one column of
    the edit-distance table between the reversed pattern and the reversed
    window.
    """
    reversed_pattern = pattern.text[::-1]
    m = len(reversed_pattern)
    column = list(range(m + 1))
    longest = min(end - lower + 1, m + errors)

    for length in range(1, longest + 1):
        ch = folded[end - length + 1]
        previous = column
        column = [length] + [0] * m
        for i in range(1, m + 1):
            cost = 0 if reversed_pattern[i - 1] == ch else 1
            column[i] = min(previous[i] + 1, column[i - 1] + 1, previous[i - 1] + cost)
        if column[m] <= errors:
            return end - length + 1

    return end


def _find_window(pattern: CompiledPattern, folded: str, lower: int, upper: int, budget: int) -> Optional[Tuple[int, MatchRange]]:
    found = _best_end(pattern, folded, lower, upper, budget)
    if found is None:
        return None
    errors, end = found
    start = _window_start(pattern, folded, end, errors, lower)
    return errors, (start, end)


def match_field(
    pattern: CompiledPattern,
    text: Optional[str],
    find_all_matches: bool = False,
    field_name: str = "",
) -> FieldOutcome:
    """Match a compiled pattern against one field's text.

    Args:
        pattern: Pattern compiled once for the current query
        text: Original (not case-folded) field text
        find_all_matches: Also collect every further non-overlapping window
        field_name: Name reported in the result

    Returns:
        FieldMatchResult for the best window, or NO_MATCH
    """
    if not text:
        return NO_MATCH

    folded = fold_case(text)
    budget = pattern.error_budget

    best = _find_window(pattern, folded, 0, len(folded), budget)
    if best is None:
        return NO_MATCH

    errors, window = best
    ranges: List[MatchRange] = [window]

    if find_all_matches:
        shortest = max(1, pattern.length - budget)
        pending = [(0, window[0]), (window[1] + 1, len(folded))]
        while pending:
            lower, upper = pending.pop()
            if upper - lower < shortest:
                continue
            found = _find_window(pattern, folded, lower, upper, budget)
            if found is None:
                continue
            _, (start, end) = found
            ranges.append((start, end))
            pending.append((lower, start))
            pending.append((end + 1, upper))
        ranges.sort()

    sub_score = min(1.0, max(0.0, errors / max(pattern.length, 1)))
    return FieldMatchResult(field_name=field_name, sub_score=sub_score, ranges=tuple(ranges))
