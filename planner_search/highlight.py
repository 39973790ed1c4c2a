"""Turn match ranges into display segments."""
from typing import Iterable, List

from planner_search.models import MatchRange, Segment


def normalize_ranges(text: str, ranges: Iterable[MatchRange]) -> List[MatchRange]:
    """Clip, sort and merge ranges so they are in bounds and disjoint.

    Inverted ranges are dropped; overlapping or touching ranges are merged.
    """
    last = len(text) - 1
    clipped = []
    for start, end in ranges:
        start = max(0, start)
        end = min(last, end)
        if start <= end:
            clipped.append((start, end))

    clipped.sort()

    merged: List[MatchRange] = []
    for start, end in clipped:
        if merged and start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def highlight(text: str, ranges: Iterable[MatchRange]) -> List[Segment]:
    """Split text into plain and matched segments.

    Joining the text of the returned segments gives back ``text`` exactly.
    Malformed ranges are repaired rather than rejected.

    Args:
        text: Original field text
        ranges: Inclusive (start, end) offsets of matched characters

    Returns:
        Segments in text order
    """
    segments: List[Segment] = []
    cursor = 0

    for start, end in normalize_ranges(text, ranges):
        if start > cursor:
            segments.append(Segment(text=text[cursor:start], matched=False))
        segments.append(Segment(text=text[start:end + 1], matched=True))
        cursor = end + 1

    if cursor < len(text):
        segments.append(Segment(text=text[cursor:], matched=False))

    return segments


def render_marked(
    text: str,
    ranges: Iterable[MatchRange],
    open_tag: str = "<mark>",
    close_tag: str = "</mark>",
) -> str:
    """Render text with matched segments wrapped in tags."""
    parts = []
    for segment in highlight(text, ranges):
        if segment.matched:
            parts.append(f"{open_tag}{segment.text}{close_tag}")
        else:
            parts.append(segment.text)
    return "".join(parts)
