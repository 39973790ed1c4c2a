"""Query pattern compilation for the bitap matcher."""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping


def fold_case(text: str) -> str:
    """Case-fold text one character at a time.

    Characters whose folded form is longer than one character (for example
    ``"ß"``) are kept as they are, so every offset into the folded text is
    also an offset into the original.
    """
    folded = []
    for ch in text:
        lowered = ch.casefold()
        folded.append(lowered if len(lowered) == 1 else ch)
    return "".join(folded)


@dataclass(frozen=True)
class CompiledPattern:
    """A query prepared once and shared by every field scan of one search."""
    query: str
    text: str
    threshold: float
    max_errors: int
    masks: Mapping[str, int]

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def accept_mask(self) -> int:
        """Bit that is set once the whole pattern has been aligned."""
        return 1 << (self.length - 1)

    @property
    def error_budget(self) -> int:
        """Most errors a window may have and still score within the threshold."""
        within_threshold = int(self.threshold * self.length + 1e-9)
        return min(self.max_errors, within_threshold)

    def mask_for(self, ch: str) -> int:
        return self.masks.get(ch, 0)


def compile_pattern(query: str, threshold: float) -> CompiledPattern:
    """Compile a raw query into reusable matcher state.

    Args:
        query: Raw query string; must not be blank
        threshold: Error tolerance in [0, 1] (0 = exact only)

    Returns:
        CompiledPattern with the case-folded pattern and its bitmask table

    Raises:
        ValueError: If the query is empty after trimming
    """
    text = fold_case(query.strip())
    if not text:
        raise ValueError("Cannot compile an empty query")

    threshold = min(1.0, max(0.0, threshold))
    max_errors = max(0, round(threshold * len(text)))

    masks: Dict[str, int] = {}
    for position, ch in enumerate(text):
        masks[ch] = masks.get(ch, 0) | (1 << position)

    return CompiledPattern(
        query=query,
        text=text,
        threshold=threshold,
        max_errors=max_errors,
        masks=MappingProxyType(masks),
    )
