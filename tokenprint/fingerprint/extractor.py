"""K-gram extraction over token streams."""

from typing import List, Optional, Sequence

from ..core.provider import TokenProvider
from ..core.types import Token
from .kgram import KGram, slices


def extract(tokens: Sequence[Token], window_size: int,
            unit: Optional[TokenProvider] = None) -> List[KGram]:
    """Extract all k-grams from a token sequence.

    Args:
        tokens: Tokens in file order.
        window_size: Length of each k-gram.
        unit: Unit the tokens come from, kept as a back-reference.

    Returns:
        ``len(tokens) - window_size + 1`` overlapping k-grams, a single
        k-gram with every token when there are fewer tokens than
        ``window_size``, or an empty list for no tokens.
    """
    if window_size < 1:
        raise ValueError(f"window size must be >= 1, got {window_size}")
    if not tokens:
        return []

    return [KGram(tuple(window), unit) for window in slices(list(tokens), window_size)]
