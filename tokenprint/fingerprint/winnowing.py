"""Winnowing: select a sparse set of representative k-grams.

Position-based variant of the robust winnowing algorithm from
Schleimer, Wilkerson and Aiken, "Winnowing: Local Algorithms for Document
Fingerprinting" (SIGMOD 2003).

Every run of ``window_size`` consecutive k-grams contributes one fingerprint,
so two documents sharing a run of at least ``k + window_size - 1`` tokens
share at least one fingerprint. Shorter coincidental matches may be missed,
which is the intended noise filter.
"""

from typing import Callable, List, Sequence, TypeVar

from .kgram import exact_equal, slices, structural_hash

T = TypeVar("T")


def winnow(kgrams: Sequence[T], window_size: int, *,
           hash_key: Callable[[T], int] = structural_hash,
           equal: Callable[[T, T], bool] = exact_equal) -> List[T]:
    """Reduce k-grams to fingerprints.

    Args:
        kgrams: K-grams in document order.
        window_size: Number of k-grams per winnowing window.
        hash_key: Hash used to pick the window minimum.
        equal: Equality used to suppress adjacent repeats.

    Returns:
        The selected k-grams in order. Within a window the minimum hash wins,
        the leftmost one on ties; a selection equal to the previously
        appended fingerprint is skipped.
    """
    if not kgrams:
        return []

    reduced: List[T] = []
    for window in slices(list(kgrams), window_size):
        # min() keeps the first minimal element, i.e. the leftmost on ties
        smallest = min(window, key=hash_key)
        if not reduced or not equal(reduced[-1], smallest):
            reduced.append(smallest)

    return reduced
