"""Compose extraction and winnowing for whole units."""

from typing import List, Optional, Sequence

from ..config import Config
from ..core.provider import TokenProvider, exclude_kinds
from ..core.types import Token, TokenKind
from ..utils.logging_setup import get_logger
from .extractor import extract
from .kgram import KGram
from .winnowing import winnow

logger = get_logger(__name__)


def fingerprint_tokens(tokens: Sequence[Token], kgram_size: int, window_size: int,
                       unit: Optional[TokenProvider] = None) -> List[KGram]:
    """Extract k-grams of ``kgram_size`` tokens and winnow them."""
    return winnow(extract(tokens, kgram_size, unit), window_size)


def fingerprint_unit(unit: TokenProvider, config: Optional[Config] = None) -> List[KGram]:
    """Fingerprint a unit with the configured sizes and token filter.

    Comments are left out unless ``fingerprint.include_comments`` is set, so
    that edited comments do not hide copied code.
    """
    config = config or Config()
    kgram_size = config.get("fingerprint.kgram_size", 5)
    window_size = config.get("fingerprint.window_size", 4)

    if config.get("fingerprint.include_comments", False):
        tokens = unit.tokens()
    else:
        tokens = unit.tokens(exclude_kinds(TokenKind.COMMENT))

    fingerprints = fingerprint_tokens(tokens, kgram_size, window_size, unit)
    logger.debug(
        f"{unit.filename}: {len(tokens)} tokens -> {len(fingerprints)} fingerprints "
        f"(k={kgram_size}, w={window_size})"
    )
    return fingerprints
