"""Text-level refactorings: identifier rename and statement rewrites."""

from .edits import apply_edits
from .rename import identifier_at, reference_tokens, rename_at, rename_identifier, validate_identifier
from .rewrite import rewrite_statements, unwrap_while_condition, while_to_for

__all__ = [
    "apply_edits",
    "identifier_at",
    "reference_tokens",
    "rename_at",
    "rename_identifier",
    "validate_identifier",
    "rewrite_statements",
    "unwrap_while_condition",
    "while_to_for",
]
