"""Python front-end: tokens, AST and reference resolution for ``.py`` files."""

from .python_unit import PythonUnit
from .resolver import ReferenceResolver
from .ast_tools import ast_dump, default_node_predicate, describe_ast, flatten_ast

__all__ = [
    "PythonUnit",
    "ReferenceResolver",
    "ast_dump",
    "default_node_predicate",
    "describe_ast",
    "flatten_ast",
]
