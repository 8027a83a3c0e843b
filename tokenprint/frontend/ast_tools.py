"""AST flattening and dumping helpers.

Plagiarism checks care about the shape of a program, not about which names it
uses, so the default filter drops expression contexts, bare expression
statement wrappers and name references.
"""

import ast
from typing import Callable, List


NodePredicate = Callable[[ast.AST], bool]

NOISE_NODE_TYPES = (ast.Load, ast.Store, ast.Del, ast.Expr, ast.Name)


def default_node_predicate(node: ast.AST) -> bool:
    return not isinstance(node, NOISE_NODE_TYPES)


def _tree_of(unit) -> ast.AST:
    if isinstance(unit, ast.AST):
        return unit
    tree = getattr(unit, "tree", None)
    if tree is None:
        raise TypeError(f"{unit!r} has no AST")
    return tree


def _children(node: ast.AST) -> List[ast.AST]:
    return list(ast.iter_child_nodes(node))


def flatten_ast(unit, is_included: NodePredicate = default_node_predicate) -> List[ast.AST]:
    """Pre-order list of the unit's AST nodes that pass ``is_included``.

    Children of an excluded node are still visited.
    """
    nodes: List[ast.AST] = []
    stack = [_tree_of(unit)]
    while stack:
        node = stack.pop()
        if is_included(node):
            nodes.append(node)
        stack.extend(reversed(_children(node)))
    return nodes


def describe_ast(nodes: List[ast.AST]) -> List[str]:
    """Node kind names, e.g. ``['Module', 'FunctionDef', ...]``."""
    return [type(node).__name__ for node in nodes]


def _node_label(node: ast.AST) -> str:
    line = getattr(node, "lineno", None)
    if line is None:
        return f"<{type(node).__name__}>"
    return f"<{type(node).__name__}> [{line}]"


def ast_dump(unit, is_included: NodePredicate = default_node_predicate,
             indent: str = "  ") -> str:
    """Indented tree with one ``- <Kind> [line]`` row per included node.

    Excluded nodes do not add a level; their children are attached to the
    nearest included ancestor.
    """
    lines: List[str] = []

    def walk(node: ast.AST, depth: int) -> None:
        if is_included(node):
            lines.append(f"{indent * depth}- {_node_label(node)}")
            depth += 1
        for child in _children(node):
            walk(child, depth)

    walk(_tree_of(unit), 0)
    return "\n".join(lines)
