"""
Name resolution for Python units.

Maps every identifier token that names a variable, function, class, parameter
or import to the scope that declares it, following Python's LEGB rules:
function locals are decided for the whole function body, class bodies are
invisible to nested functions, ``global``/``nonlocal`` redirect to the
declaring scope and unbound names fall back to builtins.

Attribute names, keyword-argument names and names nobody binds resolve to
``None``.
"""

from __future__ import annotations

import ast
import builtins
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..core.types import DeclarationId, Token, TokenKind
from ..utils.logging_setup import get_logger

logger = get_logger(__name__)

__all__ = ['Scope', 'ReferenceResolver', 'BUILTINS_SCOPE']

BUILTINS_SCOPE = "builtins"
MODULE_SCOPE = "<module>"

Position = Tuple[int, int]


@dataclass
class Scope:
    """A namespace introduced by a module, class, function, lambda or comprehension."""
    kind: str
    qualname: str
    parent: Optional["Scope"] = None
    bindings: Set[str] = field(default_factory=set)
    globals: Set[str] = field(default_factory=set)
    nonlocals: Set[str] = field(default_factory=set)

    def child(self, kind: str, name: str, line: int) -> "Scope":
        return Scope(kind=kind, qualname=f"{self.qualname}/{name}@{line}", parent=self)

    def binds_locally(self, name: str) -> bool:
        return name in self.bindings and name not in self.globals and name not in self.nonlocals

    @property
    def is_function_like(self) -> bool:
        return self.kind in ("function", "lambda", "comprehension")


class _ScopeBuilder(ast.NodeVisitor):
    """Walks a module, building scopes and recording identifier occurrences."""

    def __init__(self, unit):
        self.unit = unit
        self.module = Scope(kind="module", qualname=MODULE_SCOPE)
        self.scope = self.module
        # token start -> (scope the occurrence appears in, name)
        self.occurrences: Dict[Position, Tuple[Scope, str]] = {}

    # ------------------------------------------------------------------
    # Helpers

    def _record(self, token: Optional[Token], name: str, scope: Optional[Scope] = None) -> None:
        if token is None or token.spelling != name:
            return
        position = (token.span.start_line, token.span.start_column)
        self.occurrences[position] = (scope or self.scope, name)

    def _bind(self, name: str, token: Optional[Token] = None, scope: Optional[Scope] = None) -> None:
        scope = scope or self.scope
        scope.bindings.add(name)
        if name in scope.globals:
            self.module.bindings.add(name)
        self._record(token, name, scope)

    def _node_tokens(self, node: ast.AST) -> List[Token]:
        return self.unit.tokens_between(self.unit.node_start(node), self.unit.node_end(node))

    def _token_at_node(self, node: ast.AST) -> Optional[Token]:
        line, column = self.unit.node_start(node)
        return self.unit.token_at(line, column)

    def _identifier_after(self, tokens: List[Token], keywords: Set[str], name: str) -> Optional[Token]:
        """First identifier spelled ``name`` directly following one of ``keywords``."""
        for previous, token in zip(tokens, tokens[1:]):
            if (previous.kind is TokenKind.KEYWORD and previous.spelling in keywords
                    and token.kind is TokenKind.IDENTIFIER and token.spelling == name):
                return token
        return None

    def _last_identifier(self, tokens: List[Token], name: str) -> Optional[Token]:
        for token in reversed(tokens):
            if token.kind is TokenKind.IDENTIFIER and token.spelling == name:
                return token
        return None

    def _visit_all(self, nodes) -> None:
        for node in nodes:
            if node is not None:
                self.visit(node)

    def _push(self, scope: Scope) -> Scope:
        previous, self.scope = self.scope, scope
        return previous

    def _enclosing_non_comprehension(self) -> Scope:
        scope = self.scope
        while scope.kind == "comprehension" and scope.parent is not None:
            scope = scope.parent
        return scope

    # ------------------------------------------------------------------
    # Definitions

    def _visit_arguments(self, args: ast.arguments) -> None:
        """Defaults and annotations are evaluated in the enclosing scope."""
        self._visit_all(args.defaults)
        self._visit_all(args.kw_defaults)
        for arg in self._all_args(args):
            if arg.annotation is not None:
                self.visit(arg.annotation)

    @staticmethod
    def _all_args(args: ast.arguments) -> List[ast.arg]:
        out = list(args.posonlyargs) + list(args.args)
        if args.vararg:
            out.append(args.vararg)
        out.extend(args.kwonlyargs)
        if args.kwarg:
            out.append(args.kwarg)
        return out

    def _bind_args(self, args: ast.arguments, scope: Scope) -> None:
        for arg in self._all_args(args):
            self._bind(arg.arg, self._token_at_node(arg), scope)

    def _bind_type_params(self, node: ast.AST, scope: Scope) -> None:
        for param in getattr(node, "type_params", None) or []:
            self._bind(param.name, self._token_at_node(param), scope)

    def _visit_function(self, node) -> None:
        self._visit_all(node.decorator_list)
        self._visit_arguments(node.args)
        if node.returns is not None:
            self.visit(node.returns)

        name_token = self._identifier_after(self._node_tokens(node), {"def"}, node.name)
        self._bind(node.name, name_token)

        scope = self.scope.child("function", node.name, node.lineno)
        self._bind_type_params(node, scope)
        self._bind_args(node.args, scope)

        previous = self._push(scope)
        self._visit_all(node.body)
        self.scope = previous

    def visit_FunctionDef(self, node: ast.FunctionDef):
        self._visit_function(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef):
        self._visit_function(node)

    def visit_Lambda(self, node: ast.Lambda):
        self._visit_arguments(node.args)
        scope = self.scope.child("lambda", "<lambda>", node.lineno)
        self._bind_args(node.args, scope)
        previous = self._push(scope)
        self.visit(node.body)
        self.scope = previous

    def visit_ClassDef(self, node: ast.ClassDef):
        self._visit_all(node.decorator_list)
        self._visit_all(node.bases)
        self._visit_all(kw.value for kw in node.keywords)

        name_token = self._identifier_after(self._node_tokens(node), {"class"}, node.name)
        self._bind(node.name, name_token)

        scope = self.scope.child("class", node.name, node.lineno)
        self._bind_type_params(node, scope)
        previous = self._push(scope)
        self._visit_all(node.body)
        self.scope = previous

    def _visit_comprehension(self, node, elements) -> None:
        # The first iterable is evaluated in the enclosing scope
        generators = node.generators
        self.visit(generators[0].iter)

        scope = self.scope.child("comprehension", type(node).__name__, node.lineno)
        previous = self._push(scope)
        for index, generator in enumerate(generators):
            if index:
                self.visit(generator.iter)
            self.visit(generator.target)
            self._visit_all(generator.ifs)
        self._visit_all(elements)
        self.scope = previous

    def visit_ListComp(self, node: ast.ListComp):
        self._visit_comprehension(node, [node.elt])

    def visit_SetComp(self, node: ast.SetComp):
        self._visit_comprehension(node, [node.elt])

    def visit_GeneratorExp(self, node: ast.GeneratorExp):
        self._visit_comprehension(node, [node.elt])

    def visit_DictComp(self, node: ast.DictComp):
        self._visit_comprehension(node, [node.key, node.value])

    # ------------------------------------------------------------------
    # Names

    def visit_Name(self, node: ast.Name):
        token = self._token_at_node(node)
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            self._bind(node.id, token)
        else:
            self._record(token, node.id)

    def visit_NamedExpr(self, node: ast.NamedExpr):
        self.visit(node.value)
        # Walrus targets bind outside any comprehension
        target = node.target
        self._bind(target.id, self._token_at_node(target), self._enclosing_non_comprehension())

    def visit_Attribute(self, node: ast.Attribute):
        self.visit(node.value)

    def visit_keyword(self, node: ast.keyword):
        self.visit(node.value)

    def _visit_declaration(self, node, names: List[str], target: Set[str]) -> None:
        target.update(names)
        tokens = self._node_tokens(node)
        for name in names:
            self._record(self._last_identifier(tokens, name), name)

    def visit_Global(self, node: ast.Global):
        self._visit_declaration(node, node.names, self.scope.globals)

    def visit_Nonlocal(self, node: ast.Nonlocal):
        self._visit_declaration(node, node.names, self.scope.nonlocals)

    # ------------------------------------------------------------------
    # Imports

    def _visit_aliases(self, aliases: List[ast.alias]) -> None:
        for alias in aliases:
            if alias.name == "*":
                continue
            tokens = self._node_tokens(alias)
            if alias.asname:
                self._bind(alias.asname, self._identifier_after(tokens, {"as"}, alias.asname))
            else:
                bound = alias.name.split(".")[0]
                token = next((t for t in tokens if t.spelling == bound), None)
                self._bind(bound, token)

    def visit_Import(self, node: ast.Import):
        self._visit_aliases(node.names)

    def visit_ImportFrom(self, node: ast.ImportFrom):
        self._visit_aliases(node.names)

    # ------------------------------------------------------------------
    # Other binding sites

    def visit_ExceptHandler(self, node: ast.ExceptHandler):
        if node.type is not None:
            self.visit(node.type)
        if node.name:
            self._bind(node.name, self._identifier_after(self._node_tokens(node), {"as"}, node.name))
        self._visit_all(node.body)

    def _bind_capture(self, node, name: Optional[str]) -> None:
        if name:
            self._bind(name, self._last_identifier(self._node_tokens(node), name))

    def visit_MatchAs(self, node: ast.MatchAs):
        if node.pattern is not None:
            self.visit(node.pattern)
        self._bind_capture(node, node.name)

    def visit_MatchStar(self, node: ast.MatchStar):
        self._bind_capture(node, node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping):
        self._visit_all(node.keys)
        self._visit_all(node.patterns)
        self._bind_capture(node, node.rest)

    def visit_MatchClass(self, node: ast.MatchClass):
        self.visit(node.cls)
        self._visit_all(node.patterns)
        self._visit_all(node.kwd_patterns)


class ReferenceResolver:
    """Resolves identifier occurrences of a ``PythonUnit`` to declarations."""

    def __init__(self, unit):
        builder = _ScopeBuilder(unit)
        builder.visit(unit.tree)
        self.module = builder.module
        self._occurrences = builder.occurrences
        self._builtins = set(dir(builtins))
        logger.debug(f"{unit.filename}: {len(self._occurrences)} name occurrences")

    def resolve(self, line: int, column: int) -> Optional[DeclarationId]:
        """Declaration for the identifier token starting at ``(line, column)``."""
        occurrence = self._occurrences.get((line, column))
        if occurrence is None:
            return None
        scope, name = occurrence
        declaring = self.declaring_scope(scope, name)
        if declaring is not None:
            return DeclarationId(declaring.qualname, name)
        if name in self._builtins:
            return DeclarationId(BUILTINS_SCOPE, name)
        return None

    def declaring_scope(self, scope: Scope, name: str) -> Optional[Scope]:
        """Scope whose binding of ``name`` is visible from ``scope``."""
        if name in scope.globals:
            return self.module
        if name in scope.nonlocals:
            return self._enclosing_function_binding(scope.parent, name)
        if scope.binds_locally(name):
            return scope

        parent = scope.parent
        while parent is not None:
            if parent.kind == "class":
                parent = parent.parent
                continue
            if name in parent.globals:
                return self.module
            if name in parent.nonlocals:
                return self._enclosing_function_binding(parent.parent, name)
            if parent.binds_locally(name):
                return parent
            parent = parent.parent
        return None

    @staticmethod
    def _enclosing_function_binding(scope: Optional[Scope], name: str) -> Optional[Scope]:
        while scope is not None and scope.kind != "module":
            if scope.is_function_like and scope.binds_locally(name):
                return scope
            scope = scope.parent
        return None
