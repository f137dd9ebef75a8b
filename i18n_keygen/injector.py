"""
Inject the translation accessor import and the `t` declaration.

After the rewrite rules ran, a file that calls the lookup function must also
import the runtime accessor and bind the lookup identifier:

    import { getTranslations } from "next-intl/server";
    ...
    export default async function Page() {
      const t = await getTranslations("DashboardPage");

Files whose first statement is the "use client" directive get the hook form
(`useTranslations` from "next-intl", no await). A server-form declaration
going into a plain function also marks that function `async`. Both
insertions are skipped when already present, so running twice is a no-op.
"""
from __future__ import annotations

import dataclasses
import json
import logging
from typing import Iterable, Optional

from tree_sitter import Node

from i18n_keygen import nodes
from i18n_keygen.config import RuleConfig
from i18n_keygen.guards import is_lookup_call
from i18n_keygen.parser import SourceTree
from i18n_keygen.rewriter import Rewriter

logger = logging.getLogger(__name__)

CLIENT_DIRECTIVE = "use client"
INDENT = "  "


@dataclasses.dataclass
class InjectionResult:
    import_added: bool = False
    declaration_added: bool = False
    made_async: bool = False


def _directives(tree: SourceTree) -> Iterable[Node]:
    """Leading `"use client";`-style statements of the program."""
    for stmt in nodes.named_children(tree.root):
        if stmt.type != "expression_statement":
            break
        inner = nodes.named_children(stmt)
        if len(inner) != 1 or inner[0].type != "string":
            break
        yield stmt


def is_client_file(tree: SourceTree) -> bool:
    for stmt in _directives(tree):
        if nodes.string_value(tree, nodes.named_children(stmt)[0]) == CLIENT_DIRECTIVE:
            return True
    return False


def uses_lookup(tree: SourceTree, rules: RuleConfig, rewriter: Optional[Rewriter] = None) -> bool:
    """Whether the file calls the lookup function, counting calls about to be written."""
    if rewriter is not None and rewriter.changed:
        return True
    return any(is_lookup_call(tree, n, rules) for n in tree.walk())


def has_accessor_import(tree: SourceTree, rules: RuleConfig) -> bool:
    runtime = rules.runtime
    for stmt in nodes.named_children(tree.root):
        if stmt.type != "import_statement":
            continue
        source = stmt.child_by_field_name("source")
        if source is None or nodes.string_value(tree, source) not in runtime.modules:
            continue
        for n in _descendants(stmt):
            if n.type != "import_specifier":
                continue
            name = n.child_by_field_name("name")
            if name is not None and tree.text(name) in runtime.accessors:
                return True
    return False


def has_lookup_binding(tree: SourceTree, rules: RuleConfig) -> bool:
    for n in tree.walk():
        if n.type != "variable_declarator":
            continue
        name = n.child_by_field_name("name")
        if name is not None and name.type == "identifier" and tree.text(name) == rules.runtime.lookup:
            return True
    return False


def _descendants(node: Node) -> Iterable[Node]:
    stack = list(reversed(node.children))
    while stack:
        n = stack.pop()
        yield n
        stack.extend(reversed(n.children))


def first_function(tree: SourceTree) -> Optional[Node]:
    """First function declaration or arrow function with a block body, in document order."""
    for n in tree.walk():
        if n.type not in ("function_declaration", "arrow_function"):
            continue
        body = n.child_by_field_name("body")
        if body is not None and body.type == "statement_block":
            return n
    return None


def is_async(function: Node) -> bool:
    return any(child.type == "async" for child in function.children)


def declaration_source(rules: RuleConfig, namespace: str, is_server: bool) -> str:
    runtime = rules.runtime
    if is_server:
        init = f"await {runtime.server_accessor}({json.dumps(namespace)})"
    else:
        init = f"{runtime.client_accessor}({json.dumps(namespace)})"
    return f"const {runtime.lookup} = {init};"


def import_source(rules: RuleConfig, is_server: bool) -> str:
    runtime = rules.runtime
    if is_server:
        return f"import {{ {runtime.server_accessor} }} from {json.dumps(runtime.server_module)};"
    return f"import {{ {runtime.client_accessor} }} from {json.dumps(runtime.client_module)};"


def _line_indent(source: bytes, offset: int) -> str:
    line_start = source.rfind(b"\n", 0, offset) + 1
    line = source[line_start:offset]
    return line[: len(line) - len(line.lstrip(b" \t"))].decode("utf-8")


def _insert_declaration(tree: SourceTree, rewriter: Rewriter, body: Node, statement: str) -> None:
    statements = nodes.named_children(body)
    open_brace = body.start_byte + 1
    if statements:
        indent = _line_indent(tree.source, statements[0].start_byte)
        rewriter.insert(open_brace, f"\n{indent}{statement}")
    else:
        outer = _line_indent(tree.source, body.start_byte)
        rewriter.insert(open_brace, f"\n{outer}{INDENT}{statement}\n{outer}")


def _insert_import(tree: SourceTree, rewriter: Rewriter, statement: str) -> None:
    last_directive = None
    for stmt in _directives(tree):
        last_directive = stmt
    if last_directive is None:
        rewriter.insert(0, statement + "\n")
    else:
        rewriter.insert(last_directive.end_byte, "\n" + statement)


def inject_lookup(
    tree: SourceTree,
    rewriter: Rewriter,
    rules: RuleConfig,
    namespace: str,
    is_server: Optional[bool] = None,
) -> InjectionResult:
    """Add the missing import and/or declaration edits to `rewriter`.

    `is_server` defaults to "not a 'use client' file". The server form awaits
    its accessor, so the function receiving it is made `async` when it is not.
    """
    result = InjectionResult()
    if not uses_lookup(tree, rules, rewriter):
        return result
    if is_server is None:
        is_server = not is_client_file(tree)

    # The import is recorded first so it stays ahead of anything else inserted at offset 0.
    if not has_accessor_import(tree, rules):
        _insert_import(tree, rewriter, import_source(rules, is_server))
        result.import_added = True

    if not has_lookup_binding(tree, rules):
        function = first_function(tree)
        if function is None:
            logger.warning("No function body to declare %r in (namespace %s)", rules.runtime.lookup, namespace)
        else:
            if is_server and not is_async(function):
                rewriter.insert(function.start_byte, "async ")
                result.made_async = True
            body = function.child_by_field_name("body")
            _insert_declaration(tree, rewriter, body, declaration_source(rules, namespace, is_server))
            result.declaration_added = True
    return result
