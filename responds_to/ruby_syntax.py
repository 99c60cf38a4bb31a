"""
Ruby syntax layer — tree-sitter parsing and call-site plumbing.

Provides:
  • parse_ruby / parse_file   source -> ParsedSource (rejects parse errors)
  • node_text / node_point    byte-slice text and 1-indexed positions
  • receiver_kind             tree-sitter node type -> ReceiverKind
  • call_parts                receiver / method / arguments / block of a call node

Call nodes are the shapes Ruby's canonical AST represents as a plain send:

  call                         recv.meth(args) { block }
  assignment with call lhs     recv.meth = value   (method "meth=", one argument)
  binary                       a + b, a == b       (method "+", one argument)
  unary                        !a, -a, ~a          (method "!", "-@", no arguments)
  element_reference            a[i, j]             (method "[]")
  assignment with index lhs    a[i] = v            (method "[]=")

Safe navigation (`a&.m`), `super(...)`, boolean operators, `defined?` and
signed numeric literals are not sends there, so they are walked like any
other node.

Arguments are counted the way Ruby's canonical AST counts them: every
positional, splat and block-pass argument is one argument, all keyword
pairs and double splats together are one trailing hash, and a literal
block is not an argument.
"""

import enum
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import tree_sitter_ruby as tsruby
from tree_sitter import Language, Node, Parser, Tree

from responds_to.errors import RubySyntaxError

logger = logging.getLogger(__name__)

RUBY_LANGUAGE = Language(tsruby.language())
_parser = Parser(RUBY_LANGUAGE)

_NON_ARGUMENTS = {"comment", "heredoc_body"}
_KEYWORD_ARGUMENTS = {"pair", "hash_splat_argument"}

_BOOLEAN_OPERATORS = {"&&", "||", "and", "or"}
_UNARY_METHODS = {"!": "!", "not": "!", "-": "-@", "+": "+@", "~": "~"}
_NUMERIC_LITERALS = {"integer", "float", "rational", "complex"}


@dataclass
class ParsedSource:
    """An immutable parse: original bytes plus the tree-sitter tree."""
    source: bytes
    tree: Tree
    path: str = "<source>"

    @property
    def root(self) -> Node:
        return self.tree.root_node


@dataclass
class CallParts:
    """The pieces of a call node the checker needs."""
    receiver: Optional[Node]      # None for implicit-self calls
    method_name: str
    arguments: List[Node] = field(default_factory=list)
    block: Optional[Node] = None  # literal block, walked separately


class ReceiverKind(enum.Enum):
    IVAR = "ivar"    # @user
    LVAR = "lvar"    # user
    STR = "str"      # "user"
    SEND = "send"    # user.account
    CONST = "const"  # User, Admin::User


_RECEIVER_KINDS = {
    "instance_variable": ReceiverKind.IVAR,
    "identifier": ReceiverKind.LVAR,
    "string": ReceiverKind.STR,
    "heredoc_beginning": ReceiverKind.STR,
    "call": ReceiverKind.SEND,
    "binary": ReceiverKind.SEND,
    "unary": ReceiverKind.SEND,
    "element_reference": ReceiverKind.SEND,
    "constant": ReceiverKind.CONST,
    "scope_resolution": ReceiverKind.CONST,
}


# ═══════════════════════════════════════════════════════════════════════
#  Parsing
# ═══════════════════════════════════════════════════════════════════════

def parse_ruby(code: Union[str, bytes], path: str = "<source>") -> ParsedSource:
    """Parse Ruby source.  Raises RubySyntaxError if tree-sitter reports any error."""
    source = code.encode("utf-8") if isinstance(code, str) else code
    tree = _parser.parse(source)
    if tree.root_node.has_error:
        bad = _first_error(tree.root_node) or tree.root_node
        line, column = node_point(bad)
        logger.warning("Rejecting %s: parse error at %d:%d", path, line, column)
        raise RubySyntaxError(path, line, column)
    return ParsedSource(source=source, tree=tree, path=path)


def parse_file(file_path: str) -> ParsedSource:
    """Read and parse a .rb file.  OSError propagates; binary files are refused."""
    with open(file_path, "rb") as f:
        source = f.read()
    if b"\x00" in source[:8192]:
        raise ValueError(f"{file_path} looks like a binary file")
    return parse_ruby(source, path=os.fspath(file_path))


def _first_error(node: Node) -> Optional[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


# ═══════════════════════════════════════════════════════════════════════
#  Node helpers
# ═══════════════════════════════════════════════════════════════════════

def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def node_point(node: Node) -> Tuple[int, int]:
    """(line, column) of a node's start; line is 1-indexed, column 0-indexed."""
    return node.start_point[0] + 1, node.start_point[1]


def receiver_kind(node: Node) -> Optional[ReceiverKind]:
    """Classify a receiver node, or None for kinds the checker does not model."""
    return _RECEIVER_KINDS.get(node.type)


def argument_nodes(arg_list: Optional[Node]) -> List[Node]:
    """Argument nodes of an argument_list, keyword pairs collapsed into one entry."""
    if arg_list is None:
        return []
    return _collapse_arguments(arg_list.named_children)


def _collapse_arguments(nodes: List[Node]) -> List[Node]:
    args: List[Node] = []
    seen_keywords = False
    for child in nodes:
        if child.type in _NON_ARGUMENTS:
            continue
        if child.type in _KEYWORD_ARGUMENTS:
            if seen_keywords:
                continue
            seen_keywords = True
        args.append(child)
    return args


def _index_arguments(node: Node) -> List[Node]:
    """Index arguments of an element_reference (everything after the object)."""
    obj = node.child_by_field_name("object")
    return _collapse_arguments([c for c in node.named_children if c != obj])


def _is_safe_navigation(node: Node) -> bool:
    return any(child.type == "&." for child in node.children)


def call_parts(node: Node, source: bytes) -> Optional[CallParts]:
    """Split a call node into its parts, or None if `node` is not a call node."""
    if node.type == "call":
        method = node.child_by_field_name("method")
        if method is not None and method.type == "super":
            return None
        if _is_safe_navigation(node):
            return None
        # recv.() is sugar for recv.call()
        method_name = node_text(method, source) if method is not None else "call"
        return CallParts(
            receiver=node.child_by_field_name("receiver"),
            method_name=method_name,
            arguments=argument_nodes(node.child_by_field_name("arguments")),
            block=node.child_by_field_name("block"),
        )

    if node.type == "binary":
        operator = node_text(node.child_by_field_name("operator"), source)
        if operator in _BOOLEAN_OPERATORS:
            return None
        right = node.child_by_field_name("right")
        return CallParts(
            receiver=node.child_by_field_name("left"),
            method_name=operator,
            arguments=[right] if right is not None else [],
        )

    if node.type == "unary":
        operator = node_text(node.child_by_field_name("operator"), source)
        operand = node.child_by_field_name("operand")
        if operator not in _UNARY_METHODS:
            return None
        if operator in ("-", "+") and operand is not None and operand.type in _NUMERIC_LITERALS:
            return None
        return CallParts(receiver=operand, method_name=_UNARY_METHODS[operator])

    if node.type == "element_reference":
        return CallParts(
            receiver=node.child_by_field_name("object"),
            method_name="[]",
            arguments=_index_arguments(node),
        )

    if node.type == "assignment":
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        values = [right] if right is not None else []
        if left is None:
            return None
        if left.type == "element_reference":
            return CallParts(
                receiver=left.child_by_field_name("object"),
                method_name="[]=",
                arguments=_index_arguments(left) + values,
            )
        if left.type != "call" or _is_safe_navigation(left):
            return None
        method = left.child_by_field_name("method")
        if method is None:
            return None
        return CallParts(
            receiver=left.child_by_field_name("receiver"),
            method_name=node_text(method, source) + "=",
            arguments=values,
        )

    return None
