"""
Variable Resolver — maps a call receiver to a trackable variable name.

Names are resolved by name alone: one flat namespace for the whole file,
no block or method scoping.
"""

from typing import Optional

from tree_sitter import Node

from responds_to.errors import UnsupportedReceiverKind
from responds_to.knowledge_source import KnowledgeSource
from responds_to.ruby_syntax import ReceiverKind, node_point, node_text, receiver_kind


class VariableResolver:
    def __init__(self, knowledge_source: KnowledgeSource, source: bytes):
        self.knowledge_source = knowledge_source
        self.source = source

    def resolve_name(self, receiver: Node) -> Optional[str]:
        """
        Variable name for a receiver, or None when its class cannot be known
        statically (string literal, chained call, constant).

        Any receiver kind not listed raises UnsupportedReceiverKind: an
        unknown shape must surface instead of being silently skipped.
        """
        kind = receiver_kind(receiver)
        if kind is ReceiverKind.IVAR:
            return node_text(receiver, self.source)[1:]
        elif kind is ReceiverKind.LVAR:
            return node_text(receiver, self.source)
        elif kind in (ReceiverKind.STR, ReceiverKind.SEND, ReceiverKind.CONST):
            return None
        else:
            raise UnsupportedReceiverKind(
                receiver.type, node_text(receiver, self.source), node_point(receiver)
            )

    def can_track(self, receiver: Optional[Node]) -> bool:
        """An implicit-self call (no receiver node) is never trackable."""
        if receiver is None:
            return False
        name = self.resolve_name(receiver)
        return name is not None and self.knowledge_source.can_map_variable(name)
