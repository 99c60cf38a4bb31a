"""
Interface checker — walks a Ruby syntax tree and reports calls, made
through tracked variables, to methods the variable's class does not define
or with an argument count the method does not accept.

Traversal rules:

  • a call node (method call, operator, index, setter) is evaluated and its
    receiver and arguments are NOT walked, so `a.b(c.d())`, `a.b.c` and
    `a.b + 1` only ever check the outermost call.  A literal block attached
    to the call is still walked.
  • every other node: walk each named child, in source order.

Evaluation of a call on a trackable variable produces at most one finding:
NoSuchMethod when the class lacks the method, otherwise ArityMismatch when
the argument count is rejected.
"""

import logging
from typing import List, Optional, Union

from tree_sitter import Node

from responds_to.findings import ArityMismatch, NoSuchMethod, Result
from responds_to.knowledge_source import KnowledgeSource
from responds_to.resolver import VariableResolver
from responds_to.ruby_syntax import CallParts, ParsedSource, call_parts, parse_file, parse_ruby

logger = logging.getLogger(__name__)


class ASTProcessor:
    """One traversal over one parsed source."""

    def __init__(self, knowledge_source: KnowledgeSource, parsed: ParsedSource):
        self.knowledge_source = knowledge_source
        self.parsed = parsed
        self.resolver = VariableResolver(knowledge_source, parsed.source)
        self._findings: List = []

    @property
    def result(self) -> Result:
        return Result(self._findings)

    def process(self, node: Optional[Node] = None) -> Result:
        """Depth-first, pre-order walk from `node` (default: the root)."""
        stack = [node if node is not None else self.parsed.root]
        while stack:
            current = stack.pop()
            parts = call_parts(current, self.parsed.source)
            if parts is None:
                stack.extend(reversed(current.named_children))
                continue
            self.on_call(current, parts)
            if parts.block is not None:
                stack.append(parts.block)
        return self.result

    def on_call(self, node: Node, parts: CallParts):
        if not self.resolver.can_track(parts.receiver):
            return
        var_name = self.resolver.resolve_name(parts.receiver)
        ks = self.knowledge_source
        if not ks.responds_to(var_name, parts.method_name):
            self._findings.append(NoSuchMethod(node, var_name, parts.method_name))
        elif not ks.supports_arity(var_name, parts.method_name, len(parts.arguments)):
            self._findings.append(
                ArityMismatch(node, var_name, parts.method_name, len(parts.arguments))
            )


class Checker:
    def __init__(self, knowledge_source: KnowledgeSource):
        self.knowledge_source = knowledge_source

    def check_interfaces(self, code: Union[str, bytes, ParsedSource]) -> Result:
        parsed = code if isinstance(code, ParsedSource) else parse_ruby(code)
        result = ASTProcessor(self.knowledge_source, parsed).process()
        logger.info("Checked %s: %d finding(s)", parsed.path, len(result))
        return result

    def check_file(self, file_path: str) -> Result:
        return self.check_interfaces(parse_file(file_path))


def check_interfaces(
    code: Union[str, bytes, ParsedSource], knowledge_source: KnowledgeSource
) -> Result:
    """Check one source text (or an already parsed source) against a knowledge source."""
    return Checker(knowledge_source).check_interfaces(code)
