"""
Findings and the Result of one check run.

Findings are structured records; turning them into text is done by
format_finding / format_report and nowhere else.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

from tree_sitter import Node

from responds_to.ruby_syntax import node_point

NO_METHOD = "no_method"
ARITY_MISMATCH = "arity_mismatch"


@dataclass(frozen=True)
class NoSuchMethod:
    """A call on a tracked variable whose class lacks the method."""
    node: Node
    variable: str
    method: str

    kind = NO_METHOD

    @property
    def line(self) -> int:
        return node_point(self.node)[0]

    @property
    def column(self) -> int:
        return node_point(self.node)[1]


@dataclass(frozen=True)
class ArityMismatch:
    """A call whose argument count the method's arity rejects."""
    node: Node
    variable: str
    method: str
    argument_count: int

    kind = ARITY_MISMATCH

    @property
    def line(self) -> int:
        return node_point(self.node)[0]

    @property
    def column(self) -> int:
        return node_point(self.node)[1]


class Result:
    """Findings of one run, in visitation order (not sorted by location)."""

    def __init__(self, findings: Sequence = ()):
        self._findings: Tuple = tuple(findings)

    @property
    def findings(self) -> Tuple:
        return self._findings

    @property
    def errors(self) -> Tuple:
        """Same tuple as `findings`."""
        return self._findings

    def no_method(self) -> Tuple[NoSuchMethod, ...]:
        return tuple(f for f in self._findings if f.kind == NO_METHOD)

    def arity_mismatches(self) -> Tuple[ArityMismatch, ...]:
        return tuple(f for f in self._findings if f.kind == ARITY_MISMATCH)

    def __iter__(self) -> Iterator:
        return iter(self._findings)

    def __len__(self):
        return len(self._findings)

    def __bool__(self):
        return bool(self._findings)

    def __repr__(self):
        return f"Result({len(self._findings)} finding(s))"


# ═══════════════════════════════════════════════════════════════════════
#  Presentation
# ═══════════════════════════════════════════════════════════════════════

def format_finding(finding, path: Optional[str] = None) -> str:
    where = f"{path}:" if path else ""
    where += f"{finding.line}:{finding.column + 1}"
    if finding.kind == NO_METHOD:
        return (
            f"{where}: undefined method `{finding.method}` "
            f"for `{finding.variable}`"
        )
    return (
        f"{where}: `{finding.variable}.{finding.method}` called with "
        f"{finding.argument_count} argument(s), which its arity does not accept"
    )


def format_report(result: Result, path: str = "<source>") -> str:
    """Markdown summary of a run."""
    if not result:
        return f"No interface violations found in `{path}`."

    report = f"## Interface check: `{path}`\n\n"
    report += f"**{len(result)} finding(s)**: {len(result.no_method())} undefined method, "
    report += f"{len(result.arity_mismatches())} arity mismatch\n\n"
    report += "| Line | Col | Kind | Variable | Method | Args |\n"
    report += "|------|-----|------|----------|--------|------|\n"
    for f in result:
        args = str(f.argument_count) if f.kind == ARITY_MISMATCH else ""
        report += f"| {f.line} | {f.column + 1} | {f.kind} | `{f.variable}` | `{f.method}` | {args} |\n"
    return report
