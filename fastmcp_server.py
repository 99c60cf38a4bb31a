"""
Ruby Interface Checker — MCP Server

Exposes tools via the Model Context Protocol:

  1. load_config      — load a static JSON config (variable -> class -> methods)
  2. connect_oracle   — answer knowledge queries from an oracle process instead
  3. check_source     — check a Ruby snippet for undefined methods / arity mismatches
  4. check_file       — same, for a .rb file on disk
  5. query_knowledge  — show the three knowledge-source answers for one call
  6. explain_arity    — decode an arity number
"""

from mcp.server.fastmcp import FastMCP
import logging
import os
import sys

# Ensure the responds_to package is importable
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from responds_to import arity
from responds_to.checker import Checker
from responds_to.errors import RespondsToError
from responds_to.findings import format_finding, format_report
from responds_to.knowledge_source import StaticKnowledgeSource, load_config as read_config
from responds_to.remote import ServerBackedKnowledgeSource

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("Ruby Interface Checker")

knowledge_source = None
checker = None


def _not_ready() -> str:
    return "Error: No knowledge source. Call load_config or connect_oracle first."


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Load Config
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def load_config(config_path: str) -> str:
    """
    Loads a static config and uses it as the knowledge source.

    The config is a JSON object with two maps:

        {"variable_to_class": {"user": "User"},
         "method_map": {"User": {"name": {"arity": 0}, "name_of": -2}}}

    Args:
        config_path: Absolute path to the JSON config.
    """
    global knowledge_source, checker

    if not os.path.exists(config_path):
        return f"Error: Config file not found at {config_path}"

    try:
        config = read_config(config_path)
    except RespondsToError as e:
        return f"Error loading config: {e}"

    knowledge_source = StaticKnowledgeSource(config)
    checker = Checker(knowledge_source)
    methods = sum(len(spec) for spec in config.method_map.values())
    return (
        f"Successfully loaded config.\n"
        f"{len(config.variable_to_class)} variables mapped, "
        f"{len(config.method_map)} classes, {methods} methods."
    )


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — Connect Oracle
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def connect_oracle(host: str = "127.0.0.1", port: int = 4567, timeout: float = 10.0) -> str:
    """
    Uses an oracle process as the knowledge source.  Every query opens its
    own connection, so nothing is contacted until the first check.

    Args:
        host:    Oracle host.
        port:    Oracle TCP port.
        timeout: Per-query socket timeout in seconds.
    """
    global knowledge_source, checker

    if timeout <= 0:
        return "Error: timeout must be positive"

    knowledge_source = ServerBackedKnowledgeSource(host, port, timeout=timeout)
    checker = Checker(knowledge_source)
    return f"Knowledge source set to oracle at {host}:{port} (timeout {timeout}s)."


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — Check Source
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def check_source(code: str) -> str:
    """
    Checks Ruby source text for calls to undefined methods and calls with
    an unsupported number of arguments.

    Args:
        code: Ruby source text.
    """
    if checker is None:
        return _not_ready()

    try:
        result = checker.check_interfaces(code)
    except RespondsToError as e:
        return f"Error: check aborted: {e}"
    return format_report(result)


# ═══════════════════════════════════════════════════════════════════════
#  Tool 4 — Check File
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def check_file(file_path: str) -> str:
    """
    Checks a Ruby file on disk.

    Args:
        file_path: Path of the .rb file.
    """
    if checker is None:
        return _not_ready()
    if not os.path.isfile(file_path):
        return f"Error: File not found at {file_path}"

    try:
        result = checker.check_file(file_path)
    except (RespondsToError, OSError, ValueError) as e:
        return f"Error: check aborted: {e}"

    report = format_report(result, file_path)
    if result:
        report += "\n### Details\n\n"
        report += "\n".join(f"- {format_finding(f, file_path)}" for f in result)
    return report


# ═══════════════════════════════════════════════════════════════════════
#  Tool 5 — Query Knowledge
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def query_knowledge(variable: str, method: str = "", argument_count: int = -1) -> str:
    """
    Shows what the knowledge source says about one variable / method / call.

    Args:
        variable:       Variable name as written in Ruby (without '@').
        method:         Method name.  Optional.
        argument_count: Number of arguments of the call.  Optional.
    """
    if knowledge_source is None:
        return _not_ready()

    variable = variable.lstrip("@")
    try:
        lines = [f"## `{variable}`", ""]
        mapped = knowledge_source.can_map_variable(variable)
        lines.append(f"- mapped to a class: **{'yes' if mapped else 'no'}**")
        if method:
            responds = knowledge_source.responds_to(variable, method)
            lines.append(f"- responds to `{method}`: **{'yes' if responds else 'no'}**")
            if responds and argument_count >= 0:
                ok = knowledge_source.supports_arity(variable, method, argument_count)
                lines.append(
                    f"- accepts {argument_count} argument(s): **{'yes' if ok else 'no'}**"
                )
    except RespondsToError as e:
        return f"Error: query failed: {e}"
    return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════
#  Tool 6 — Explain Arity
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def explain_arity(value: int) -> str:
    """
    Explains an arity number as used in configs and by the oracle.

    Args:
        value: The encoded arity (-1 = any, n >= 0 = exactly n, n < -1 = at least -(n+1)).
    """
    return f"Arity {value} accepts {arity.describe(value)}."


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    mcp.run()
