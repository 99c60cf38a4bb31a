"""
Oracle — serves any KnowledgeSource over the wire protocol.

The acceptor handles one connection at a time: accept, read one request,
dispatch, write one reply, close, repeat.

A request the oracle cannot serve (unknown operation, wrong field count,
non-numeric argument count, oversized request) fails only its own connection: it is logged
and the connection is closed without a reply, which the client reports as
a ProtocolFailure.  The accept loop keeps running.
"""

import logging
import socketserver
from typing import Sequence, Tuple

from responds_to import protocol
from responds_to.errors import MalformedRequest, UnrecognizedOperation
from responds_to.knowledge_source import KnowledgeSource

logger = logging.getLogger(__name__)


class OracleRequestHandler(socketserver.BaseRequestHandler):
    """One connection, one request, one reply."""

    def handle(self):
        self.request.settimeout(self.server.read_timeout)
        try:
            fields = protocol.decode_message(protocol.read_request(self.request))
            logger.debug("> %r", fields)
            answer = self.server.dispatch(fields)
        except MalformedRequest as e:
            logger.error("Rejected request from %s: %s", self.client_address[0], e)
            return
        reply = protocol.encode_reply(answer)
        logger.debug("< %r", reply)
        self.request.sendall(reply)


class OracleServer(socketserver.TCPServer):
    """Single-threaded TCP acceptor answering knowledge-source queries."""

    allow_reuse_address = True

    def __init__(
        self,
        knowledge_source: KnowledgeSource,
        host: str = "127.0.0.1",
        port: int = 0,
        read_timeout: float = 10.0,
    ):
        self.knowledge_source = knowledge_source
        self.read_timeout = read_timeout
        super().__init__((host, port), OracleRequestHandler)

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self.server_address[:2]
        return host, port

    def dispatch(self, fields: Sequence[str]) -> bool:
        """Run the query named by fields[0] against the knowledge source."""
        operation, args = fields[0], list(fields[1:])
        expected = protocol.OPERATIONS.get(operation)
        if expected is None:
            raise UnrecognizedOperation(operation)
        if len(args) != expected:
            raise MalformedRequest(
                f"{operation} takes {expected} argument(s), got {len(args)}: {args!r}"
            )

        ks = self.knowledge_source
        if operation == protocol.CAN_MAP_VARIABLE:
            return ks.can_map_variable(args[0])
        if operation == protocol.RESPONDS_TO:
            return ks.responds_to(args[0], args[1])
        return ks.supports_arity(args[0], args[1], _parse_count(args[2]))

    def handle_error(self, request, client_address):
        logger.exception("Error while serving %s", client_address[0])


def _parse_count(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise MalformedRequest(f"argument count is not an integer: {text!r}")
