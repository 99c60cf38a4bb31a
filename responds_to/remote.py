"""
Knowledge source backed by an oracle process.

Every query is an isolated round trip: connect, send one request,
half-close, read one reply, close.  There is no pooling, batching, caching
or retry.  A refused/reset connection, a timeout, or a hang-up before any
reply byte arrives raises ProtocolFailure.
"""

import logging
import socket

from responds_to import protocol
from responds_to.errors import ProtocolFailure

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ServerBackedKnowledgeSource:
    def __init__(self, host: str, port: int, timeout: float = DEFAULT_TIMEOUT):
        self.host = host
        self.port = port
        self.timeout = timeout

    def can_map_variable(self, var_name: str) -> bool:
        return self._ask(protocol.CAN_MAP_VARIABLE, var_name)

    def responds_to(self, var_name: str, method_name: str) -> bool:
        return self._ask(protocol.RESPONDS_TO, var_name, method_name)

    def supports_arity(self, var_name: str, method_name: str, num_received: int) -> bool:
        return self._ask(protocol.SUPPORTS_ARITY, var_name, method_name, num_received)

    def _ask(self, *fields) -> bool:
        request = protocol.encode_message(fields)
        logger.debug("> %r", request)
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(request)
                sock.shutdown(socket.SHUT_WR)
                reply = protocol.read_message(sock)
        except OSError as e:
            raise ProtocolFailure(
                f"{fields[0]} query to {self.host}:{self.port} failed: {e}"
            ) from e

        if not reply:
            raise ProtocolFailure(
                f"{self.host}:{self.port} closed the connection without replying to {fields[0]}"
            )
        answer = protocol.decode_message(reply)
        logger.debug("< %r", answer)
        return protocol.is_affirmative(answer)

    def __repr__(self):
        return f"ServerBackedKnowledgeSource({self.host!r}, {self.port!r})"
