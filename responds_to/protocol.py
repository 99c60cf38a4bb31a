"""
Checker <-> oracle wire protocol.

One request and one reply per TCP connection.  Both are UTF-8 text with
fields joined by a horizontal tab:

    request:  <operation>\t<variable>[\t<method>[\t<count>]]
    reply:    YES | NO

A reply ends where the oracle stops writing: it closes after replying.
A request ends when its operation's fields have all arrived or when the
client half-closes, so clients that write once and wait are served too.
"""

import logging
import socket
from typing import List, Sequence

from responds_to.errors import MalformedRequest

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "\t"
YES = "YES"
NO = "NO"

MAX_MESSAGE_BYTES = 64 * 1024
_CHUNK = 4096

CAN_MAP_VARIABLE = "can_map_variable"
RESPONDS_TO = "responds_to"
SUPPORTS_ARITY = "supports_arity"

# operation -> number of argument fields after the operation name
OPERATIONS = {
    CAN_MAP_VARIABLE: 1,
    RESPONDS_TO: 2,
    SUPPORTS_ARITY: 3,
}


def encode_message(fields: Sequence[object]) -> bytes:
    return FIELD_SEPARATOR.join(str(f) for f in fields).encode("utf-8")


def decode_message(data: bytes) -> List[str]:
    return data.decode("utf-8", errors="replace").split(FIELD_SEPARATOR)


def encode_reply(answer: bool) -> bytes:
    return encode_message([YES if answer else NO])


def is_affirmative(fields: Sequence[str]) -> bool:
    """Only the single-token YES reply is affirmative; anything else means NO."""
    return list(fields) == [YES]


def read_message(sock: socket.socket, limit: int = MAX_MESSAGE_BYTES) -> bytes:
    """Read until the peer stops writing, or until `limit` bytes have arrived."""
    chunks: List[bytes] = []
    size = 0
    while size < limit:
        chunk = sock.recv(min(_CHUNK, limit - size))
        if not chunk:
            break
        chunks.append(chunk)
        size += len(chunk)
    if size >= limit:
        logger.warning("Message truncated at %d bytes", limit)
    return b"".join(chunks)


def request_complete(data: bytes) -> bool:
    """True once `data` holds every field its operation takes."""
    fields = decode_message(data)
    expected = OPERATIONS.get(fields[0])
    if expected is None:
        return False
    return len(fields) > expected + 1 or (len(fields) == expected + 1 and fields[-1] != "")


def read_request(sock: socket.socket, limit: int = MAX_MESSAGE_BYTES) -> bytes:
    """
    Read one request: until every field of its operation has arrived or the
    client stops writing, whichever comes first.  Clients that never
    half-close are answered as soon as their request is complete.

    Raises MalformedRequest when `limit` bytes arrive without a complete
    request.
    """
    data = b""
    while not request_complete(data):
        if len(data) >= limit:
            raise MalformedRequest(f"request exceeds {limit} bytes")
        chunk = sock.recv(min(_CHUNK, limit - len(data)))
        if not chunk:
            break
        data += chunk
    return data
