"""
Control channel framing for the FTP client.

Commands are single CRLF-terminated lines. Replies are read from a
buffered stream and may span several lines: a continuation reply opens
with ``NNN-`` and ends at the first line starting with ``NNN `` (RFC 959,
section 4.2).
"""

import asyncio
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

from loguru import logger

from .exceptions import FTPConnectionError, FTPProtocolError

_CODE_RE = re.compile(r"^(\d{3})(?:([ -])(.*))?$")
_PASV_RE = re.compile(r"(\d+),(\d+),(\d+),(\d+),(\d+),(\d+)")


class ResponseKind(Enum):
    """Reply category keyed by the first digit of the reply code"""
    POSITIVE_PRELIMINARY = 1
    POSITIVE_COMPLETION = 2
    POSITIVE_INTERMEDIATE = 3
    TRANSIENT_NEGATIVE = 4
    PERMANENT_NEGATIVE = 5


@dataclass(frozen=True)
class Response:
    """A parsed control channel reply"""
    code: int
    message: str
    lines: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def kind(self) -> ResponseKind:
        try:
            return ResponseKind(self.code // 100)
        except ValueError:
            raise FTPProtocolError(f"Unknown reply category: {self.code}")

    @property
    def is_preliminary(self) -> bool:
        return self.kind is ResponseKind.POSITIVE_PRELIMINARY

    @property
    def is_positive(self) -> bool:
        return self.code < 400

    @property
    def is_negative(self) -> bool:
        return self.code >= 400

    def __str__(self) -> str:
        return f"{self.code} {self.message}"


@dataclass(frozen=True)
class PassiveEndpoint:
    """Address advertised by a PASV reply, valid for one data connection"""
    host: str
    port: int


def format_command(command: str) -> bytes:
    """Frame a command for the control channel

    Args:
        command: Command line without terminator

    Returns:
        ``command`` followed by CRLF, encoded

    Raises:
        FTPProtocolError: If the command embeds a line break
    """
    if "\r" in command or "\n" in command:
        raise FTPProtocolError("Command must not contain line breaks")
    return (command + "\r\n").encode("utf-8")


def parse_pasv(message: str) -> PassiveEndpoint:
    """Extract the data channel address from a PASV reply message

    The address is the first run of six comma separated integers,
    with or without surrounding parentheses.

    Raises:
        FTPProtocolError: If no address is present
    """
    match = _PASV_RE.search(message)
    if not match:
        raise FTPProtocolError("Invalid PASV response")
    numbers = [int(group) for group in match.groups()]
    host = ".".join(str(octet) for octet in numbers[:4])
    port = numbers[4] * 256 + numbers[5]
    return PassiveEndpoint(host=host, port=port)


class ReplyReader:
    """Reads complete replies, one per call, from the control stream"""

    def __init__(self, reader: asyncio.StreamReader, encoding: str = "utf-8"):
        self._reader = reader
        self._encoding = encoding

    async def _read_line(self) -> str:
        try:
            raw = await self._reader.readline()
        except (ConnectionError, OSError) as e:
            raise FTPConnectionError(f"Control connection lost: {e}") from e
        if not raw:
            raise FTPConnectionError("Control connection closed by server")
        return raw.decode(self._encoding, errors="replace").rstrip("\r\n")

    async def read_response(self) -> Response:
        """Read the next complete reply

        Raises:
            FTPConnectionError: If the stream ends before a full reply
            FTPProtocolError: If the reply does not start with a code
        """
        first = await self._read_line()
        match = _CODE_RE.match(first)
        if not match:
            raise FTPProtocolError(f"Malformed reply: {first!r}")

        code, separator, text = match.group(1), match.group(2) or "", match.group(3) or ""
        lines: List[str] = [first]
        parts: List[str] = [text.strip()]

        if separator == "-":
            terminator = code + " "
            while True:
                line = await self._read_line()
                lines.append(line)
                if line.startswith(terminator) or line == code:
                    parts.append(line[4:].strip())
                    break
                # Continuation lines may repeat the code with a dash
                if line.startswith(code + "-"):
                    line = line[4:]
                parts.append(line.strip())

        response = Response(
            code=int(code),
            message="\n".join(part for part in parts if part),
            lines=tuple(lines),
        )
        logger.debug(f"<<< {response.code} {response.message}")
        return response
