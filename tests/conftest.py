"""
Shared fixtures: an in-process FTP server speaking just enough of RFC 959
for the client under test.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from ftp_simple import FTPConfig, FTPClient

LISTING = (
    "-rw-r--r-- 1 user group 1024 Jan 15 2019 report.txt\r\n"
    "drwxr-xr-x 2 user group 4096 Mar 3 2021 my photos\r\n"
)


class FakeFTPServer:
    """Scripted FTP server bound to 127.0.0.1 on an ephemeral port"""

    def __init__(self):
        self.password = "secret"
        self.no_password = False
        self.welcome = b"220 Fake FTP ready\r\n"
        self.pasv_reply: Optional[str] = None
        self.listing = LISTING
        self.files: Dict[str, bytes] = {}
        self.commands: List[str] = []
        self.raw: bytearray = bytearray()
        self.port = 0
        self._server: Optional[asyncio.AbstractServer] = None
        self._data_server: Optional[asyncio.AbstractServer] = None
        self._data_conns: "asyncio.Queue[Tuple[asyncio.StreamReader, asyncio.StreamWriter]]" = asyncio.Queue()

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        await self._close_data_server()
        if self._server:
            self._server.close()

    async def _close_data_server(self) -> None:
        if self._data_server:
            self._data_server.close()
            self._data_server = None

    async def _on_data_conn(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await self._data_conns.put((reader, writer))

    async def _open_passive(self) -> str:
        await self._close_data_server()
        while not self._data_conns.empty():
            _, stale = self._data_conns.get_nowait()
            stale.close()
        self._data_server = await asyncio.start_server(self._on_data_conn, "127.0.0.1", 0)
        port = self._data_server.sockets[0].getsockname()[1]
        return f"227 Entering Passive Mode (127,0,0,1,{port // 256},{port % 256})."

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.write(self.welcome)
        await writer.drain()
        try:
            while True:
                raw = await reader.readline()
                if not raw:
                    break
                self.raw.extend(raw)
                line = raw.decode().rstrip("\r\n")
                self.commands.append(line)
                verb, _, arg = line.partition(" ")
                reply = await self._dispatch(verb.upper(), arg, writer)
                if reply is not None:
                    writer.write((reply + "\r\n").encode())
                    await writer.drain()
                if verb.upper() == "QUIT":
                    break
        finally:
            writer.close()

    async def _dispatch(self, verb: str, arg: str, writer: asyncio.StreamWriter) -> Optional[str]:
        if verb == "USER":
            if self.no_password:
                return "230 Login successful."
            return "331 Please specify the password."
        if verb == "PASS":
            if self.no_password:
                return "503 Already logged in."
            if arg == self.password:
                return "230 Login successful."
            return "530 Login incorrect."
        if verb == "TYPE":
            return f"200 Switching to {'ASCII' if arg == 'A' else 'Binary'} mode."
        if verb == "PASV":
            if self.pasv_reply is not None:
                return self.pasv_reply
            return await self._open_passive()
        if verb == "LIST":
            await self._send_preliminary(writer, "150 Here comes the directory listing.")
            data_reader, data_writer = await self._data_conns.get()
            data_writer.write(self.listing.encode())
            await data_writer.drain()
            data_writer.close()
            return "226 Directory send OK."
        if verb == "STOR":
            await self._send_preliminary(writer, "150 Ok to send data.")
            data_reader, data_writer = await self._data_conns.get()
            self.files[arg] = await data_reader.read()
            data_writer.close()
            return "226 Transfer complete."
        if verb == "RETR":
            if arg not in self.files:
                await self._close_data_server()
                return "550 Failed to open file."
            await self._send_preliminary(writer, f"150 Opening BINARY mode data connection for {arg}.")
            data_reader, data_writer = await self._data_conns.get()
            data_writer.write(self.files[arg])
            await data_writer.drain()
            data_writer.close()
            return "226 Transfer complete."
        if verb == "DELE":
            if self.files.pop(arg, None) is None:
                return "550 Delete operation failed."
            return "250 Delete operation successful."
        if verb == "QUIT":
            return "221 Goodbye."
        return "502 Command not implemented."

    async def _send_preliminary(self, writer: asyncio.StreamWriter, reply: str) -> None:
        writer.write((reply + "\r\n").encode())
        await writer.drain()


@pytest.fixture
async def ftp_server():
    server = FakeFTPServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
def make_client(ftp_server):
    def factory(**overrides) -> FTPClient:
        params = {
            "host": "127.0.0.1",
            "port": ftp_server.port,
            "username": "user",
            "password": "secret",
        }
        params.update(overrides)
        return FTPClient(FTPConfig(**params))
    return factory
