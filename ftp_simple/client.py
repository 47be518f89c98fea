import asyncio
import os
import ssl
from types import TracebackType
from typing import Callable, List, Optional, Tuple, Type

import aiofiles
from loguru import logger

from .config import FTPConfig
from .exceptions import (
    FTPAuthError, FTPConnectionError, FTPReplyError, FTPStateError
)
from .listing import DirectoryEntry, parse_listing
from .log import mask_command
from .protocol import (
    PassiveEndpoint, ReplyReader, Response, format_command, parse_pasv
)
from .state import SessionState, SessionStats

ProgressCallback = Callable[[int, Optional[int]], None]


def create_ssl_context() -> ssl.SSLContext:
    """TLS context for the control channel, with certificate checks disabled"""
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class FTPClient:
    """Asynchronous FTP client for a single session

    The session is single-use: once ``disconnect`` has run, a new client
    must be created. Operations are serialized on one lock, so concurrent
    calls on the same client run one after another.
    """

    def __init__(self, config: FTPConfig):
        """Initialize FTP client

        Args:
            config: FTP configuration
        """
        self.config = config
        self.welcome: Optional[Response] = None
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._replies: Optional[ReplyReader] = None
        self._lock = asyncio.Lock()
        self._state = SessionState.DISCONNECTED
        self._stats = SessionStats()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state in (SessionState.CONNECTED, SessionState.AUTHENTICATED)

    @property
    def stats(self) -> SessionStats:
        return self._stats

    async def connect(self) -> Response:
        """Open the control channel and read the welcome banner

        Returns:
            The server's welcome reply

        Raises:
            FTPStateError: If the session is already open or was closed
            FTPConnectionError: If the server cannot be reached
        """
        if self._state is SessionState.CLOSED:
            raise FTPStateError("Session is closed; create a new client")
        if self.connected:
            raise FTPStateError("Already connected")

        async with self._lock:
            ssl_context = create_ssl_context() if self.config.secure else None
            try:
                reader, writer = await asyncio.open_connection(
                    self.config.host, self.config.port, ssl=ssl_context)
            except OSError as e:
                logger.error(
                    f"FTP connection to {self.config.host}:{self.config.port} failed: {e}")
                raise FTPConnectionError(f"Failed to connect: {e}") from e

            self._reader = reader
            self._writer = writer
            self._replies = ReplyReader(reader, self.config.encoding)
            self._state = SessionState.CONNECTED
            self._stats.mark_connected()
            logger.info(
                f"Connected to FTP server at {self.config.host}:{self.config.port}"
                f"{' (TLS)' if self.config.secure else ''}")

            self.welcome = await self._read_response()
            return self.welcome

    async def connect_and_login(self) -> Response:
        """Connect, then log in with the configured credentials"""
        await self.connect()
        return await self.login()

    async def login(self) -> Response:
        """Send USER and PASS

        Both commands are always sent. The PASS reply is returned as is;
        a rejected login only raises when ``raise_on_error`` is set. A 2xx
        reply to USER means no password was needed, so the PASS reply is
        not taken as a rejection.

        Raises:
            FTPAuthError: On a negative reply, with ``raise_on_error``
        """
        async with self._lock:
            user_reply = await self._execute(f"USER {self.config.username}")
            if self.config.raise_on_error and user_reply.is_negative:
                raise FTPAuthError(user_reply)
            pass_reply = await self._execute(f"PASS {self.config.password}")
            if 200 <= user_reply.code < 300:
                self._state = SessionState.AUTHENTICATED
                logger.info(f"Logged in as {self.config.username} without password")
            elif pass_reply.is_negative:
                logger.warning(f"Login as {self.config.username} rejected: {pass_reply}")
                if self.config.raise_on_error:
                    raise FTPAuthError(pass_reply)
            else:
                self._state = SessionState.AUTHENTICATED
                logger.info(f"Logged in as {self.config.username}")
            return pass_reply

    async def send_command(self, command: str) -> Response:
        """Send one command and return its reply

        Args:
            command: Command line without the CRLF terminator
        """
        async with self._lock:
            return await self._execute(command)

    async def list(self, path: str = "/") -> List[DirectoryEntry]:
        """List a remote directory over a passive data connection

        Args:
            path: Remote directory

        Returns:
            Parsed entries in the order the server sent them

        Raises:
            FTPProtocolError: If the PASV reply carries no address
            FTPConnectionError: If a connection fails
        """
        async with self._lock:
            await self._execute("TYPE A")
            endpoint = await self._enter_passive()
            data_reader, data_writer = await self._open_data_connection(endpoint)
            try:
                reply = await self._execute(f"LIST {path}")
                if not reply.is_preliminary:
                    self._check(reply)
                    return []
                raw = await self._read_data(data_reader)
            finally:
                await self._close_data_connection(data_writer)

            self._check(await self._read_response())
            entries = parse_listing(raw.decode(self.config.encoding, errors="replace"))
            logger.debug(f"Listed {len(entries)} entries in {path}")
            return entries

    async def upload(self, local_path: str, remote_path: str,
                     callback: Optional[ProgressCallback] = None) -> Response:
        """Store a local file on the server

        Args:
            local_path: File to read
            remote_path: Destination on the server
            callback: Called with (bytes sent, file size) after each chunk

        Returns:
            The transfer's final reply
        """
        total = os.path.getsize(local_path)
        async with self._lock, aiofiles.open(local_path, 'rb') as source:
            await self._execute("TYPE I")
            endpoint = await self._enter_passive()
            data_reader, data_writer = await self._open_data_connection(endpoint)
            transferred = 0
            try:
                reply = await self._execute(f"STOR {remote_path}")
                if not reply.is_preliminary:
                    return self._check(reply)
                while True:
                    chunk = await source.read(self.config.chunk_size)
                    if not chunk:
                        break
                    data_writer.write(chunk)
                    await data_writer.drain()
                    transferred += len(chunk)
                    if callback:
                        callback(transferred, total)
            except (ConnectionError, OSError) as e:
                raise FTPConnectionError(f"Data connection lost: {e}") from e
            finally:
                self._stats.bytes_uploaded += transferred
                await self._close_data_connection(data_writer)

            final = self._check(await self._read_response())
            logger.info(f"Uploaded {local_path} -> {remote_path} ({transferred} bytes)")
            return final

    async def download(self, remote_path: str, local_path: str,
                       callback: Optional[ProgressCallback] = None) -> Response:
        """Retrieve a remote file into a local file

        Args:
            remote_path: File on the server
            local_path: Destination file, created or truncated
            callback: Called with (bytes received, None) after each chunk

        Returns:
            The transfer's final reply
        """
        async with self._lock:
            await self._execute("TYPE I")
            endpoint = await self._enter_passive()
            data_reader, data_writer = await self._open_data_connection(endpoint)
            transferred = 0
            try:
                reply = await self._execute(f"RETR {remote_path}")
                if not reply.is_preliminary:
                    return self._check(reply)
                # Local file is only touched once the server accepts RETR
                async with aiofiles.open(local_path, 'wb') as target:
                    while True:
                        chunk = await data_reader.read(self.config.chunk_size)
                        if not chunk:
                            break
                        await target.write(chunk)
                        transferred += len(chunk)
                        if callback:
                            callback(transferred, None)
            except (FileNotFoundError, PermissionError, IsADirectoryError):
                raise
            except (ConnectionError, OSError) as e:
                raise FTPConnectionError(f"Data connection lost: {e}") from e
            finally:
                self._stats.bytes_downloaded += transferred
                await self._close_data_connection(data_writer)

            final = self._check(await self._read_response())
            logger.info(f"Downloaded {remote_path} -> {local_path} ({transferred} bytes)")
            return final

    async def remove(self, path: str) -> Response:
        """Delete a remote file"""
        async with self._lock:
            return self._check(await self._execute(f"DELE {path}"))

    async def disconnect(self) -> Optional[Response]:
        """Send QUIT and close the control channel

        The channel is closed whatever the QUIT reply. The session cannot
        be reconnected afterwards.

        Returns:
            The QUIT reply, or None if the session was not connected or the
            connection failed while quitting
        """
        if not self.connected:
            self._state = SessionState.CLOSED
            return None

        async with self._lock:
            response: Optional[Response] = None
            try:
                response = await self._execute("QUIT")
            except FTPConnectionError as e:
                logger.warning(f"Connection lost while quitting: {e}")
            finally:
                await self._close_control()
            logger.info("Disconnected from FTP server")
            return response

    async def _execute(self, command: str) -> Response:
        """Write one command and read its reply; caller holds the lock"""
        if self._writer is None or not self.connected:
            raise FTPStateError("Not connected")

        logger.debug(f">>> {mask_command(command)}")
        try:
            self._writer.write(format_command(command))
            await self._writer.drain()
        except (ConnectionError, OSError) as e:
            logger.error(f"Failed to send command: {e}")
            raise FTPConnectionError(f"Control connection lost: {e}") from e
        self._stats.commands_sent += 1
        return await self._read_response()

    async def _read_response(self) -> Response:
        if self._replies is None:
            raise FTPStateError("Not connected")
        response = await self._replies.read_response()
        self._stats.replies_received += 1
        return response

    def _check(self, response: Response) -> Response:
        if self.config.raise_on_error and response.is_negative:
            raise FTPReplyError(response)
        return response

    async def _enter_passive(self) -> PassiveEndpoint:
        reply = await self._execute("PASV")
        self._check(reply)
        endpoint = parse_pasv(reply.message)
        logger.debug(f"Passive endpoint {endpoint.host}:{endpoint.port}")
        return endpoint

    async def _open_data_connection(
        self, endpoint: PassiveEndpoint
    ) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            return await asyncio.open_connection(endpoint.host, endpoint.port)
        except OSError as e:
            logger.error(f"Data connection to {endpoint.host}:{endpoint.port} failed: {e}")
            raise FTPConnectionError(f"Failed to open data connection: {e}") from e

    async def _read_data(self, reader: asyncio.StreamReader) -> bytes:
        chunks: List[bytes] = []
        try:
            while True:
                chunk = await reader.read(self.config.chunk_size)
                if not chunk:
                    break
                chunks.append(chunk)
        except (ConnectionError, OSError) as e:
            raise FTPConnectionError(f"Data connection lost: {e}") from e
        return b"".join(chunks)

    async def _close_data_connection(self, writer: asyncio.StreamWriter) -> None:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Error closing data connection: {e}")

    async def _close_control(self) -> None:
        self._state = SessionState.CLOSED
        writer = self._writer
        self._reader = None
        self._writer = None
        self._replies = None
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Error closing control connection: {e}")

    async def __aenter__(self) -> "FTPClient":
        try:
            await self.connect_and_login()
        except BaseException:
            await self.disconnect()
            raise
        return self

    async def __aexit__(self,
                        exc_type: Optional[Type[BaseException]],
                        exc_val: Optional[BaseException],
                        exc_tb: Optional[TracebackType]) -> Optional[bool]:
        await self.disconnect()
        return None
