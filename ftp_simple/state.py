from enum import Enum, auto
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional


class SessionState(Enum):
    """FTP session state enumeration"""
    DISCONNECTED = auto()   # Constructed, control channel not yet open
    CONNECTED = auto()      # Control channel open
    AUTHENTICATED = auto()  # USER/PASS exchange done
    CLOSED = auto()         # QUIT sent, session cannot be reused


@dataclass
class SessionStats:
    """Session statistics information"""
    connected_at: Optional[float] = None
    commands_sent: int = 0
    replies_received: int = 0
    bytes_uploaded: int = 0
    bytes_downloaded: int = 0

    def mark_connected(self) -> None:
        self.connected_at = time.time()

    def get_uptime(self) -> Optional[float]:
        """Get connection uptime (seconds)"""
        if self.connected_at is None:
            return None
        return time.time() - self.connected_at

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary"""
        return {
            "connected_at": self.connected_at,
            "commands_sent": self.commands_sent,
            "replies_received": self.replies_received,
            "bytes_uploaded": self.bytes_uploaded,
            "bytes_downloaded": self.bytes_downloaded,
            "uptime": self.get_uptime(),
        }
