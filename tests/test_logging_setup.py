"""
Tests for logging setup.
"""

from pathlib import Path
from unittest.mock import Mock, patch

from ftp_simple.log import LoggingConfig, mask_command, setup_logging
from ftp_simple.state import SessionStats


class TestSetupLogging:
    """Test cases for loguru sink configuration."""

    @patch('ftp_simple.log.logger')
    def test_console_only(self, mock_logger: Mock) -> None:
        setup_logging(LoggingConfig(level="DEBUG"))

        mock_logger.remove.assert_called_once()
        assert mock_logger.add.call_count == 1
        assert mock_logger.add.call_args.kwargs["level"] == "DEBUG"

    @patch('ftp_simple.log.logger')
    def test_file_sink(self, mock_logger: Mock, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        config = LoggingConfig(log_directory=str(log_dir), console_enabled=False, file_enabled=True)

        setup_logging(config)

        assert log_dir.is_dir()
        assert mock_logger.add.call_count == 1
        sink = mock_logger.add.call_args.args[0]
        assert sink == log_dir / "ftp_client.log"
        assert mock_logger.add.call_args.kwargs["rotation"] == "10 MB"


class TestMaskCommand:
    """Test cases for credential masking."""

    def test_masks_password(self) -> None:
        assert mask_command("PASS hunter2") == "PASS ****"
        assert mask_command("pass hunter2") == "PASS ****"

    def test_leaves_other_commands(self) -> None:
        assert mask_command("USER bob") == "USER bob"
        assert mask_command("PASV") == "PASV"


def test_session_stats_to_dict() -> None:
    stats = SessionStats()
    assert stats.get_uptime() is None

    stats.mark_connected()
    stats.commands_sent = 3
    data = stats.to_dict()

    assert data["commands_sent"] == 3
    assert data["uptime"] is not None and data["uptime"] >= 0
