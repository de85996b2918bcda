import logging
from pathlib import Path

import structlog

from flprocess.utils.logging import log_dir, setup_logging


def test_json_log_goes_to_env_dir(tmp_path: Path):
    """Verify the JSON event log is written below $FLPROCESS_LOG_DIR."""
    setup_logging()
    structlog.get_logger().info("test.event", subject="sub-01")
    log_file = tmp_path / "logs" / "flprocess.log"
    assert log_file.exists()
    assert '"event": "test.event"' in log_file.read_text()


def test_log_dir_precedence(tmp_path: Path, monkeypatch):
    """Verify env dir, then root folder, then package folder."""
    assert log_dir(tmp_path / "repo") == tmp_path / "logs"
    monkeypatch.delenv("FLPROCESS_LOG_DIR")
    assert log_dir(tmp_path / "repo") == tmp_path / "repo" / "logs"
    assert log_dir(None).name == "logs"
    assert log_dir(None).parent.name == "flprocess"


def test_plain_text_mirror(tmp_path: Path):
    """Verify --save-logfile mirrors console-level messages."""
    mirror = tmp_path / "out" / "run.txt"
    setup_logging(verbose=True, extra_text_log=mirror)
    structlog.get_logger().warning("subject.failed", subject="sub-02")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "subject.failed" in mirror.read_text()
