"""
Event system for run status, progress and log lines, written through logging.
"""

import logging
from typing import Dict, Optional, Any


class SyncEventEmitter:
    """Emit run events to a logger and keep the latest state in memory."""

    def __init__(self, run_name: str, logger: Optional[logging.Logger] = None):
        """
        Initialize event emitter.

        Args:
            run_name: Label included in status lines (e.g. "sync", "delete")
            logger: Logger to write to (defaults to this module's logger)
        """
        self.run_name = run_name
        self.logger = logger or logging.getLogger(__name__)
        self.status: Optional[str] = None
        self.progress: Dict[str, Any] = {}

    async def emit_status(self, status: str, total: Optional[int] = None):
        """
        Emit status event.

        Args:
            status: Run status (running, done, failed, cancelled)
            total: Total items to process (optional)
        """
        self.status = status
        suffix = f" (total: {total})" if total is not None else ""
        self.logger.info(f"[{self.run_name}] status: {status}{suffix}")

    async def emit_progress(
        self,
        done: int,
        total: int,
        success: int = 0,
        failed: int = 0,
        skipped: int = 0,
        current: Optional[Dict[str, Any]] = None
    ):
        """
        Emit progress event.

        Args:
            done: Number of items processed
            total: Total items
            success: Number of successful operations
            failed: Number of failed operations
            skipped: Number of skipped items
            current: Current item being processed (optional)
        """
        percent = int((done / total * 100)) if total > 0 else 0
        self.progress = {
            "done": done,
            "total": total,
            "percent": percent,
            "success": success,
            "failed": failed,
            "skipped": skipped,
            "current": current or {},
        }
        self.logger.debug(
            f"[{self.run_name}] progress {done}/{total} ({percent}%) "
            f"success={success} failed={failed} skipped={skipped}"
        )

    async def emit_log(self, level: str, msg: str, offer_id: Optional[str] = None):
        """
        Emit log event.

        Args:
            level: Log level name (INFO, WARN, WARNING, ERROR)
            msg: Log message
            offer_id: Optional offer ID the line refers to
        """
        name = 'WARNING' if level.upper() == 'WARN' else level.upper()
        levelno = logging.getLevelName(name)
        if not isinstance(levelno, int):
            levelno = logging.INFO
        self.logger.log(levelno, msg, extra={"offer_id": offer_id})
