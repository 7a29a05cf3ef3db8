"""
Process Monitor Module

Brackets one variant's run with resident-memory snapshots of the harness
process. No sampling thread runs during the measured phases.
"""
import os
import time
from typing import Optional

import psutil

from wasmbench.models.process_snapshot import ProcessSnapshot
from wasmbench.util.log_config import setup_logger

logger = setup_logger(__name__)


class ProcessMonitor:
    """Memory usage of a process before and after a block of work"""

    def __init__(self, pid: Optional[int] = None):
        self.pid = pid if pid is not None else os.getpid()
        self.process: Optional[psutil.Process] = None
        self.before: Optional[ProcessSnapshot] = None
        self.after: Optional[ProcessSnapshot] = None

    def snapshot(self) -> Optional[ProcessSnapshot]:
        try:
            if self.process is None:
                self.process = psutil.Process(self.pid)
            return ProcessSnapshot(timestamp=time.time(), rss_bytes=self.process.memory_info().rss)
        except psutil.Error as e:
            logger.warning(f"Cannot read memory of process {self.pid}: {e}")
            return None

    def start(self) -> None:
        self.before = self.snapshot()

    def stop(self) -> Optional[int]:
        """
        Take the closing snapshot.

        Returns:
            RSS growth in bytes, or None if either snapshot failed
        """
        self.after = self.snapshot()
        if self.before is None or self.after is None:
            return None
        return self.after.rss_bytes - self.before.rss_bytes
