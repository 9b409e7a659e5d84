"""Utility exports for filesystem and cancellation helpers."""

from vexhub_crawler.utils.concurrency import CancellationToken, run_cancellable
from vexhub_crawler.utils.fs import atomic_write, is_within, move_file, safe_delete

__all__ = [
    "CancellationToken",
    "atomic_write",
    "is_within",
    "move_file",
    "run_cancellable",
    "safe_delete",
]
