"""
Execution package: the bounded-concurrency batch engine and the per-record
processor it drives.
"""

from bulk_migrate.execution.engine import BatchEngine, OutcomeSink, RunStatistics
from bulk_migrate.execution.processor import RecordProcessor, RemoteOperation

__all__ = [
    "BatchEngine",
    "OutcomeSink",
    "RecordProcessor",
    "RemoteOperation",
    "RunStatistics",
]
