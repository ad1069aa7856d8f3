"""File-operation layer driving the recovery engine.

Components:
- **FileOperation**: One file-level action with its attempt count
- **OperationPool**: Worker threads running operations, retrying per engine
- **RetryScheduler**: Timer-based re-queueing of retries
- **plan_copy**: One-way tree copy as a list of operations
"""

from wslsync.sync.operations import plan_copy
from wslsync.sync.pool import FileOperation, OperationPool, PoolState
from wslsync.sync.scheduler import RetryScheduler

__all__ = [
    "FileOperation",
    "OperationPool",
    "PoolState",
    "RetryScheduler",
    "plan_copy",
]
