"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .task_queue import TaskQueue, InMemoryTaskQueue
from .mail_transport import MailTransport, SmtpMailTransport, ConsoleMailTransport
from .blob_store import BlobStore, LocalBlobStore

__all__ = [
    'TaskQueue', 'InMemoryTaskQueue',
    'MailTransport', 'SmtpMailTransport', 'ConsoleMailTransport',
    'BlobStore', 'LocalBlobStore',
]
