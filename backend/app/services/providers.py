"""
Provider factory.
Configures which mail transport and blob store implementations to use.
"""

from typing import Optional

from app.services.interfaces.mail_transport import MailTransport, SmtpMailTransport, ConsoleMailTransport
from app.services.interfaces.blob_store import BlobStore, LocalBlobStore
from app.core.config import settings


def build_mail_transport() -> MailTransport:
    """
    Build the configured mail transport.

    - console: log messages only (default, development)
    - smtp: deliver through SMTP_HOST
    """
    if settings.MAIL_BACKEND == 'smtp':
        return SmtpMailTransport(
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            start_tls=settings.SMTP_START_TLS,
        )
    return ConsoleMailTransport()


# Singleton instances
_blob_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
    """Get blob store singleton; also usable as a FastAPI dependency."""
    global _blob_store
    if _blob_store is None:
        _blob_store = LocalBlobStore(settings.MEDIA_ROOT, settings.MEDIA_URL)
    return _blob_store
