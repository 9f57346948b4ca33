import logging
from typing import Optional
from notekeeper.bridge import BridgeManager
from notekeeper.core import Settings, settings as default_settings
from .base import StorageBackend
from .local_storage import LocalStorage
from .cloud_storage import CloudStorage
from .bridge_storage import BridgeStorage

logger = logging.getLogger(__name__)

LOCAL_ONLY_NOTICE = (
    "Local mode: notes are stored on this device only. "
    "Configure NOTEKEEPER_CLOUD_URL and NOTEKEEPER_CLOUD_KEY for cloud sync and image uploads."
)


def create_storage(settings: Optional[Settings] = None) -> StorageBackend:
    """
    Choose the storage backend for this process. Called once at startup.

    Desktop host first, then cloud when both credentials are present,
    otherwise the local embedded store.
    """
    settings = settings or default_settings

    if settings.DESKTOP_MODE:
        bridge = BridgeManager(str(settings.desktop_db_path))
        bridge.start()
        logger.info("Using desktop storage: %s", settings.desktop_db_path)
        return BridgeStorage(bridge)

    if settings.CLOUD_ENABLED:
        logger.info("Using cloud storage (images in bucket %s)", settings.IMAGE_BUCKET)
        return CloudStorage(
            dsn=settings.CLOUD_DATABASE_URL,
            access_key=settings.CLOUD_ACCESS_KEY,
            bucket=settings.IMAGE_BUCKET,
            region=settings.AWS_REGION,
            image_base_url=settings.IMAGE_BASE_URL,
        )

    logger.info("Cloud credentials not configured, using local storage")
    return LocalStorage(settings.LOCAL_STORAGE_PATH)


def is_local_only(storage: StorageBackend) -> bool:
    return storage.kind == "local"


__all__ = [
    "StorageBackend", "LocalStorage", "CloudStorage", "BridgeStorage",
    "create_storage", "is_local_only", "LOCAL_ONLY_NOTICE",
]
