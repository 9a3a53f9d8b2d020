"""
Populate-once caches of the access key list and the transferred data mapping.

A cache is filled by its first read and is then used until the client is
discarded. Nothing the client does afterwards (creating or deleting keys,
changing limits) refreshes it; call ``invalidate()`` to force the next
read to fetch again.

The caches are not synchronized. Share a client between threads only
behind a lock of your own.
"""

import logging
import typing

from outline_client.models import AccessKey

logger = logging.getLogger(__name__)

T = typing.TypeVar("T")


class _PopulateOnceCache(typing.Generic[T]):
    name = "cache"

    def __init__(self, loader: typing.Callable[[], T]):
        self._loader = loader
        self._value: typing.Optional[T] = None

    @property
    def is_populated(self) -> bool:
        return self._value is not None

    def get(self) -> T:
        """Returns the cached value, fetching it first if the cache is empty"""
        if not self.is_populated:
            self._value = self._loader()
            logger.debug("Populated %s", self.name)
        return self._value

    def invalidate(self):
        self._value = None


class AccessKeyCache(_PopulateOnceCache[list[AccessKey]]):
    """
    Cached access key list. A cache holding no keys counts as empty,
    so a server without keys is asked again on every read.
    """

    name = "access key cache"

    @property
    def is_populated(self) -> bool:
        return bool(self._value)

    def find(self, key_id: str) -> typing.Optional[AccessKey]:
        for key in self.get():
            if key.key_id == key_id:
                return key
        return None


class TransferredDataCache(_PopulateOnceCache[dict[str, int]]):
    """Cached bytes transferred per access key id. An empty mapping is a populated cache."""

    name = "transferred data cache"
