from .client import OutlineClient
from .config import ClientSettings, load_servers, load_settings
from .exceptions import OutlineLibraryException, RequestError, ResponseDecodeError
from .models import (
    AccessKey,
    AccessKeysResponse,
    MetricsResponse,
    RequestResult,
    ServerResponse,
    TransferData,
)

__all__ = [
    "OutlineClient",
    "ClientSettings",
    "load_servers",
    "load_settings",
    "OutlineLibraryException",
    "RequestError",
    "ResponseDecodeError",
    "AccessKey",
    "AccessKeysResponse",
    "MetricsResponse",
    "RequestResult",
    "ServerResponse",
    "TransferData",
]
