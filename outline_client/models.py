from dataclasses import dataclass, field
from typing import Optional

import requests

from outline_client.exceptions import ResponseDecodeError

UNABLE_TO_DECODE_ERROR = "Unable to decode the server response"
DEFAULT_METHOD = "aes-192-gcm"


def decode_json(response: requests.Response) -> dict:
    """Returns the JSON object in a response body"""
    try:
        body = response.json()
    except ValueError as error:
        raise ResponseDecodeError(f"{UNABLE_TO_DECODE_ERROR}: {error}") from error
    if not isinstance(body, dict):
        raise ResponseDecodeError(
            f"{UNABLE_TO_DECODE_ERROR}: expected an object, got {type(body).__name__}"
        )
    return body


@dataclass
class AccessKey:
    """
    Describes a key in the Outline server.

    ``AccessKey()`` is the zero value returned by lookups that find nothing.
    """

    key_id: str = ""
    name: str = ""
    password: str = ""
    port: int = 0
    method: str = ""
    access_url: str = ""
    data_limit: Optional[int] = None

    @classmethod
    def from_key_json(cls, json_data: dict) -> "AccessKey":
        if not isinstance(json_data, dict):
            raise ResponseDecodeError(
                f"{UNABLE_TO_DECODE_ERROR}: access key is not an object"
            )
        try:
            return cls(
                key_id=str(json_data.get("id") or ""),
                name=json_data.get("name") or "",
                password=json_data.get("password") or "",
                port=int(json_data.get("port") or 0),
                method=json_data.get("method") or "",
                access_url=json_data.get("accessUrl") or "",
                data_limit=(json_data.get("dataLimit") or {}).get("bytes"),
            )
        except (AttributeError, TypeError, ValueError) as error:
            raise ResponseDecodeError(f"{UNABLE_TO_DECODE_ERROR}: {error}") from error


@dataclass
class AccessKeysResponse:
    access_keys: list[AccessKey] = field(default_factory=list)

    @classmethod
    def from_json(cls, json_data: dict) -> "AccessKeysResponse":
        """A body without accessKeys is a ResponseDecodeError, never an empty key list"""
        if "accessKeys" not in json_data:
            raise ResponseDecodeError("Unable to retrieve keys")
        keys = json_data["accessKeys"] or []
        if not isinstance(keys, list):
            raise ResponseDecodeError(
                f"{UNABLE_TO_DECODE_ERROR}: accessKeys is not a list"
            )
        return cls(access_keys=[AccessKey.from_key_json(key) for key in keys])


@dataclass
class TransferData:
    """Bytes transferred by every access key
    {
        "bytesTransferredByUserId": {
            "1":1008040941,
            "2":5958113497,
            "3":752221577
        }
    }"""

    bytes_transferred_by_user_id: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_json(cls, json_data: dict) -> "TransferData":
        """A body without bytesTransferredByUserId is a ResponseDecodeError,
        never an unset mapping that counts as zero active keys"""
        if "bytesTransferredByUserId" not in json_data:
            raise ResponseDecodeError("Unable to get metrics")
        transferred = json_data["bytesTransferredByUserId"] or {}
        try:
            if not isinstance(transferred, dict):
                raise TypeError("bytesTransferredByUserId is not an object")
            for used in transferred.values():
                if isinstance(used, bool) or not isinstance(used, int):
                    raise ValueError(f"transferred bytes {used!r} is not an integer")
        except (TypeError, ValueError) as error:
            raise ResponseDecodeError(f"{UNABLE_TO_DECODE_ERROR}: {error}") from error
        return cls(
            bytes_transferred_by_user_id={
                str(key_id): used for key_id, used in transferred.items()
            }
        )


@dataclass
class MetricsResponse:
    metrics_enabled: bool = False

    @classmethod
    def from_json(cls, json_data: dict) -> "MetricsResponse":
        return cls(metrics_enabled=bool(json_data.get("metricsEnabled", False)))


@dataclass
class ServerResponse:
    """Information about the server
    {
        "name":"My Server",
        "serverId":"7fda0079-5317-4e5a-bb41-5a431dddae21",
        "metricsEnabled":true,
        "createdTimestampMs":1536613192052,
        "version":"1.0.0",
        "accessKeyDataLimit":{"bytes":8589934592},
        "portForNewAccessKeys":1234,
        "hostnameForAccessKeys":"example.com"
    }
    """

    name: str = ""
    server_id: str = ""
    metrics_enabled: bool = False
    created_timestamp_ms: int = 0
    version: str = ""
    port_for_new_access_keys: int = 0
    hostname_for_access_keys: str = ""
    access_key_data_limit: Optional[int] = None

    @classmethod
    def from_json(cls, json_data: dict) -> "ServerResponse":
        try:
            return cls(
                name=json_data.get("name") or "",
                server_id=json_data.get("serverId") or "",
                metrics_enabled=bool(json_data.get("metricsEnabled")),
                created_timestamp_ms=int(json_data.get("createdTimestampMs") or 0),
                version=json_data.get("version") or "",
                port_for_new_access_keys=int(json_data.get("portForNewAccessKeys") or 0),
                hostname_for_access_keys=json_data.get("hostnameForAccessKeys") or "",
                access_key_data_limit=(json_data.get("accessKeyDataLimit") or {}).get(
                    "bytes"
                ),
            )
        except (AttributeError, TypeError, ValueError) as error:
            raise ResponseDecodeError(f"{UNABLE_TO_DECODE_ERROR}: {error}") from error


@dataclass
class RequestResult:
    """
    Outcome of a call that only reports a status code.
    Truthy only when the status matched the one the endpoint answers on success.
    """

    success: bool
    status: int

    def __bool__(self) -> bool:
        return self.success
