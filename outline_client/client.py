"""
API wrapper for the Outline VPN server management API
"""

import logging
import typing

import requests
import urllib3
from urllib3 import PoolManager
from urllib3.exceptions import InsecureRequestWarning

from outline_client.cache import AccessKeyCache, TransferredDataCache
from outline_client.config import ClientSettings
from outline_client.exceptions import RequestError
from outline_client.models import (
    DEFAULT_METHOD,
    AccessKey,
    AccessKeysResponse,
    MetricsResponse,
    RequestResult,
    ServerResponse,
    TransferData,
    decode_json,
)

log = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"
JSON_HEADER = {"Content-Type": CONTENT_TYPE_JSON}

MAX_IDLE_CONNECTIONS = 20
HANDSHAKE_TIMEOUT = 20

SERVER_INFO_TIMEOUT = 5
CREATE_KEY_TIMEOUT = 5
LIST_KEYS_TIMEOUT = 2
METRICS_STATUS_TIMEOUT = 10
TRANSFER_METRICS_TIMEOUT = 30
PUT_TIMEOUT = 10
DELETE_TIMEOUT = 10


class _FingerprintAdapter(requests.adapters.HTTPAdapter):
    """
    This adapter injected into the requests session will check that the
    fingerprint for the certificate matches for every request.
    Without a fingerprint the certificate is not checked at all.
    """

    def __init__(self, fingerprint: typing.Optional[str] = None, **kwargs):
        self.fingerprint = fingerprint
        super().__init__(**kwargs)

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        if self.fingerprint:
            pool_kwargs["assert_fingerprint"] = self.fingerprint
        self.poolmanager = PoolManager(
            num_pools=connections,
            maxsize=maxsize,
            block=block,
            **pool_kwargs,
        )


def build_session(cert_sha256: typing.Optional[str] = None) -> requests.Session:
    """
    Returns a session that reuses up to MAX_IDLE_CONNECTIONS connections and
    skips certificate chain verification. Outline servers use self-signed
    certificates, identified by their SHA256 fingerprint instead.
    """
    session = requests.Session()
    session.verify = False
    session.mount(
        "https://",
        _FingerprintAdapter(
            cert_sha256,
            pool_connections=MAX_IDLE_CONNECTIONS,
            pool_maxsize=MAX_IDLE_CONNECTIONS,
        ),
    )
    urllib3.disable_warnings(InsecureRequestWarning)
    return session


def _access_key_path(key_id: int, suffix: str = "") -> str:
    # The list endpoint returns string ids, these endpoints take integers
    if isinstance(key_id, bool) or not isinstance(key_id, int):
        raise RequestError(f"failed to create request: invalid access key id {key_id!r}")
    return f"/access-keys/{key_id:d}{suffix}"


class OutlineClient:
    """
    A connection to the management API of one Outline server.

    The access key and transferred data caches are plain attributes without
    any locking: use one client per thread, or guard it with a lock.
    """

    def __init__(
        self,
        api_url: str,
        cert_sha256: typing.Optional[str] = None,
        session: typing.Optional[requests.Session] = None,
        logger: typing.Optional[logging.Logger] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.session = session or build_session(cert_sha256)
        self.logger = logger or log
        self.access_keys_cache = AccessKeyCache(
            lambda: self.get_list_access_keys().access_keys
        )
        self.transferred_data_cache = TransferredDataCache(
            lambda: self.data_transferred_access_key().bytes_transferred_by_user_id
        )

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs) -> "OutlineClient":
        return cls(settings.api_url, cert_sha256=settings.cert_sha256, **kwargs)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        """Closes the pooled connections"""
        self.session.close()

    def make_request(
        self,
        method: str,
        endpoint: str,
        headers: typing.Optional[dict] = None,
        body: typing.Optional[dict] = None,
        timeout: float = PUT_TIMEOUT,
    ) -> requests.Response:
        """Sends one request to the server.
        Any status of 400 and above is raised as a RequestError.
        The timeout bounds the connect and each socket read, not the whole call."""
        full_url = self.api_url + endpoint
        try:
            request = requests.Request(
                method, full_url, headers=headers or {}, json=body
            )
            prepared = self.session.prepare_request(request)
        except (requests.RequestException, ValueError, TypeError) as error:
            raise RequestError(f"failed to create request: {error}") from error

        self.logger.debug("%s %s", prepared.method, full_url)
        try:
            response = self.session.send(
                prepared, timeout=(min(timeout, HANDSHAKE_TIMEOUT), timeout)
            )
        except requests.RequestException as error:
            self.logger.warning("%s %s failed: %s", prepared.method, full_url, error)
            raise RequestError(f"failed to execute request: {error}") from error

        if response.status_code >= 400:
            self.logger.warning(
                "%s %s answered %d", prepared.method, full_url, response.status_code
            )
            raise RequestError(
                f"server responded with code {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def get_server_info(self) -> ServerResponse:
        """Get information about the server"""
        response = self.make_request(
            "GET", "/server", JSON_HEADER, timeout=SERVER_INFO_TIMEOUT
        )
        return ServerResponse.from_json(decode_json(response))

    def change_hostname(self, hostname: str) -> RequestResult:
        """Changes the hostname for access keys.
        Must be a valid hostname or IP address."""
        return self._send_put_request(
            "/server/hostname-for-access-keys", {"hostname": hostname}
        )

    def rename_server(self, name: str) -> RequestResult:
        return self._send_put_request("/name", {"name": name})

    def check_metrics(self) -> MetricsResponse:
        """Returns whether metrics is being shared"""
        response = self.make_request(
            "GET", "/metrics/enabled", JSON_HEADER, timeout=METRICS_STATUS_TIMEOUT
        )
        return MetricsResponse.from_json(decode_json(response))

    def change_metrics(self, enabled: bool) -> RequestResult:
        """Enables or disables sharing of metrics"""
        return self._send_put_request("/metrics/enabled", {"metricsEnabled": enabled})

    def change_default_port(self, port: int) -> RequestResult:
        """Changes the default port for newly created access keys.
        This can be a port already used for access keys."""
        return self._send_put_request(
            "/server/port-for-new-access-keys", {"port": port}
        )

    def set_data_limit_all_keys(self, limit_bytes: int) -> RequestResult:
        """Sets a data transfer limit for all access keys."""
        return self._send_put_request(
            "/server/access-key-data-limit", {"limit": {"bytes": limit_bytes}}
        )

    def delete_all_data_limits(self) -> RequestResult:
        """Removes the access key data limit, lifting data transfer restrictions on all access keys."""
        try:
            response = self.make_request(
                "DELETE", "/server/access-key-data-limit", timeout=DELETE_TIMEOUT
            )
        except RequestError as error:
            raise RequestError(
                f"failed to delete all data limits: {error}",
                status_code=error.status_code,
            ) from error
        return RequestResult(
            success=response.status_code == 204, status=response.status_code
        )

    def create_access_key(self) -> AccessKey:
        """Create a new key"""
        response = self.make_request(
            "POST",
            "/access-keys",
            JSON_HEADER,
            body={"method": DEFAULT_METHOD},
            timeout=CREATE_KEY_TIMEOUT,
        )
        return AccessKey.from_key_json(decode_json(response))

    def get_list_access_keys(self) -> AccessKeysResponse:
        """Get all keys in the outline server"""
        response = self.make_request(
            "GET", "/access-keys", JSON_HEADER, timeout=LIST_KEYS_TIMEOUT
        )
        return AccessKeysResponse.from_json(decode_json(response))

    def delete_access_key(self, key_id: str) -> RequestResult:
        """Delete a key"""
        return self._send_delete_request(f"/access-keys/{key_id}")

    def rename_access_key(self, key_id: int, name: str) -> RequestResult:
        """Rename a key"""
        return self._send_put_request(_access_key_path(key_id, "/name"), {"name": name})

    def set_data_limit_access_key(self, key_id: int, limit_bytes: int) -> RequestResult:
        """Set data limit for a key (in bytes)"""
        return self._send_put_request(
            _access_key_path(key_id, "/data-limit"), {"limit": {"bytes": limit_bytes}}
        )

    def delete_data_limit_access_key(self, key_id: int) -> RequestResult:
        """Removes data limit for a key"""
        return self._send_delete_request(_access_key_path(key_id, "/data-limit"))

    def data_transferred_access_key(self) -> TransferData:
        """Gets how much data all keys have used"""
        response = self.make_request(
            "GET", "/metrics/transfer", JSON_HEADER, timeout=TRANSFER_METRICS_TIMEOUT
        )
        return TransferData.from_json(decode_json(response))

    def _send_put_request(self, endpoint: str, data: dict) -> RequestResult:
        try:
            response = self.make_request(
                "PUT", endpoint, JSON_HEADER, body=data, timeout=PUT_TIMEOUT
            )
        except RequestError as error:
            raise RequestError(
                f"failed to send PUT request: {error}", status_code=error.status_code
            ) from error
        return RequestResult(
            success=response.status_code == 200, status=response.status_code
        )

    def _send_delete_request(self, endpoint: str) -> RequestResult:
        try:
            response = self.make_request(
                "DELETE", endpoint, JSON_HEADER, timeout=DELETE_TIMEOUT
            )
        except RequestError as error:
            raise RequestError(
                f"failed to send DELETE request: {error}",
                status_code=error.status_code,
            ) from error
        return RequestResult(
            success=response.status_code == 204, status=response.status_code
        )

    # Cached lookups. See outline_client.cache for the staleness rules.

    def get_access_key_by_id(self, key_id: str) -> AccessKey:
        """Returns the key with this id, or an empty AccessKey() if there is none"""
        key = self.access_keys_cache.find(key_id)
        return key if key is not None else AccessKey()

    def check_access_key_by_id(self, key_id: str) -> bool:
        return self.access_keys_cache.find(key_id) is not None

    def get_number_of_users(self) -> int:
        """Number of access keys on the server"""
        return len(self.access_keys_cache.get())

    def get_number_of_active_users(self) -> int:
        """Number of access keys the server reports transferred data for"""
        return len(self.transferred_data_cache.get())

    def get_transferred_data_for_key(self, key_id: str) -> int:
        return self.transferred_data_cache.get().get(key_id, 0)

    def delete_all_keys_without_traffic(self) -> bool:
        """
        Deletes every key with no transferred data record.
        Stops at the first failed delete; keys deleted before it stay deleted.
        """
        transferred = self.transferred_data_cache.get()
        for key in self.access_keys_cache.get():
            if key.key_id in transferred:
                continue
            try:
                self.delete_access_key(key.key_id)
            except RequestError:
                self.logger.warning("Unable to delete key %s", key.key_id)
                raise
        return True

    def refresh_caches(self):
        """Drops both caches so the next cached lookup fetches again"""
        self.access_keys_cache.invalidate()
        self.transferred_data_cache.invalidate()
