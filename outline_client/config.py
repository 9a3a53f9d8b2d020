"""
Client settings read from the environment.

Values may also come from a ``.env`` file, loaded with python-dotenv.
A single server is described by ``OUTLINE_API_URL`` and ``OUTLINE_CERT_SHA256``.
Several servers use numbered pairs ``API_1``/``CERT_1``, ``API_2``/``CERT_2``...
"""

import os
import typing
from dataclasses import dataclass

from dotenv import load_dotenv

from outline_client.exceptions import OutlineLibraryException


@dataclass(frozen=True)
class ClientSettings:
    api_url: str
    cert_sha256: typing.Optional[str] = None


def load_settings(prefix: str = "OUTLINE_", dotenv_path: str = None) -> ClientSettings:
    load_dotenv(dotenv_path)
    api_url = os.getenv(f"{prefix}API_URL")
    if not api_url:
        raise OutlineLibraryException(f"{prefix}API_URL is not set")
    return ClientSettings(
        api_url=api_url, cert_sha256=os.getenv(f"{prefix}CERT_SHA256") or None
    )


def load_servers(dotenv_path: str = None) -> list[ClientSettings]:
    """Reads API_n/CERT_n pairs starting at 1, up to the first incomplete pair"""
    load_dotenv(dotenv_path)
    servers = []
    i = 1
    while True:
        api = os.getenv(f"API_{i}")
        cert = os.getenv(f"CERT_{i}")
        if api is None or cert is None:
            break
        servers.append(ClientSettings(api_url=api, cert_sha256=cert))
        i += 1
    return servers
