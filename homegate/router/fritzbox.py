"""Fritz!Box router client.

Implements the session login (challenge-response on /login_sid.lua) and the
REST endpoints of the online monitor. Device blocking goes through the legacy
/data.lua form handler, which has no REST equivalent.
"""

import hashlib
import logging
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests

from homegate.errors import RouterError
from homegate.router.models import Dataset, Landevice, MonitorConfig, SubsetData

logger = logging.getLogger(__name__)

INVALID_SID = "0000000000000000"
LOGIN_PATH = "/login_sid.lua?version=2"


class RouterClient(Protocol):
    """Capabilities the monitor needs from a router."""

    def connect(self) -> None: ...

    def get_landevices(self) -> list[Landevice]: ...

    def get_monitor_config(self) -> MonitorConfig: ...

    def get_monitor_datasets(self) -> list[Dataset]: ...

    def get_monitor_data(self, dataset: str, subset: str) -> list[SubsetData]: ...

    def block_device(self, user_uid: str, block: bool) -> None: ...


@dataclass
class FritzboxConfig:
    """Configuration for the Fritz!Box client."""

    username: str
    password: str
    base_url: str = "http://192.168.2.1"
    timeout: float = 10.0
    # Fritz!Box HTTPS uses a self-signed certificate by default
    verify_tls: bool = True


def pbkdf2_response(challenge: str, password: str) -> str:
    """Answer a version 2 challenge ("2$<iter1>$<salt1>$<iter2>$<salt2>")."""
    _, iter1, salt1, iter2, salt2 = challenge.split("$")
    hash1 = hashlib.pbkdf2_hmac("sha256", password.encode(), bytes.fromhex(salt1), int(iter1))
    hash2 = hashlib.pbkdf2_hmac("sha256", hash1, bytes.fromhex(salt2), int(iter2))
    return f"{salt2}${hash2.hex()}"


def md5_response(challenge: str, password: str) -> str:
    """Answer a legacy challenge (firmware before 7.24)."""
    digest = hashlib.md5(f"{challenge}-{password}".encode("utf-16le")).hexdigest()
    return f"{challenge}-{digest}"


def challenge_response(challenge: str, password: str) -> str:
    if challenge.startswith("2$"):
        return pbkdf2_response(challenge, password)
    return md5_response(challenge, password)


def parse_session_info(xml_text: str) -> dict[str, str]:
    """Extract SID, Challenge and BlockTime from a SessionInfo document."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise RouterError(f"invalid login response: {e}") from e

    return {
        "sid": root.findtext("SID", default=""),
        "challenge": root.findtext("Challenge", default=""),
        "block_time": root.findtext("BlockTime", default="0"),
    }


class FritzboxClient:
    """Synchronous Fritz!Box client backed by a requests session."""

    def __init__(self, config: FritzboxConfig) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._session = requests.Session()
        self._session.verify = config.verify_tls
        self._sid: Optional[str] = None

    @property
    def sid(self) -> str:
        if self._sid is None:
            raise RouterError("not connected, call connect() first")
        return self._sid

    def connect(self) -> None:
        """Log in and store the session id."""
        resp = self._session.get(self.base_url + LOGIN_PATH, timeout=self.config.timeout)
        self._check_status(resp, "login challenge")
        info = parse_session_info(resp.text)

        block_time = int(info["block_time"] or 0)
        if block_time > 0:
            # The router rejects logins until the block time has passed
            logger.info(f"Router requests {block_time}s delay before login")
            time.sleep(block_time)

        resp = self._session.post(
            self.base_url + LOGIN_PATH,
            data={
                "username": self.config.username,
                "response": challenge_response(info["challenge"], self.config.password),
            },
            timeout=self.config.timeout,
        )
        self._check_status(resp, "login")
        sid = parse_session_info(resp.text)["sid"]
        if not sid or sid == INVALID_SID:
            raise RouterError("login rejected, check username and password")

        self._sid = sid
        logger.debug(f"Logged in to {self.base_url}")

    def close(self) -> None:
        self._session.close()

    def _rest_get(self, path: str) -> Any:
        resp = self._session.get(
            self.base_url + path,
            headers={"Authorization": f"AVM-SID {self.sid}"},
            timeout=self.config.timeout,
        )
        self._check_status(resp, path)
        try:
            return resp.json()
        except ValueError as e:
            raise RouterError(f"invalid JSON from {path}: {e}") from e

    @staticmethod
    def _check_status(resp: requests.Response, what: str) -> None:
        if resp.status_code != 200:
            raise RouterError(f"{what}: HTTP {resp.status_code}")

    def get_landevices(self) -> list[Landevice]:
        data = self._rest_get("/api/v0/landevice")
        return [Landevice.from_dict(d) for d in data.get("landevice") or []]

    def get_monitor_config(self) -> MonitorConfig:
        return MonitorConfig.from_dict(self._rest_get("/api/v0/monitor/configuration"))

    def get_monitor_datasets(self) -> list[Dataset]:
        return [Dataset.from_dict(d) for d in self._rest_get("/api/v0/monitor/datasets")]

    def get_monitor_data(self, dataset: str, subset: str) -> list[SubsetData]:
        data = self._rest_get(f"/api/v0/monitor/{dataset}/{subset}")
        return [SubsetData.from_dict(d) for d in data]

    def block_device(self, user_uid: str, block: bool) -> None:
        """Block or unblock internet access for a user profile."""
        form = {
            "xhr": "1",
            "sid": self.sid,
            "edit-profiles": "",
            "blocked": "true" if block else "false",
            "toBeBlocked": user_uid,
            "lang": "en",
            "page": "kidLis",
        }
        resp = self._session.post(
            self.base_url + "/data.lua",
            data=form,
            headers={
                "Accept": "*/*",
                "Origin": self.base_url,
                "Referer": self.base_url + "/",
            },
            timeout=self.config.timeout,
        )
        self._check_status(resp, "block device" if block else "unblock device")
        logger.debug(f"{'Blocked' if block else 'Unblocked'} {user_uid}")
