"""VPNGate relay list parsing and lookup.

The backing file is the VPNGate CSV export: a ``*vpn_servers`` banner, a
header row (optionally prefixed with ``#``), one row per relay and a closing
``*`` line.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.exceptions import InvalidDataError, NotFoundError

logger = logging.getLogger(__name__)

HOST_COLUMN = "HostName"
IP_COLUMN = "IP"
CONFIG_COLUMN = "OpenVPN_ConfigData_Base64"


class ServerRecord(BaseModel):
    """One relay row from the VPNGate CSV."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    host_name: str = Field(alias="HostName")
    ip: str = Field(default="", alias="IP")
    country_long: str = Field(default="", alias="CountryLong")
    country_short: str = Field(default="", alias="CountryShort")
    score: int | None = Field(default=None, alias="Score")
    ping: int | None = Field(default=None, alias="Ping")
    speed: int | None = Field(default=None, alias="Speed")
    openvpn_config_base64: str = Field(default="", alias=CONFIG_COLUMN, repr=False)
    extra: dict[str, str] = Field(default_factory=dict, repr=False)

    @field_validator("score", "ping", "speed", mode="before")
    @classmethod
    def parse_number(cls, v: Any) -> int | None:
        """VPNGate leaves unknown metrics blank or as '-'."""
        if v is None:
            return None
        text = str(v).strip()
        if not text or text == "-":
            return None
        try:
            return int(text)
        except ValueError:
            return None

    @field_validator("host_name", "ip", "country_long", "country_short", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class ServerList(BaseModel):
    """Parsed VPNGate CSV."""

    columns: list[str]
    servers: list[ServerRecord] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.servers)


class OvpnConfig(BaseModel):
    """OpenVPN profile for a single relay."""

    model_config = ConfigDict(populate_by_name=True)

    host: str
    ovpn_base64: str = Field(alias="ovpnBase64")


def _is_comment(line: str) -> bool:
    return line.startswith("*") or (line.startswith("#") and HOST_COLUMN not in line)


def parse_servers(csv_text: str) -> ServerList:
    """Parse VPNGate CSV text.

    Args:
        csv_text: Raw CSV contents

    Returns:
        Parsed server list

    Raises:
        InvalidDataError: If no header row is present
    """
    lines = [
        line for line in csv_text.splitlines() if line.strip() and not _is_comment(line)
    ]

    header_index = next(
        (i for i, line in enumerate(lines) if f"{HOST_COLUMN}," in line), None
    )
    if header_index is None:
        raise InvalidDataError("Invalid CSV")

    reader = csv.reader(io.StringIO("\n".join(lines[header_index:])))
    columns = [column.strip().lstrip("#") for column in next(reader)]

    servers: list[ServerRecord] = []
    for row in reader:
        if len(row) < len(columns):
            continue
        fields = dict(zip(columns, row, strict=False))
        known = {name: fields.pop(name) for name in _KNOWN_COLUMNS if name in fields}
        servers.append(ServerRecord(**known, extra=fields))

    logger.debug(f"Parsed {len(servers)} VPNGate servers")
    return ServerList(columns=columns, servers=servers)


def load_servers(path: Path | str) -> ServerList:
    """Read and parse a VPNGate CSV file.

    Raises:
        OSError: If the file cannot be read
        InvalidDataError: If no header row is present
    """
    return parse_servers(read_csv_text(path))


def read_csv_text(path: Path | str) -> str:
    """Read the CSV file as UTF-8 text, replacing undecodable bytes."""
    return Path(path).read_text(encoding="utf-8", errors="replace")


def find_config(servers: ServerList, host_or_ip: str) -> OvpnConfig:
    """Look up the OpenVPN profile for a relay.

    Host names match case-insensitively; IPs match exactly.

    Args:
        servers: Parsed server list
        host_or_ip: Relay host name or IP address

    Returns:
        OpenVPN profile

    Raises:
        ValueError: If host_or_ip is blank
        NotFoundError: If no relay matches or its profile is empty
    """
    wanted = host_or_ip.strip()
    if not wanted:
        raise ValueError("host is required")

    needle = wanted.lower()
    for record in servers.servers:
        if record.host_name.lower() == needle or record.ip == wanted:
            config = record.openvpn_config_base64.strip()
            if not config:
                raise NotFoundError("Config missing")
            return OvpnConfig(host=host_or_ip, ovpn_base64=config)

    raise NotFoundError("Not found")


def server_count(csv_text: str) -> int:
    """Count relay rows: non-blank, non-comment lines minus the header."""
    lines = [
        line for line in csv_text.split("\n") if line.strip() and not line.startswith("#")
    ]
    return max(0, len(lines) - 1)


_KNOWN_COLUMNS = tuple(
    field.alias for field in ServerRecord.model_fields.values() if field.alias
)
