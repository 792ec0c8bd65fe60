"""Data models shared by the buffer, engine and transport."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class MetricKind(Enum):
    OPERATIONAL = "operational"
    DIAGNOSTIC = "diagnostic"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class MetricRecord:
    """A named operational metric with string tags.

    Validity is decided once, at construction; the engine refuses invalid
    records before they reach the buffer.
    """

    name: str
    fields: Mapping[str, str]
    timestamp: datetime = field(default_factory=utc_now)
    is_valid: bool = field(init=False)

    def __post_init__(self) -> None:
        tags = {str(key): str(value) for key, value in dict(self.fields or {}).items()}
        object.__setattr__(self, "fields", tags)
        valid = bool(isinstance(self.name, str) and self.name.strip() and self.fields)
        object.__setattr__(self, "is_valid", valid)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "metricName": self.name,
            "tags": dict(self.fields),
            "timestamp": int(self.timestamp.timestamp() * 1000),
            "type": MetricKind.OPERATIONAL.value,
        }


@dataclass(frozen=True)
class SessionIdentifiers:
    correlation_id: str
    device_id: Optional[str] = None
    user_id: Optional[str] = None
    org_id: Optional[str] = None
    locus_id: Optional[str] = None
    locus_url: Optional[str] = None
    locus_start_time: Optional[datetime] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"correlationId": self.correlation_id}
        optional = {
            "deviceId": self.device_id,
            "userId": self.user_id,
            "orgId": self.org_id,
            "locusId": self.locus_id,
            "locusUrl": self.locus_url,
            "locusStartTime": _iso(self.locus_start_time) if self.locus_start_time else None,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass(frozen=True)
class MediaLine:
    media_type: str
    direction: str = "sendrecv"
    local_ip: Optional[str] = None
    local_port: Optional[int] = None
    remote_ip: Optional[str] = None
    remote_port: Optional[int] = None
    protocol: str = "udp"
    status: str = "succeeded"

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "mediaType": self.media_type,
            "direction": self.direction,
            "protocol": self.protocol,
            "status": self.status,
        }
        for key, value in (
            ("localIP", self.local_ip),
            ("localPort", self.local_port),
            ("remoteIP", self.remote_ip),
            ("remotePort", self.remote_port),
        ):
            if value is not None:
                payload[key] = value
        return payload


@dataclass(frozen=True)
class ClientEvent:
    name: str
    identifiers: SessionIdentifiers
    can_proceed: bool = True
    media_lines: Optional[List[MediaLine]] = None
    intervals: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def video_local_ip(self) -> Optional[str]:
        for line in self.media_lines or []:
            if line.media_type == "video" and line.local_ip:
                return line.local_ip
        return None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "canProceed": self.can_proceed,
            "identifiers": self.identifiers.to_payload(),
            "intervals": [dict(interval) for interval in self.intervals],
        }
        if self.media_lines:
            payload["mediaLines"] = [line.to_payload() for line in self.media_lines]
        return payload


@dataclass(frozen=True)
class ClientInfo:
    client_type: str
    sub_client_type: str
    os: str
    os_version: str
    local_ip: str
    client_version: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "clientType": self.client_type,
            "subClientType": self.sub_client_type,
            "os": self.os,
            "osVersion": self.os_version,
            "localIP": self.local_ip,
            "clientVersion": self.client_version,
        }


@dataclass(frozen=True)
class DiagnosticOrigin:
    user_agent: str
    network_type: str
    local_ip_address: str
    using_proxy: bool
    media_engine_software_version: Optional[str]
    client_info: ClientInfo

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "userAgent": self.user_agent,
            "networkType": self.network_type,
            "localIpAddress": self.local_ip_address,
            "usingProxy": self.using_proxy,
            "clientInfo": self.client_info.to_payload(),
        }
        if self.media_engine_software_version:
            payload["mediaEngineSoftwareVersion"] = self.media_engine_software_version
        return payload


@dataclass(frozen=True)
class DiagnosticOriginTime:
    triggered: datetime
    sent: datetime

    def to_payload(self) -> Dict[str, str]:
        return {"triggered": _iso(self.triggered), "sent": _iso(self.sent)}


@dataclass(frozen=True)
class DiagnosticEvent:
    origin: DiagnosticOrigin
    origin_time: DiagnosticOriginTime
    event: ClientEvent
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    version: int = 1

    def to_payload(self) -> Dict[str, Any]:
        return {
            "eventId": str(self.event_id),
            "version": self.version,
            "origin": self.origin.to_payload(),
            "originTime": self.origin_time.to_payload(),
            "event": self.event.to_payload(),
        }


@dataclass(frozen=True)
class ClientMetric:
    """Diagnostic queue item; opaque to the buffer."""

    event: DiagnosticEvent
    type: str = "diagnostic-event"

    def to_payload(self) -> Dict[str, Any]:
        return {"eventPayload": self.event.to_payload(), "type": self.type}


@dataclass(frozen=True)
class SendResult:
    kind: MetricKind
    count: int
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
