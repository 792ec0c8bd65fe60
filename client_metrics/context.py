"""Client and origin metadata attached to diagnostic events."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import Optional

from .config import ClientInfoConfig
from .models import ClientEvent, ClientInfo, DiagnosticOrigin

DEFAULT_LOCAL_IP = "127.0.0.1"


@dataclass(frozen=True)
class ClientContext:
    client_type: str
    sub_client_type: str
    os_name: str
    os_version: str
    client_version: str
    user_agent: str
    network_type: str = "unknown"
    using_proxy: bool = False
    media_engine_version: Optional[str] = None

    @classmethod
    def from_config(cls, config: ClientInfoConfig) -> "ClientContext":
        return cls(
            client_type=config.client_type,
            sub_client_type=config.sub_client_type,
            os_name=config.os_name or platform.system().lower() or "unknown",
            os_version=config.os_version or platform.release() or "unknown",
            client_version=config.client_version,
            user_agent=config.user_agent,
            network_type=config.network_type,
            media_engine_version=config.media_engine_version,
        )

    def origin_for(self, event: ClientEvent) -> DiagnosticOrigin:
        local_ip = event.video_local_ip or DEFAULT_LOCAL_IP
        client_info = ClientInfo(
            client_type=self.client_type,
            sub_client_type=self.sub_client_type,
            os=self.os_name,
            os_version=self.os_version,
            local_ip=local_ip,
            client_version=self.client_version,
        )
        return DiagnosticOrigin(
            user_agent=self.user_agent,
            network_type=self.network_type,
            local_ip_address=local_ip,
            using_proxy=self.using_proxy,
            media_engine_software_version=self.media_engine_version,
            client_info=client_info,
        )
