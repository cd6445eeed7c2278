"""
Credential tier resolution.

Each tool group needs a different credential. The table below is computed
once at startup from whatever credentials are present; a missing or
broken credential disables its group and is reported through logging,
never as an exception.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

from curseforge_mcp.api.cfwidget import CfWidgetClient
from curseforge_mcp.api.core import CoreApiClient
from curseforge_mcp.api.upload import UploadApiClient
from curseforge_mcp.config import Settings

logger = logging.getLogger(__name__)


class CapabilityGroup(str, Enum):
    PUBLIC = "public"
    CATALOG = "catalog"
    UPLOAD = "upload"
    WEB = "web"


@dataclass(frozen=True)
class Capability:
    group: CapabilityGroup
    enabled: bool
    client: Any = None
    reason: str = ""


ClientFactory = Callable[[Settings], Any]

DEFAULT_FACTORIES: Mapping[CapabilityGroup, ClientFactory] = MappingProxyType({
    CapabilityGroup.PUBLIC: CfWidgetClient,
    CapabilityGroup.CATALOG: CoreApiClient,
    CapabilityGroup.UPLOAD: UploadApiClient,
})


class CapabilityTable:
    """Read-only view of which groups are enabled and their clients."""

    def __init__(self, capabilities: Iterable[Capability]):
        self._by_group = MappingProxyType({cap.group: cap for cap in capabilities})

    def __getitem__(self, group: CapabilityGroup) -> Capability:
        return self._by_group.get(group) or Capability(group, False, reason="not resolved")

    def __iter__(self):
        return (self[group] for group in CapabilityGroup)

    def is_enabled(self, group: CapabilityGroup) -> bool:
        return self[group].enabled

    def client(self, group: CapabilityGroup) -> Any:
        return self[group].client

    def enabled_groups(self) -> list[CapabilityGroup]:
        return [group for group in CapabilityGroup if self.is_enabled(group)]

    def reasons(self) -> dict[CapabilityGroup, str]:
        return {cap.group: cap.reason for cap in self if not cap.enabled}


def _build(group: CapabilityGroup, factory: ClientFactory, settings: Settings) -> Capability:
    try:
        client = factory(settings)
    except Exception as e:
        logger.warning(f"{group.value} tools disabled: client construction failed: {e}")
        return Capability(group, False, reason=f"client construction failed: {e}")
    return Capability(group, True, client=client)


def resolve_capabilities(
    settings: Settings,
    *,
    has_session: bool,
    web_client: Any = None,
    factories: Optional[Mapping[CapabilityGroup, ClientFactory]] = None,
) -> CapabilityTable:
    """
    Decide which tool groups are available.

    Args:
        settings: Loaded settings holding the (possibly empty) secrets.
        has_session: Whether a session cookie set is currently held.
        web_client: Client for the WEB group.
        factories: Client constructors per group, defaulting to the real
                   clients. A factory that raises disables its group.

    Returns:
        An immutable CapabilityTable. Resolution never raises.
    """
    factories = {**DEFAULT_FACTORIES, **(factories or {})}
    capabilities = [_build(CapabilityGroup.PUBLIC, factories[CapabilityGroup.PUBLIC], settings)]

    if settings.curseforge_api_key.strip():
        capabilities.append(_build(CapabilityGroup.CATALOG, factories[CapabilityGroup.CATALOG], settings))
    else:
        logger.info("catalog tools disabled: CURSEFORGE_API_KEY not set")
        capabilities.append(Capability(CapabilityGroup.CATALOG, False, reason="CURSEFORGE_API_KEY not set"))

    if settings.curseforge_author_token.strip():
        capabilities.append(_build(CapabilityGroup.UPLOAD, factories[CapabilityGroup.UPLOAD], settings))
    else:
        logger.info("upload tools disabled: CURSEFORGE_AUTHOR_TOKEN not set")
        capabilities.append(Capability(CapabilityGroup.UPLOAD, False, reason="CURSEFORGE_AUTHOR_TOKEN not set"))

    if has_session:
        capabilities.append(Capability(CapabilityGroup.WEB, True, client=web_client))
    else:
        logger.info("web tools disabled: no session cookies")
        capabilities.append(Capability(CapabilityGroup.WEB, False, reason="no session cookies"))

    table = CapabilityTable(capabilities)
    logger.info(f"Enabled tool groups: {', '.join(g.value for g in table.enabled_groups())}")
    return table
