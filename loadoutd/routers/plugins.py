"""Plugin-centric API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException

from ..adapters import is_valid_plugin_id
from ..dependencies import ServiceContainer
from ..dependencies import get_container
from ..models import PluginRemovalResponse
from ..models import PluginUsageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/plugins", tags=["plugins"])


@router.get("/{plugin_id}/profiles", response_model=PluginUsageResponse)
async def get_plugin_profiles(
    plugin_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> PluginUsageResponse:
    """List the profiles that reference a plugin.

    Args:
        plugin_id: Plugin id
        container: Service container

    Returns:
        Referencing profile ids and whether the plugin is installed
    """
    return PluginUsageResponse(
        plugin_id=plugin_id,
        installed=container.plugin_library.is_installed(plugin_id),
        profile_ids=container.associations.get_profiles_using_plugin(plugin_id),
    )


@router.delete("/{plugin_id}", response_model=PluginRemovalResponse)
async def remove_plugin(
    plugin_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> PluginRemovalResponse:
    """Uninstall a plugin and drop it from every profile.

    Raises:
        HTTPException: 400 if the id is not a plain plugin name
    """
    if not is_valid_plugin_id(plugin_id):
        raise HTTPException(status_code=400, detail=f"Invalid plugin id: {plugin_id}")
    uninstalled = container.plugin_library.uninstall_plugin(plugin_id)
    removed_from = container.coordinator.uninstall_plugin_everywhere(plugin_id)
    logger.info(f"Removed plugin {plugin_id}: {removed_from} reference(s), uninstalled={uninstalled}")
    return PluginRemovalResponse(plugin_id=plugin_id, removed_from=removed_from, uninstalled=uninstalled)
