"""Profile management API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Response

from loadout_library.models import BatchOutcome
from loadout_library.models import PluginReference
from loadout_library.models import Profile
from loadout_library.models import ProfileExportData
from loadout_library.models import ProfileImportResult
from loadout_library.models import UnsubscribeResult

from ..dependencies import ServiceContainer
from ..dependencies import get_container
from ..models import AddPluginsRequest
from ..models import AddPluginsResponse
from ..models import CreateProfileRequest
from ..models import ImportProfileRequest
from ..models import PluginEnabledResponse
from ..models import ProfileResponse
from ..models import SetPluginEnabledRequest
from ..models import UpdateProfileRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


def _to_response(container: ServiceContainer, profile: Profile) -> ProfileResponse:
    current = container.coordinator.current_profile
    return ProfileResponse(
        profile=profile,
        is_current=profile.id == current.id,
        plugin_count=len(container.associations.get_plugins_in_profile(profile.id)),
    )


def _require_profile(container: ServiceContainer, profile_id: str) -> Profile:
    profile = container.coordinator.get_profile(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Profile not found: {profile_id}")
    return profile


@router.get("/", response_model=list[ProfileResponse])
async def list_profiles(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> list[ProfileResponse]:
    """List all subscribed profiles.

    Args:
        container: Service container

    Returns:
        Subscribed profiles, the current one flagged
    """
    return [_to_response(container, p) for p in container.coordinator.profiles]


@router.post("/", response_model=ProfileResponse, status_code=201)
async def create_profile(
    request: CreateProfileRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileResponse:
    """Create a profile that has no built-in template.

    Raises:
        HTTPException: 409 if a profile with this id already exists
    """
    if container.coordinator.get_profile(request.id) is not None:
        raise HTTPException(status_code=409, detail=f"Profile already exists: {request.id}")

    profile = container.coordinator.create_profile(
        request.id, request.name, icon=request.icon, plugin_ids=request.plugin_ids
    )
    if profile is None:
        raise HTTPException(status_code=400, detail=f"Could not create profile: {request.id}")
    return _to_response(container, profile)


@router.get("/current", response_model=ProfileResponse)
async def get_current_profile(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileResponse:
    """Get the active profile."""
    return _to_response(container, container.coordinator.current_profile)


@router.post("/import", response_model=ProfileImportResult)
async def import_profile(
    request: ImportProfileRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileImportResult:
    """Import an exported profile.

    Raises:
        HTTPException:
            - 409 if the profile exists and overwrite is not set
            - 400 if the import failed
    """
    result = container.coordinator.import_profile(request.data, overwrite=request.overwrite)
    if result.profile_exists:
        raise HTTPException(status_code=409, detail=result.error_message)
    if not result.is_success:
        raise HTTPException(status_code=400, detail=result.error_message)
    return result


@router.post("/import/preview", response_model=ProfileImportResult)
async def preview_import(
    data: ProfileExportData,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileImportResult:
    """Report missing plugins and id conflicts without importing."""
    return container.coordinator.preview_import(data)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileResponse:
    return _to_response(container, _require_profile(container, profile_id))


@router.patch("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str,
    request: UpdateProfileRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileResponse:
    """Rename a profile or change its icon.

    Raises:
        HTTPException: 404 if profile not found, 500 if it could not be saved
    """
    _require_profile(container, profile_id)
    profile = container.coordinator.update_profile(profile_id, name=request.name, icon=request.icon)
    if profile is None:
        raise HTTPException(status_code=500, detail=f"Failed to save profile: {profile_id}")
    return _to_response(container, profile)


@router.post("/{profile_id}/subscribe", response_model=ProfileResponse, status_code=201)
async def subscribe_profile(
    profile_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileResponse:
    """Subscribe a built-in profile template.

    Raises:
        HTTPException:
            - 404 if no built-in template exists
            - 409 if already subscribed
            - 500 if provisioning failed
    """
    if not container.profile_catalog.exists(profile_id):
        raise HTTPException(status_code=404, detail=f"Profile template not found: {profile_id}")
    if container.coordinator.get_profile(profile_id) is not None:
        raise HTTPException(status_code=409, detail=f"Profile already subscribed: {profile_id}")

    if not container.coordinator.subscribe_profile(profile_id):
        raise HTTPException(status_code=500, detail=f"Failed to subscribe profile: {profile_id}")
    return _to_response(container, _require_profile(container, profile_id))


@router.delete("/{profile_id}", response_model=UnsubscribeResult)
async def unsubscribe_profile(
    profile_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> UnsubscribeResult:
    """Unsubscribe a profile and delete its data.

    Raises:
        HTTPException: 404 if profile not found, 400 if the removal was rejected
    """
    _require_profile(container, profile_id)
    result = container.coordinator.unsubscribe_profile(profile_id)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error_message)
    return result


@router.post("/{profile_id}/activate", response_model=ProfileResponse)
async def activate_profile(
    profile_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileResponse:
    """Switch the active profile."""
    profile = _require_profile(container, profile_id)
    if not container.coordinator.switch_profile(profile.id):
        raise HTTPException(status_code=500, detail=f"Failed to switch to profile: {profile_id}")
    return _to_response(container, container.coordinator.current_profile)


@router.get("/{profile_id}/plugins", response_model=list[PluginReference])
async def list_profile_plugins(
    profile_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> list[PluginReference]:
    """List a profile's plugin references with their resolved status."""
    profile = _require_profile(container, profile_id)
    return container.associations.get_plugins_in_profile(profile.id)


@router.post("/{profile_id}/plugins", response_model=AddPluginsResponse, status_code=201)
async def add_profile_plugins(
    profile_id: str,
    request: AddPluginsRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> AddPluginsResponse:
    """Reference plugins from a profile; existing references are skipped."""
    profile = _require_profile(container, profile_id)
    added = container.associations.add_plugins_to_profile(request.plugin_ids, profile.id)
    return AddPluginsResponse(profile_id=profile.id, added=added)


@router.delete("/{profile_id}/plugins/{plugin_id}", status_code=204)
async def remove_profile_plugin(
    profile_id: str,
    plugin_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> Response:
    """Drop one plugin reference from a profile.

    Raises:
        HTTPException: 404 if the profile or the reference does not exist
    """
    profile = _require_profile(container, profile_id)
    if not container.associations.remove_plugin_from_profile(plugin_id, profile.id):
        raise HTTPException(status_code=404, detail=f"Plugin {plugin_id} is not referenced by {profile.id}")
    return Response(status_code=204)


@router.put("/{profile_id}/plugins/{plugin_id}/enabled", response_model=PluginEnabledResponse)
async def set_plugin_enabled(
    profile_id: str,
    plugin_id: str,
    request: SetPluginEnabledRequest,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> PluginEnabledResponse:
    profile = _require_profile(container, profile_id)
    if not container.associations.set_plugin_enabled(profile.id, plugin_id, request.enabled):
        raise HTTPException(status_code=404, detail=f"Plugin {plugin_id} is not referenced by {profile.id}")
    return PluginEnabledResponse(profile_id=profile.id, plugin_id=plugin_id, enabled=request.enabled)


@router.post("/{profile_id}/plugins/install-missing", response_model=BatchOutcome)
async def install_missing_plugins(
    profile_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> BatchOutcome:
    """Install absent plugins and restore removed original plugins."""
    profile = _require_profile(container, profile_id)
    return container.coordinator.install_missing_plugins(profile.id)


@router.get("/{profile_id}/export", response_model=ProfileExportData)
async def export_profile(
    profile_id: str,
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> ProfileExportData:
    """Export a profile with its references and plugin configs."""
    _require_profile(container, profile_id)
    data = container.coordinator.export_profile(profile_id)
    if data is None:
        raise HTTPException(status_code=404, detail=f"Profile not found: {profile_id}")
    return data
