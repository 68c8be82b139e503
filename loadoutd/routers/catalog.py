"""Built-in template catalog API endpoints."""

from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends

from ..dependencies import ServiceContainer
from ..dependencies import get_container
from ..models import CatalogPluginResponse
from ..models import CatalogProfileResponse

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


@router.get("/profiles", response_model=list[CatalogProfileResponse])
async def list_profile_templates(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> list[CatalogProfileResponse]:
    """List built-in profile templates, flagging subscribed ones."""
    return [
        CatalogProfileResponse(
            **template.model_dump(),
            subscribed=container.store.is_profile_subscribed(template.id),
        )
        for template in container.profile_catalog.get_all()
    ]


@router.get("/plugins", response_model=list[CatalogPluginResponse])
async def list_plugin_templates(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> list[CatalogPluginResponse]:
    """List built-in plugin templates, flagging installed ones."""
    return [
        CatalogPluginResponse(
            **template.model_dump(),
            installed=container.plugin_library.is_installed(template.id),
        )
        for template in container.plugin_catalog.get_all()
    ]
