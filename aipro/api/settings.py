from fastapi import APIRouter, Depends

from aipro.core.auth import get_services
from aipro.core.container import Services
from aipro.models.site_settings import SiteSettings

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=SiteSettings)
def get_site_settings(services: Services = Depends(get_services)):
    """Public site settings (name, currency, maintenance flag)."""
    return services.site.get_settings()
