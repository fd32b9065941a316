from typing import List

from fastapi import APIRouter, Depends

from aipro.core.auth import get_services
from aipro.core.container import Services
from aipro.models.plan import Plan

router = APIRouter(prefix="/api/plans", tags=["plans"])


@router.get("", response_model=List[Plan])
def list_plans(services: Services = Depends(get_services)):
    """Public pricing catalog."""
    return services.catalog.list_plans()
