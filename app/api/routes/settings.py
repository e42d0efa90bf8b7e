"""
Settings Routes
Company, payroll and attendance configuration
"""
from fastapi import APIRouter, Body, Depends
from typing import Any, Dict

from app.api.deps import get_settings_service, ok
from app.services.settings import PAYROLL_COMPONENTS, SettingsService

router = APIRouter()


@router.get("/")
async def get_settings(service: SettingsService = Depends(get_settings_service)):
    """Current settings; defaults are created on first access"""
    return ok(await service.get())


@router.put("/")
async def update_settings(
    changes: Dict[str, Any] = Body(...),
    service: SettingsService = Depends(get_settings_service),
):
    """Merge the given sections into the stored settings"""
    return ok(await service.update(changes), message="Settings updated successfully")


@router.get("/payroll-components")
async def payroll_components():
    return ok(PAYROLL_COMPONENTS)
