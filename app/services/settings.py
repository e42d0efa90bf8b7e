"""
Settings Provider
Reads and updates the singleton SystemSettings document
"""
import logging
from datetime import datetime
from typing import Any, Dict

from pydantic import ValidationError

from app.errors import ValidationFailed
from app.models.settings import SystemSettings
from app.repositories.base import SettingsRepository

logger = logging.getLogger(__name__)

PAYROLL_COMPONENTS = {
    "allowances": [
        {"name": "HRA", "description": "House Rent Allowance"},
        {"name": "DA", "description": "Dearness Allowance"},
        {"name": "TA", "description": "Transport Allowance"},
        {"name": "Medical", "description": "Medical Allowance"},
        {"name": "Other", "description": "Other Allowances"},
    ],
    "deductions": [
        {"name": "PF", "description": "Provident Fund"},
        {"name": "ESI", "description": "Employee State Insurance"},
        {"name": "Tax", "description": "Income Tax"},
        {"name": "LOP", "description": "Loss of Pay"},
        {"name": "Other", "description": "Other Deductions"},
    ],
    "bonuses": [
        {"name": "Performance", "description": "Performance Bonus"},
        {"name": "Festival", "description": "Festival Bonus"},
        {"name": "Other", "description": "Other Bonuses"},
    ],
}


def deep_merge(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SettingsService:
    """Lazily creates the defaults; never caches so edits apply on the next read"""

    def __init__(self, repository: SettingsRepository):
        self.repository = repository

    async def get(self) -> SystemSettings:
        settings = await self.repository.get()
        if settings is None:
            logger.info("No settings document found, creating defaults")
            settings = await self.repository.save(SystemSettings())
        return settings

    async def update(self, changes: Dict[str, Any]) -> SystemSettings:
        if not isinstance(changes, dict):
            raise ValidationFailed("Invalid settings format", field="settings")

        current = await self.get()
        changes = {k: v for k, v in changes.items() if k not in ("key", "updated_at")}
        merged = deep_merge(current.model_dump(), changes)
        try:
            updated = SystemSettings.model_validate(merged)
        except ValidationError as exc:
            raise ValidationFailed(f"Invalid settings: {exc.errors()[0]['msg']}", field="settings")

        updated.updated_at = datetime.utcnow()
        await self.repository.save(updated)
        logger.info("Settings updated: %s", ", ".join(sorted(changes)))
        return updated
