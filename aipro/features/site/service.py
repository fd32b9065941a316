"""Site settings singleton (display name, currency, maintenance flag)."""

import logging

from aipro.core.store import SETTINGS, RecordStore
from aipro.models.site_settings import SiteSettings

logger = logging.getLogger(__name__)


class SiteSettingsService:
    def __init__(self, store: RecordStore):
        self.store = store

    def get_settings(self) -> SiteSettings:
        return SiteSettings.model_validate(self.store.get(SETTINGS, SiteSettings().model_dump(mode="json")))

    def save_settings(self, site_settings: SiteSettings) -> SiteSettings:
        with self.store.locked(SETTINGS):
            self.store.put(SETTINGS, site_settings.model_dump(mode="json"))
        logger.info(
            "[settings] saved",
            extra={"site_name": site_settings.site_name, "maintenance_mode": site_settings.maintenance_mode},
        )
        return site_settings

    def maintenance_mode(self) -> bool:
        return self.get_settings().maintenance_mode
