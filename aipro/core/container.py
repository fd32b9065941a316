"""
Explicitly constructed service graph.

One RecordStore is opened per process (or per test) and injected into every
component; nothing reaches for a module-level store.
"""

from dataclasses import dataclass
from typing import Optional

from aipro.core.clock import Clock, SystemClock
from aipro.core.config import Settings, settings as default_settings
from aipro.core.store import RecordStore
from aipro.features.ai.service import AIClient
from aipro.features.authorization.service import AuthorizationCore
from aipro.features.chat.service import ChatService
from aipro.features.dashboard.service import DashboardService
from aipro.features.payments.service import PaymentProcessor
from aipro.features.plans.service import PlanCatalog
from aipro.features.site.service import SiteSettingsService
from aipro.features.subscriptions.service import SubscriptionLedger
from aipro.features.usage.service import QuotaTracker
from aipro.features.users.service import UserDirectory


@dataclass
class Services:
    settings: Settings
    store: RecordStore
    clock: Clock
    catalog: PlanCatalog
    tracker: QuotaTracker
    ledger: SubscriptionLedger
    payments: PaymentProcessor
    core: AuthorizationCore
    users: UserDirectory
    site: SiteSettingsService
    ai: AIClient
    chat: ChatService
    dashboard: DashboardService

    def close(self) -> None:
        self.store.close()


def build_services(
    *,
    settings_obj: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    clock: Optional[Clock] = None,
    ai: Optional[AIClient] = None,
    seed_admin: bool = True,
) -> Services:
    cfg = settings_obj or default_settings
    store = store or RecordStore.open(cfg.DATABASE_URL)
    clock = clock or SystemClock()
    ai = ai or AIClient(
        cfg.GROQ_API_KEY,
        model=cfg.AI_MODEL,
        max_tokens=cfg.AI_MAX_TOKENS,
        temperature=cfg.AI_TEMPERATURE,
    )

    catalog = PlanCatalog(store)
    tracker = QuotaTracker(store)
    ledger = SubscriptionLedger(store)
    payments = PaymentProcessor(store, catalog, ledger, clock)
    core = AuthorizationCore(store, ledger, catalog, tracker, clock)
    users = UserDirectory(store, catalog, ledger, clock)

    if seed_admin:
        users.seed_admin(cfg.ADMIN_EMAIL, cfg.ADMIN_PASSWORD, cfg.ADMIN_USERNAME)

    return Services(
        settings=cfg,
        store=store,
        clock=clock,
        catalog=catalog,
        tracker=tracker,
        ledger=ledger,
        payments=payments,
        core=core,
        users=users,
        site=SiteSettingsService(store),
        ai=ai,
        chat=ChatService(core, ai),
        dashboard=DashboardService(ledger, catalog, tracker, payments, users, clock),
    )
