"""
Process-wide wiring, built once at startup and torn down at shutdown.

Backends are picked here from configuration (Redis or memory stores, direct
or queued delivery, Supabase or local backup only) and injected into the
conversation engine; nothing probes for them at call time.
"""

import logging
from dataclasses import dataclass

from redis.asyncio import Redis
from supabase import Client

from app.core.config import Settings
from app.services.conversation.engine import ConversationEngine
from app.services.integrations.supabase_client import (
    SupabaseLeadRepository,
    SupabaseSupplierDirectory,
    create_supabase,
)
from app.services.leads.persistence import LeadPersistenceGateway
from app.services.leads.routing import SupplierRouter
from app.services.messaging.delivery import DirectDelivery, QueuedDelivery, build_delivery
from app.services.messaging.whatsapp import WhatsAppClient
from app.services.stores import build_stores
from app.services.stores.cooldown_store import CooldownStore
from app.services.stores.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    sessions: SessionStore
    cooldowns: CooldownStore
    redis: Redis | None
    supabase: Client | None
    whatsapp: WhatsAppClient
    delivery: DirectDelivery | QueuedDelivery
    engine: ConversationEngine

    async def start(self) -> None:
        await self.delivery.start()

    async def close(self) -> None:
        await self.delivery.stop()
        await self.whatsapp.aclose()
        await self.sessions.close()
        await self.cooldowns.close()

    async def ping_redis(self) -> bool | None:
        """True/False for a configured Redis, None when running on memory stores."""
        if self.redis is None:
            return None
        return bool(await self.redis.ping())


def build_runtime(settings: Settings) -> Runtime:
    sessions, cooldowns, redis = build_stores(settings)
    supabase = create_supabase(settings)

    whatsapp = WhatsAppClient(settings)
    delivery = build_delivery(settings, whatsapp)

    repository = SupabaseLeadRepository(supabase, settings.supabase_leads_table) if supabase else None
    directory = (
        SupabaseSupplierDirectory(supabase, settings.supabase_suppliers_table, settings.supabase_links_table)
        if supabase
        else None
    )
    persistence = LeadPersistenceGateway(
        repository,
        delivery,
        backup_path=settings.lead_backup_path,
        admin_phone=settings.admin_phone,
    )
    router = SupplierRouter(directory, delivery)

    engine = ConversationEngine(
        sessions=sessions,
        cooldowns=cooldowns,
        gateway=delivery,
        persistence=persistence,
        router=router,
        directory=directory,
        settings=settings,
    )
    logger.info(
        f"Runtime built: stores={'redis' if redis else 'memory'}, "
        f"delivery={type(delivery).__name__}, supabase={'on' if supabase else 'off'}"
    )
    return Runtime(
        settings=settings,
        sessions=sessions,
        cooldowns=cooldowns,
        redis=redis,
        supabase=supabase,
        whatsapp=whatsapp,
        delivery=delivery,
        engine=engine,
    )
