"""
Conversation engine - runs one inbound event through the state machine.

Reads the session and cooldown marker, calls the pure transition(), then
executes the returned effects in order. Every failure is absorbed here: the
webhook has already acknowledged the event and nothing is re-raised.

There is no per-user lock. Two events for the same user processed at the
same time race on the session (last write wins).
"""

import logging

from app.constants.event_types import (
    EVENT_CONVERSATION_FAILURE,
    EVENT_SESSION_CORRUPTED,
    EVENT_SUPPLIER_REGISTERED,
    EVENT_WHATSAPP_INBOUND_RECEIVED,
    EVENT_WHATSAPP_SEND_FAILURE,
)
from app.core.config import Settings
from app.core.errors import DeliveryError, SessionCorruption
from app.schemas.inbound import InboundEvent
from app.schemas.session import Session
from app.services.conversation.state_machine import (
    ArmCooldown,
    ClearCooldown,
    Effect,
    EmitLead,
    PurgeSession,
    RegisterSupplier,
    SaveSession,
    Send,
    Transition,
    transition,
)
from app.services.leads.persistence import LeadPersistenceGateway
from app.services.leads.routing import SupplierDirectory, SupplierRouter
from app.services.messaging import prompts
from app.services.messaging.delivery import MessageGateway
from app.services.stores.cooldown_store import CooldownStore
from app.services.stores.session_store import SessionStore

logger = logging.getLogger(__name__)


class ConversationEngine:
    def __init__(
        self,
        sessions: SessionStore,
        cooldowns: CooldownStore,
        gateway: MessageGateway,
        persistence: LeadPersistenceGateway,
        router: SupplierRouter,
        directory: SupplierDirectory | None,
        settings: Settings,
    ):
        self.sessions = sessions
        self.cooldowns = cooldowns
        self.gateway = gateway
        self.persistence = persistence
        self.router = router
        self.directory = directory
        self.settings = settings

    async def handle_event(self, event: InboundEvent) -> Transition | None:
        """
        Process one inbound event end to end.

        Returns:
            The computed Transition, or None if processing failed before one was computed
        """
        logger.info(
            f"Inbound {event.type.value} from {event.user_id}",
            extra={"event_type": EVENT_WHATSAPP_INBOUND_RECEIVED},
        )
        try:
            session = await self._load_session(event.user_id)
            cooldown_active = await self.cooldowns.has(event.user_id) if session and session.is_done else False
            result = transition(session, event, cooldown_active, self.settings)
        except Exception as e:
            logger.error(
                f"Failed to compute transition for {event.user_id}: {e}",
                extra={"event_type": EVENT_CONVERSATION_FAILURE},
                exc_info=True,
            )
            return None

        for effect in result.effects:
            try:
                await self._execute(event.user_id, effect)
            except DeliveryError as e:
                logger.warning(
                    f"Reply to {event.user_id} not delivered: {e}",
                    extra={"event_type": EVENT_WHATSAPP_SEND_FAILURE},
                )
            except Exception as e:
                # later effects still run
                logger.error(
                    f"Effect {type(effect).__name__} failed for {event.user_id}: {e}",
                    extra={"event_type": EVENT_CONVERSATION_FAILURE},
                    exc_info=True,
                )
        return result

    async def _load_session(self, user_id: str) -> Session | None:
        try:
            return await self.sessions.get(user_id)
        except SessionCorruption as e:
            logger.warning(
                f"Discarding corrupt session for {user_id}: {e}",
                extra={"event_type": EVENT_SESSION_CORRUPTED},
            )
            return None

    async def _execute(self, user_id: str, effect: Effect) -> None:
        if isinstance(effect, SaveSession):
            await self.sessions.set(user_id, effect.session, self.settings.session_ttl_seconds)
        elif isinstance(effect, PurgeSession):
            await self.sessions.delete(user_id)
        elif isinstance(effect, ClearCooldown):
            await self.cooldowns.delete(user_id)
        elif isinstance(effect, ArmCooldown):
            await self.cooldowns.set(user_id, self.settings.cooldown_seconds)
        elif isinstance(effect, Send):
            await self.gateway.send(user_id, effect.message)
        elif isinstance(effect, EmitLead):
            await self._emit_lead(effect)
        elif isinstance(effect, RegisterSupplier):
            await self._register_supplier(user_id, effect)
        else:
            raise TypeError(f"Unknown effect {effect!r}")

    async def _emit_lead(self, effect: EmitLead) -> None:
        saved = await self.persistence.save(effect.lead)
        if not saved:
            logger.warning(f"Lead for {effect.lead.phone} not saved durably (backup only)")
        await self.router.route(effect.lead, effect.service_id)

    async def _register_supplier(self, user_id: str, effect: RegisterSupplier) -> None:
        registered = False
        if self.directory is None:
            logger.warning(f"Technician registration for {user_id} skipped - no supplier directory configured")
        else:
            try:
                await self.directory.register(user_id, effect.service_id, effect.zone)
                registered = True
            except Exception as e:
                logger.warning(f"Technician registration for {user_id} failed: {e}")

        if registered:
            logger.info(
                f"Technician {user_id} registered for {effect.service_id} zona {effect.zone}",
                extra={"event_type": EVENT_SUPPLIER_REGISTERED},
            )
            await self.gateway.send(user_id, prompts.text("tech_registered"))
        else:
            await self.gateway.send(user_id, prompts.text("tech_register_failed"))
