"""
Supplier routing - pick up to three technicians for a lead and notify them.

Ranking: exact zone, then neighbouring zones (|dz| = 1), then everyone else
offering the service. Each notification is independent; one failing never
stops the others, and route() itself never raises.
"""

import logging
from typing import Protocol

from app.constants.event_types import EVENT_LEAD_ROUTED, EVENT_SUPPLIER_NOTIFY_FAILURE
from app.schemas.lead import Lead, Supplier
from app.schemas.messages import OutboundMessage
from app.services.messaging.delivery import MessageGateway
from app.services.messaging.message_composer import render_message

logger = logging.getLogger(__name__)

MAX_SUPPLIERS_PER_LEAD = 3


class SupplierDirectory(Protocol):
    async def query(self, service_id: str) -> list[Supplier]: ...

    async def link(self, lead_phone: str, supplier_id: str) -> None: ...

    async def register(self, phone: str, service_id: str, zone: int) -> None: ...


def rank_suppliers(suppliers: list[Supplier], zone: int, limit: int = MAX_SUPPLIERS_PER_LEAD) -> list[Supplier]:
    """Active suppliers only: exact zone first, then adjacent zones, then the rest; deduplicated by id, first `limit` kept."""
    suppliers = [s for s in suppliers if s.active]
    exact = [s for s in suppliers if s.zone == zone]
    adjacent = [s for s in suppliers if abs(s.zone - zone) == 1]

    seen: set[str] = set()
    ranked: list[Supplier] = []
    for supplier in [*exact, *adjacent, *suppliers]:
        if supplier.id in seen:
            continue
        seen.add(supplier.id)
        ranked.append(supplier)
    return ranked[:limit]


def supplier_notification(lead: Lead) -> OutboundMessage:
    return OutboundMessage.text(
        render_message(
            "supplier_new_lead",
            service=lead.service,
            zone=lead.zone,
            phone=lead.phone,
            city=lead.city,
            urgency=lead.urgency,
        )
    )


class SupplierRouter:
    def __init__(self, directory: SupplierDirectory | None, gateway: MessageGateway):
        self._directory = directory
        self._gateway = gateway

    async def route(self, lead: Lead, service_id: str) -> list[str]:
        """
        Notify the best-ranked suppliers for a lead.

        Args:
            lead: Completed lead
            service_id: Catalog id of the lead's service

        Returns:
            Ids of the suppliers that were notified (possibly empty)
        """
        if self._directory is None:
            logger.info(f"No supplier directory configured - lead {lead.phone} not routed")
            return []

        try:
            candidates = await self._directory.query(service_id)
        except Exception as e:
            logger.warning(f"Supplier query failed for {service_id}: {e}")
            return []

        selected = rank_suppliers(candidates, lead.zone)
        message = supplier_notification(lead)

        notified: list[str] = []
        for supplier in selected:
            try:
                await self._gateway.send(supplier.phone, message)
            except Exception as e:
                logger.warning(
                    f"Notifying supplier {supplier.id} about {lead.phone} failed: {e}",
                    extra={"event_type": EVENT_SUPPLIER_NOTIFY_FAILURE},
                )
                continue
            notified.append(supplier.id)
            await self._link(lead, supplier)

        logger.info(
            f"Lead {lead.phone} ({service_id}, zona {lead.zone}) routed to {notified}",
            extra={"event_type": EVENT_LEAD_ROUTED},
        )
        return notified

    async def _link(self, lead: Lead, supplier: Supplier) -> None:
        try:
            await self._directory.link(lead.phone, supplier.id)
        except Exception as e:
            logger.debug(f"Lead/supplier link {lead.phone}->{supplier.id} not recorded: {e}")
