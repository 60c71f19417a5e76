"""
Supabase integration - durable lead table and supplier (technician) directory.

supabase-py is synchronous; calls run in a worker thread so the event loop
keeps serving webhooks. Client errors are converted to PersistenceError here
so callers only deal with the intake error taxonomy.
"""

import asyncio
import logging

from supabase import Client, create_client

from app.core.config import Settings
from app.core.errors import PersistenceError
from app.schemas.lead import Supplier

logger = logging.getLogger(__name__)

# Upper bound on directory rows considered for one lead
SUPPLIER_QUERY_LIMIT = 50


def create_supabase(settings: Settings) -> Client | None:
    """Build the Supabase client, or None when credentials are not configured."""
    if not settings.supabase_enabled:
        logger.warning("Supabase not configured - leads go to the local backup, routing is disabled")
        return None
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


class SupabaseLeadRepository:
    def __init__(self, client: Client, table: str = "leads"):
        self._client = client
        self._table = table

    async def insert(self, record: dict) -> None:
        try:
            await asyncio.to_thread(
                lambda: self._client.table(self._table).insert([record]).execute()
            )
        except Exception as e:
            raise PersistenceError(f"Insert into {self._table} failed: {e}") from e


class SupabaseSupplierDirectory:
    """
    Technicians table: id, phone, service_id, zona, active.

    Links table: lead_phone, tech_id (one row per notified supplier).
    """

    def __init__(self, client: Client, suppliers_table: str = "technicians", links_table: str = "lead_tech_links"):
        self._client = client
        self._suppliers_table = suppliers_table
        self._links_table = links_table

    async def query(self, service_id: str) -> list[Supplier]:
        """Active suppliers offering the service."""
        try:
            response = await asyncio.to_thread(
                lambda: self._client.table(self._suppliers_table)
                .select("*")
                .eq("service_id", service_id)
                .eq("active", True)
                .limit(SUPPLIER_QUERY_LIMIT)
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Supplier query for {service_id} failed: {e}") from e

        suppliers = []
        for row in response.data or []:
            try:
                suppliers.append(Supplier.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed supplier row {row.get('id')!r}: {e}")
        return suppliers

    async def link(self, lead_phone: str, supplier_id: str) -> None:
        try:
            await asyncio.to_thread(
                lambda: self._client.table(self._links_table)
                .insert([{"lead_phone": lead_phone, "tech_id": supplier_id}])
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Link {lead_phone} -> {supplier_id} failed: {e}") from e

    async def register(self, phone: str, service_id: str, zone: int) -> None:
        """Add an active technician for (service, zone)."""
        try:
            await asyncio.to_thread(
                lambda: self._client.table(self._suppliers_table)
                .insert([{"phone": phone, "service_id": service_id, "zona": zone, "active": True}])
                .execute()
            )
        except Exception as e:
            raise PersistenceError(f"Technician registration for {phone} failed: {e}") from e
