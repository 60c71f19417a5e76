"""Lead scoring, persistence and supplier routing. Re-exports for stable public API."""

from app.services.leads.persistence import LeadPersistenceGateway, LeadRepository
from app.services.leads.routing import (
    MAX_SUPPLIERS_PER_LEAD,
    SupplierDirectory,
    SupplierRouter,
    rank_suppliers,
)
from app.services.leads.scoring import score_lead

__all__ = [
    "MAX_SUPPLIERS_PER_LEAD",
    "LeadPersistenceGateway",
    "LeadRepository",
    "SupplierDirectory",
    "SupplierRouter",
    "rank_suppliers",
    "score_lead",
]
