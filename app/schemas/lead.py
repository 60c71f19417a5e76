"""
Lead and supplier schemas.
"""

from pydantic import BaseModel, ConfigDict, Field


class Lead(BaseModel):
    """A completed intake. Built once at completion, never mutated."""

    model_config = ConfigDict(frozen=True)

    phone: str
    city: str  # Display name
    zone: int
    service: str  # Display label
    urgency: str  # Display label (Ahora / Luego)
    lang: str = "es"
    campaign_id: str | None = None
    lead_score: int = Field(default=0, ge=0, le=100)

    def to_record(self) -> dict:
        """Row shape used by the durable store and the local backup (column "zona" kept)."""
        return {
            "phone": self.phone,
            "city": self.city,
            "zona": self.zone,
            "service": self.service,
            "urgency": self.urgency,
            "lang": self.lang,
            "campaign_id": self.campaign_id,
            "lead_score": self.lead_score,
        }


class Supplier(BaseModel):
    """A technician eligible to be notified about matching leads (read-only here)."""

    model_config = ConfigDict(frozen=True)

    id: str
    phone: str
    service_id: str
    zone: int
    active: bool = True

    @classmethod
    def from_row(cls, row: dict) -> "Supplier":
        """Build from a directory row (columns: id, phone, service_id, zona, active)."""
        return cls(
            id=str(row["id"]),
            phone=str(row["phone"]),
            service_id=row["service_id"],
            zone=int(row.get("zona", row.get("zone", 0)) or 0),
            active=bool(row.get("active", True)),
        )
