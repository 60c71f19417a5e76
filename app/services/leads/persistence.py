"""
Lead persistence gateway.

Insert into the durable lead table; if that is not configured or fails, append
the record to a local JSONL backup and alert the admin number. save() always
returns a bool and never raises - the user's flow completes either way.
"""

import asyncio
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from app.constants.event_types import (
    EVENT_LEAD_BACKUP_FAILURE,
    EVENT_LEAD_BACKUP_WRITTEN,
    EVENT_LEAD_SAVED,
)
from app.core.errors import PersistenceError
from app.schemas.lead import Lead
from app.schemas.messages import OutboundMessage
from app.services.messaging.delivery import MessageGateway
from app.services.messaging.message_composer import render_message

logger = logging.getLogger(__name__)


class LeadRepository(Protocol):
    async def insert(self, record: dict) -> None: ...


class LeadPersistenceGateway:
    def __init__(
        self,
        repository: LeadRepository | None,
        gateway: MessageGateway,
        backup_path: str | Path,
        admin_phone: str | None = None,
    ):
        self._repository = repository
        self._gateway = gateway
        self._backup_path = Path(backup_path)
        self._admin_phone = admin_phone
        self._backup_lock = asyncio.Lock()

    async def save(self, lead: Lead) -> bool:
        """
        Persist a lead.

        Returns:
            True if the durable insert succeeded, False if the lead only went
            to the local backup (or nowhere)
        """
        record = lead.to_record()
        try:
            if self._repository is None:
                raise PersistenceError("Durable lead store not configured")
            await self._repository.insert(record)
        except Exception as e:
            logger.error(f"Lead insert failed for {lead.phone} - backing up locally: {e}")
            await self._write_backup(record)
            await self._alert_admin(lead)
            return False

        logger.info(
            f"Lead saved: {lead.phone} {lead.service} zona {lead.zone} (score {lead.lead_score})",
            extra={"event_type": EVENT_LEAD_SAVED},
        )
        return True

    def _append_line(self, line: str) -> None:
        self._backup_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._backup_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    async def _write_backup(self, record: dict) -> None:
        line = json.dumps({"ts": datetime.now(UTC).isoformat(), **record}, ensure_ascii=False)
        try:
            # file I/O off the event loop; the lock keeps concurrent lines whole
            async with self._backup_lock:
                await asyncio.to_thread(self._append_line, line)
        except OSError as e:
            logger.error(
                f"Lead backup to {self._backup_path} failed: {e}",
                extra={"event_type": EVENT_LEAD_BACKUP_FAILURE},
            )
            return
        logger.info(
            f"Lead backed up to {self._backup_path}",
            extra={"event_type": EVENT_LEAD_BACKUP_WRITTEN},
        )

    async def _alert_admin(self, lead: Lead) -> None:
        if not self._admin_phone:
            return
        alert = render_message("admin_lead_save_failed", phone=lead.phone, service=lead.service, zone=lead.zone)
        try:
            await self._gateway.send(self._admin_phone, OutboundMessage.text(alert))
        except Exception as e:
            logger.error(f"Admin alert for lead {lead.phone} failed: {e}")
