"""Outbound changes waiting to be pushed to the remote store."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import Column, Integer, Text

from ..db.session import Base

SYNC_ACTIONS = ("add", "update", "delete")


class SyncItem(Base):
    __tablename__ = "sync_queue"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    action = Column(Text, nullable=False)
    entity = Column(Text, nullable=False, default="entry")
    payload_blob = Column("payload", Text, nullable=False)
    created_at = Column(Text, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)

    @property
    def payload(self) -> dict[str, Any]:
        try:
            decoded = json.loads(self.payload_blob or "{}")
        except (TypeError, json.JSONDecodeError):
            return {}
        return decoded if isinstance(decoded, dict) else {}

    @payload.setter
    def payload(self, value: dict[str, Any]) -> None:
        self.payload_blob = json.dumps(value or {}, default=str)

    def as_message(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "entity": self.entity,
            "data": self.payload,
            "queued_at": self.created_at,
        }


__all__ = ["SyncItem", "SYNC_ACTIONS"]
