# core/domain/entities/base_entity.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict

E = TypeVar("E", bound="MongoEntity")


class MongoEntity(BaseModel):
    """
    Base entity for Mongo-backed documents.

    Conventions:
    - MongoDB `_id` is mapped to `id` as a string.
    - Creation time is stored in both milliseconds and ISO-8601 (UTC).
    """

    id: Optional[str] = None  # maps _id

    created_at: Optional[int] = None
    created_at_iso: Optional[str] = None

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="allow",
        use_enum_values=True,
    )

    @staticmethod
    def now_ms() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def now_iso() -> str:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    @classmethod
    def from_mongo(cls: Type[E], doc: Optional[dict[str, Any]]) -> Optional[E]:
        if not doc:
            return None

        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)

    def to_mongo(self) -> dict[str, Any]:
        """
        Serialize into a MongoDB-ready dictionary (no `_id` unless `id` is set, no None fields).
        """
        data = self.model_dump(mode="python", exclude_none=True)

        if "id" in data:
            data["_id"] = data.pop("id")

        return data

    def touch_for_insert(self: E) -> E:
        if self.created_at is None:
            self.created_at = self.now_ms()
        if self.created_at_iso is None:
            self.created_at_iso = self.now_iso()
        return self
