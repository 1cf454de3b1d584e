from __future__ import annotations

from typing import Optional, Sequence

from pymongo.collection import Collection
from pymongo.database import Database

from adapters.external.database.mongo_client import get_mongo_db  # type: ignore

from core.domain.entities.definition_snapshot_entity import StrategyDefinitionDocument
from core.domain.entities.position_entity import StrategyDefinition
from core.domain.repositories.strategy_definition_repository_interface import StrategyDefinitionRepository

from core.services.normalize import _norm_lower


class StrategyDefinitionRepositoryMongoDB(StrategyDefinitionRepository):
    """
    Stores the definition set of the latest discovery cycle.

    Every cycle is written under a new `cycle_id`. Only after all of its
    documents are inserted is the cycle recorded as the current one in
    `carbon_strategy_definition_cycles`; readers follow that marker, so a
    cycle that failed halfway is never read. Older cycles are removed last.
    """

    COLLECTION_NAME = "carbon_strategy_definitions"
    CYCLES_COLLECTION_NAME = "carbon_strategy_definition_cycles"

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db: Database = db if db is not None else get_mongo_db()
        self._collection: Collection = self._db[self.COLLECTION_NAME]
        self._cycles: Collection = self._db[self.CYCLES_COLLECTION_NAME]
        self.ensure_indexes()

    @property
    def collection(self) -> Collection:
        return self._collection

    def ensure_indexes(self) -> None:
        self._collection.create_index([("network", 1), ("contract", 1), ("cycle_id", -1)], name="ix_defs_cycle")
        self._collection.create_index([("owner", 1)], name="ix_defs_owner")
        self._collection.create_index(
            [("network", 1), ("contract", 1), ("cycle_id", 1), ("strategy_id", 1)],
            unique=True,
            name="ux_defs_cycle_strategy",
        )
        self._cycles.create_index([("network", 1), ("contract", 1)], unique=True, name="ux_cycles_network_contract")

    def replace_all(self, *, network: str, contract: str, definitions: Sequence[StrategyDefinition]) -> int:
        network = _norm_lower(network)
        contract = _norm_lower(contract)
        cycle_id = StrategyDefinitionDocument.now_ms()
        scope = {"network": network, "contract": contract}

        docs = []
        for d in definitions:
            doc = StrategyDefinitionDocument.from_definition(d).touch_for_insert().to_mongo()
            doc["cycle_id"] = cycle_id
            docs.append(doc)

        if docs:
            try:
                self._collection.insert_many(docs, ordered=True)
            except Exception:
                self._collection.delete_many({**scope, "cycle_id": cycle_id})
                raise

        self._cycles.update_one(
            scope,
            {
                "$set": {
                    "cycle_id": cycle_id,
                    "count": len(docs),
                    "completed_at": StrategyDefinitionDocument.now_iso(),
                }
            },
            upsert=True,
        )
        self._collection.delete_many({**scope, "cycle_id": {"$ne": cycle_id}})
        return len(docs)

    def list_latest(self, *, network: str, contract: str) -> Sequence[StrategyDefinition]:
        network = _norm_lower(network)
        contract = _norm_lower(contract)

        head = self._cycles.find_one({"network": network, "contract": contract}, projection={"cycle_id": 1})
        if not head:
            return []

        cursor = self._collection.find(
            {"network": network, "contract": contract, "cycle_id": head["cycle_id"]},
            projection={"cycle_id": 0},
        )
        return [StrategyDefinitionDocument.from_mongo(d).to_definition() for d in cursor if d]
