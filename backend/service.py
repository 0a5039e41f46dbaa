# service.py
from __future__ import annotations
import logging
from typing import Any, Dict

from errors import BadRequest, NotFound, NotFoundError
from storage import RecordStore, new_id

LOG = logging.getLogger("cv_service")


def _missing(payload: Any) -> bool:
    """null, "", 0, NaN and false count as no data; {} and [] do not."""
    if payload is None or payload == "":
        return True
    if isinstance(payload, (int, float)):  # bool included
        return not payload or payload != payload
    return False


class DocumentService:
    """Store/retrieve boundary over a RecordStore.

    The payload is opaque here too: only presence of id and data is checked.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def store_document(self, identifier: Any, payload: Any) -> Dict[str, bool]:
        if not identifier or not isinstance(identifier, str):
            raise BadRequest("Missing id or data", details={"field": "id"})
        if _missing(payload):
            raise BadRequest("Missing id or data", details={"field": "data", "id": identifier})
        self.store.put(identifier, payload)
        LOG.info("stored cv %s", identifier)
        return {"success": True}

    def retrieve_document(self, identifier: Any) -> Any:
        if not identifier or not isinstance(identifier, str):
            raise BadRequest("Missing id")
        try:
            return self.store.get(identifier)
        except NotFoundError as e:
            LOG.debug("cv %s not found", identifier)
            raise NotFound("CV not found", details={"id": identifier}) from e

    def issue_identifier(self) -> str:
        return new_id()
