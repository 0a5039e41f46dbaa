# client.py
from __future__ import annotations
import logging
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

from document import CVDocument
from errors import NotFound, StorageError
from storage import new_id

LOG = logging.getLogger("cv_client")
TIMEOUT = 20


def _json_body(r, cv_id: Optional[str]):
    try:
        return r.json()
    except ValueError as e:  # requests.JSONDecodeError is a ValueError
        raise StorageError("CV service sent a non-JSON reply", details={"id": cv_id, "cause": str(e)}) from e


class CVClient:
    """Talks to the CV API the way the builder page does.

    open() loads a document by id or starts a new one; save() sends the
    whole document back. A failed save keeps local edits intact.
    """

    def __init__(self, base_url: str = "http://localhost:3000", session=None, timeout: float = TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.cv_id: Optional[str] = None
        self.document = CVDocument()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def fetch(self, cv_id: str) -> dict:
        try:
            r = self.session.get(self._url(f"/api/cvs/{cv_id}"), timeout=self.timeout)
        except requests.RequestException as e:
            raise StorageError("could not reach CV service", details={"id": cv_id, "cause": str(e)}) from e
        if r.status_code == 404:
            raise NotFound("CV not found", details={"id": cv_id})
        if r.status_code != 200:
            raise StorageError("CV service error", details={"id": cv_id, "status": r.status_code})
        return _json_body(r, cv_id)

    def open(self, cv_id: Optional[str] = None) -> CVDocument:
        if not cv_id:
            self.cv_id = new_id()
            self.document = CVDocument()
            return self.document
        # a failed fetch leaves the current id and document in place
        try:
            data = self.fetch(cv_id)
        except NotFound:
            # a shared link to something never saved opens a blank CV
            LOG.info("cv %s not saved yet, starting blank", cv_id)
            data = None
        document = CVDocument()
        if isinstance(data, dict):
            document.reset(data)
        self.cv_id, self.document = cv_id, document
        return document

    def save(self) -> dict:
        if not self.cv_id:
            raise StorageError("no CV opened")
        body = {"id": self.cv_id, "data": self.document.to_dict()}
        try:
            r = self.session.post(self._url("/api/cvs"), json=body, timeout=self.timeout)
        except requests.RequestException as e:
            LOG.error("save of %s failed: %s", self.cv_id, e)
            raise StorageError("could not reach CV service", details={"id": self.cv_id}) from e
        if r.status_code != 200:
            LOG.error("save of %s rejected with %s", self.cv_id, r.status_code)
            raise StorageError("CV service rejected save", details={"id": self.cv_id, "status": r.status_code})
        return _json_body(r, self.cv_id)

    def share_url(self, page_url: str) -> str:
        if not self.cv_id:
            raise StorageError("no CV opened")
        parts = urlsplit(page_url)
        query = [(k, v) for k, v in parse_qsl(parts.query) if k != "id"]
        query.append(("id", self.cv_id))
        return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))
