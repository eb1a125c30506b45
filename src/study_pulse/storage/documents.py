"""Per-user JSON document store (JSON + fcntl.flock + atomic write).

Layout: ``<root>/users/<uid>/<collection>.json``, each file holding one JSON
object that maps document id to document body. Collections not owned by any
user, such as the feedback inbox, live under ``<root>/shared/``.
"""

import contextlib
import fcntl
import json
import os
import re
import tempfile
import uuid
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_NAME_RE = re.compile(r"^[A-Za-z0-9_.@-]{1,128}$")


def _check_name(kind: str, value: str) -> str:
    if not _NAME_RE.match(value) or value in (".", ".."):
        raise ValueError(f"Invalid {kind}: {value!r}")
    return value


def is_valid_user_id(user_id: str) -> bool:
    return bool(_NAME_RE.match(user_id)) and user_id not in (".", "..")


class DocumentStore:
    """File-backed collections of JSON documents keyed by user.

    Args:
        root: Directory holding the ``users`` and ``shared`` trees.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.users_dir = self.root / "users"
        self.users_dir.mkdir(parents=True, exist_ok=True)
        self.shared_dir = self.root / "shared"
        self.shared_dir.mkdir(parents=True, exist_ok=True)

    def _user_dir(self, user_id: str) -> Path:
        d = self.users_dir / _check_name("user id", user_id)
        d.mkdir(parents=True, exist_ok=True)
        return d

    def _collection_path(self, user_id: str, collection: str) -> Path:
        return self._user_dir(user_id) / f"{_check_name('collection', collection)}.json"

    def _locked(self, user_id: str, exclusive: bool = True):
        return self._flock(self._user_dir(user_id) / ".lock", exclusive)

    @contextlib.contextmanager
    def _flock(self, lock_path: Path, exclusive: bool = True) -> Iterator[None]:
        with open(lock_path, "a") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self, path: Path) -> dict[str, dict[str, Any]]:
        if not path.exists():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, path: Path, data: dict[str, dict[str, Any]]) -> None:
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, indent=2, default=str)
        os.replace(tmp.name, path)

    def list_users(self) -> list[str]:
        """Ids of every user with at least one collection on disk."""
        return sorted(p.name for p in self.users_dir.iterdir() if p.is_dir())

    def list_documents(self, user_id: str, collection: str) -> list[dict[str, Any]]:
        """Read every document in a collection, each with its ``id`` filled in."""
        path = self._collection_path(user_id, collection)
        with self._locked(user_id, exclusive=False):
            data = self._read(path)
        return [{**body, "id": doc_id} for doc_id, body in data.items()]

    def get_document(self, user_id: str, collection: str, doc_id: str) -> dict[str, Any] | None:
        path = self._collection_path(user_id, collection)
        with self._locked(user_id, exclusive=False):
            body = self._read(path).get(doc_id)
        if body is None:
            return None
        return {**body, "id": doc_id}

    def set_document(
        self, user_id: str, collection: str, doc_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        """Create or overwrite a document."""
        path = self._collection_path(user_id, collection)
        stored = {k: v for k, v in body.items() if k != "id"}
        with self._locked(user_id):
            data = self._read(path)
            data[doc_id] = stored
            self._write(path, data)
        return {**stored, "id": doc_id}

    def create_document(self, user_id: str, collection: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create a document under a freshly generated id."""
        return self.set_document(user_id, collection, uuid.uuid4().hex, body)

    def create_if_absent(
        self, user_id: str, collection: str, doc_id: str, body: dict[str, Any]
    ) -> bool:
        """Write a document only if ``doc_id`` is unused.

        Returns:
            True if this call created the document.
        """
        path = self._collection_path(user_id, collection)
        with self._locked(user_id):
            data = self._read(path)
            if doc_id in data:
                return False
            data[doc_id] = {k: v for k, v in body.items() if k != "id"}
            self._write(path, data)
        return True

    def update_document(
        self, user_id: str, collection: str, doc_id: str, changes: dict[str, Any]
    ) -> dict[str, Any]:
        """Merge ``changes`` into an existing document.

        Raises:
            KeyError: If the document does not exist.
        """
        path = self._collection_path(user_id, collection)
        with self._locked(user_id):
            data = self._read(path)
            if doc_id not in data:
                raise KeyError(doc_id)
            data[doc_id].update({k: v for k, v in changes.items() if k != "id"})
            self._write(path, data)
            body = data[doc_id]
        return {**body, "id": doc_id}

    def delete_document(self, user_id: str, collection: str, doc_id: str) -> None:
        """Remove a document.

        Raises:
            KeyError: If the document does not exist.
        """
        path = self._collection_path(user_id, collection)
        with self._locked(user_id):
            data = self._read(path)
            if doc_id not in data:
                raise KeyError(doc_id)
            del data[doc_id]
            self._write(path, data)
        logger.debug("document_deleted", user_id=user_id, collection=collection, doc_id=doc_id)

    def _shared_path(self, collection: str) -> Path:
        return self.shared_dir / f"{_check_name('collection', collection)}.json"

    def add_shared_document(self, collection: str, body: dict[str, Any]) -> dict[str, Any]:
        """Add a document under a fresh id to a collection no user owns."""
        path = self._shared_path(collection)
        doc_id = uuid.uuid4().hex
        stored = {k: v for k, v in body.items() if k != "id"}
        with self._flock(self.shared_dir / ".lock"):
            data = self._read(path)
            data[doc_id] = stored
            self._write(path, data)
        return {**stored, "id": doc_id}

    def list_shared_documents(self, collection: str) -> list[dict[str, Any]]:
        path = self._shared_path(collection)
        with self._flock(self.shared_dir / ".lock", exclusive=False):
            data = self._read(path)
        return [{**body, "id": doc_id} for doc_id, body in data.items()]
