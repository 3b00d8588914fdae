"""Common utilities for tests."""

from typing import Any, Optional
from unittest.mock import MagicMock

from mockfirestore import MockFirestore
from mockfirestore.document import DocumentReference


class MockTransaction:
    """Applies transactional writes straight to mockfirestore documents."""

    def __init__(self) -> None:
        self.writes: list[tuple[Any, Any]] = []

    def set(self, ref: Any, data: Any, merge: bool = False) -> None:
        self.writes.append((ref, data))
        ref.set(data, merge=merge)

    def update(self, ref: Any, data: Any) -> None:
        self.writes.append((ref, data))
        ref.update(data)


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support transactional reads."""

    def doc_ref_get(
        self: Any, field_paths: Optional[list[str]] = None, transaction: Any = None
    ) -> Any:
        return self._orig_get()

    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get
        DocumentReference.get = doc_ref_get


def make_mock_db() -> MockFirestore:
    """A MockFirestore client whose transactions write through immediately."""
    patch_mockfirestore()
    db = MockFirestore()
    db.transaction = MagicMock(side_effect=MockTransaction)
    return db


def make_firestore_module(db: Any) -> MagicMock:
    """Stand-in for ``firebase_admin.firestore`` bound to ``db``."""
    module = MagicMock()
    module.client.return_value = db
    module.transactional = lambda func: func
    return module


def add_session(
    db: Any,
    session_id: str,
    players: list[dict[str, Any]],
    status: str = "IN_PROGRESS",
    **extra: Any,
) -> None:
    """Store a session document with every given player marked present."""
    db.collection("sessions").document(session_id).set(
        {
            "status": status,
            "attendances": [
                {"present": True, "playerId": p["id"], "player": p} for p in players
            ],
            **extra,
        }
    )
