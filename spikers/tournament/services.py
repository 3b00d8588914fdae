"""Service layer for tournament persistence."""

from __future__ import annotations

import dataclasses
import datetime
import random
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore
from flask import current_app

from spikers.constants import (
    DEFAULT_BEST_OF,
    SESSIONS_COLLECTION,
    TOURNAMENTS_COLLECTION,
)
from spikers.errors import (
    NoActiveTournamentError,
    SessionNotFoundError,
    StaleTournamentError,
    TournamentAlreadyActiveError,
)

from .facade import TournamentFacade
from .models import Player, SessionStatus, TeamMode, Tournament, TournamentStatus
from .serialization import player_from_dict, tournament_from_dict, tournament_to_dict

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.collection import CollectionReference
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


class TournamentService:
    """Loads tournament snapshots, runs facade commands and stores the result."""

    @staticmethod
    def get_session(
        session_id: str, db: Client | None = None
    ) -> tuple[SessionStatus, list[Player], dict[str, Any]]:
        """Fetch a session's status and its present players."""
        if db is None:
            db = firestore.client()
        doc = cast(
            "DocumentSnapshot",
            db.collection(SESSIONS_COLLECTION).document(session_id).get(),
        )
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise SessionNotFoundError()

        players = [
            player_from_dict(entry["player"])
            for entry in data.get("attendances", [])
            if entry and entry.get("present") and entry.get("player")
        ]
        status = SessionStatus(data.get("status", SessionStatus.UPCOMING.value))
        return status, players, data

    @staticmethod
    def get_tournament(
        session_id: str, db: Client | None = None
    ) -> Optional[Tournament]:
        """Fetch the session's current tournament, if it has one."""
        if db is None:
            db = firestore.client()
        _, _, session_data = TournamentService.get_session(session_id, db)
        tournament_id = session_data.get("tournamentId")
        if not tournament_id:
            return None

        doc = cast(
            "DocumentSnapshot",
            db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get(),
        )
        data = doc.to_dict() if doc.exists else None
        if not data:
            current_app.logger.warning(
                f"Session {session_id} points at missing tournament {tournament_id}."
            )
            return None
        return tournament_from_dict(data)

    @staticmethod
    def start_tournament(
        session_id: str,
        team_mode: TeamMode,
        db: Client | None = None,
        rng: random.Random | None = None,
        best_of: int = DEFAULT_BEST_OF,
    ) -> Tournament:
        """Form teams from the session's attendance and store a new tournament.

        The session link is re-checked and written in the same transaction as
        the new tournament, so two concurrent starts cannot both succeed.
        """
        if db is None:
            db = firestore.client()
        status, players, session_data = TournamentService.get_session(session_id, db)
        existing = TournamentService.get_tournament(session_id, db)

        facade = TournamentFacade(rng=rng, best_of=best_of)
        tournament = facade.start(session_id, status, players, team_mode, existing)

        now = TournamentService._now()
        saved = dataclasses.replace(
            tournament,
            version=tournament.version + 1,
            created_at=now,
            updated_at=now,
        )
        session_ref = db.collection(SESSIONS_COLLECTION).document(session_id)
        tournaments = db.collection(TOURNAMENTS_COLLECTION)
        transaction = db.transaction()
        firestore.transactional(TournamentService._start_transaction)(
            transaction,
            session_ref,
            tournaments,
            tournament_to_dict(saved),
            session_data.get("tournamentId"),
        )
        current_app.logger.info(
            f"Tournament {saved.id} started for session {session_id} "
            f"({team_mode.value}, {len(saved.teams)} teams)."
        )
        return saved

    @staticmethod
    def submit_game(
        session_id: str,
        match_id: str,
        score_a: int,
        score_b: int,
        db: Client | None = None,
    ) -> Tournament:
        """Record a game on the session's tournament."""
        if db is None:
            db = firestore.client()
        tournament = TournamentService.get_tournament(session_id, db)
        if tournament is None:
            raise NoActiveTournamentError()

        updated = TournamentFacade.submit_game(tournament, match_id, score_a, score_b)
        return TournamentService._save(db, updated, expected_version=tournament.version)

    @staticmethod
    def end_tournament(session_id: str, db: Client | None = None) -> Tournament:
        """End the session's tournament early."""
        if db is None:
            db = firestore.client()
        tournament = TournamentService.get_tournament(session_id, db)
        if tournament is None:
            raise NoActiveTournamentError()

        updated = TournamentFacade.end_early(tournament)
        saved = TournamentService._save(
            db, updated, expected_version=tournament.version
        )
        current_app.logger.info(f"Tournament {saved.id} ended early.")
        return saved

    @staticmethod
    def _now() -> str:
        return datetime.datetime.now(datetime.timezone.utc).isoformat()

    @staticmethod
    def _save(
        db: Client, tournament: Tournament, expected_version: int
    ) -> Tournament:
        """Write a snapshot if nobody else wrote since ``expected_version``."""
        now = TournamentService._now()
        saved = dataclasses.replace(
            tournament, version=tournament.version + 1, updated_at=now
        )
        if saved.status is TournamentStatus.ENDED and saved.ended_at is None:
            saved = dataclasses.replace(saved, ended_at=now)

        ref = db.collection(TOURNAMENTS_COLLECTION).document(tournament.id)
        transaction = db.transaction()
        firestore.transactional(TournamentService._save_transaction)(
            transaction, ref, tournament_to_dict(saved), expected_version
        )
        return saved

    @staticmethod
    def _start_transaction(
        transaction: Transaction,
        session_ref: DocumentReference,
        tournaments: CollectionReference,
        payload: dict[str, Any],
        expected_tournament_id: str | None,
    ) -> None:
        """Create a tournament and link it to its session in one transaction."""
        session = cast("DocumentSnapshot", session_ref.get(transaction=transaction))
        if not session.exists:
            raise SessionNotFoundError()
        current_id = (session.to_dict() or {}).get("tournamentId")
        if current_id:
            current = cast(
                "DocumentSnapshot",
                tournaments.document(current_id).get(transaction=transaction),
            )
            current_data = (current.to_dict() or {}) if current.exists else {}
            if current_data.get("status") == TournamentStatus.ACTIVE.value:
                raise TournamentAlreadyActiveError()
        if current_id != expected_tournament_id:
            raise StaleTournamentError()

        ref = tournaments.document(payload["id"])
        snapshot = cast("DocumentSnapshot", ref.get(transaction=transaction))
        if snapshot.exists:
            raise StaleTournamentError()
        transaction.set(ref, payload)
        transaction.update(session_ref, {"tournamentId": payload["id"]})

    @staticmethod
    def _save_transaction(
        transaction: Transaction,
        ref: DocumentReference,
        payload: dict[str, Any],
        expected_version: int,
    ) -> None:
        """Compare the stored version and write inside one transaction."""
        snapshot = cast("DocumentSnapshot", ref.get(transaction=transaction))
        stored = (snapshot.to_dict() or {}) if snapshot.exists else {}
        if stored.get("version") != expected_version:
            raise StaleTournamentError()
        transaction.update(ref, payload)
