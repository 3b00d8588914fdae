"""Tests for the tournament service layer using mockfirestore."""

from __future__ import annotations

import random
import unittest
from unittest.mock import MagicMock, patch

from spikers import create_app
from spikers.errors import (
    InsufficientPlayersError,
    NoActiveTournamentError,
    SessionNotFoundError,
    SessionNotInProgressError,
    StaleTournamentError,
    TournamentAlreadyActiveError,
)
from spikers.tournament.models import SessionStatus, TeamMode, TournamentStatus
from spikers.tournament.services import TournamentService
from tests.conftest import add_session, make_firestore_module, make_mock_db


def player_docs(count: int) -> list[dict]:
    return [
        {"id": f"p{i}", "name": f"Player {i}", "rating": 1100 - 10 * i}
        for i in range(1, count + 1)
    ]


class TournamentServiceTestCase(unittest.TestCase):
    """Test case for loading, updating and storing tournaments."""

    def setUp(self) -> None:
        self.db = make_mock_db()
        patcher = patch(
            "spikers.tournament.services.firestore",
            new=make_firestore_module(self.db),
        )
        patcher.start()
        self.addCleanup(patcher.stop)

        self.app = create_app({"TESTING": True})
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

        add_session(self.db, "session1", player_docs(8))

    def _stored(self, tournament_id: str) -> dict:
        return self.db.collection("tournaments").document(tournament_id).get().to_dict()

    def test_get_session_lists_present_players(self) -> None:
        self.db.collection("sessions").document("session2").set(
            {
                "status": "IN_PROGRESS",
                "attendances": [
                    {"present": True, "player": {"id": "a", "name": "Ana", "rating": 1000}},
                    {"present": False, "player": {"id": "b", "name": "Ben", "rating": 900}},
                    {"present": True},
                ],
            }
        )
        status, players, _ = TournamentService.get_session("session2", self.db)
        self.assertEqual(status, SessionStatus.IN_PROGRESS)
        self.assertEqual([p.id for p in players], ["a"])

    def test_get_session_missing(self) -> None:
        with self.assertRaises(SessionNotFoundError):
            TournamentService.get_session("missing", self.db)

    def test_no_tournament_yet(self) -> None:
        self.assertIsNone(TournamentService.get_tournament("session1", self.db))

    def test_dangling_tournament_reference(self) -> None:
        add_session(self.db, "session2", player_docs(4), tournamentId="gone")
        self.assertIsNone(TournamentService.get_tournament("session2", self.db))

    def test_start_tournament_persists_and_links_session(self) -> None:
        tournament = TournamentService.start_tournament(
            "session1", TeamMode.FAIR, rng=random.Random(1)
        )

        self.assertEqual(tournament.version, 1)
        session = self.db.collection("sessions").document("session1").get().to_dict()
        self.assertEqual(session["tournamentId"], tournament.id)

        stored = self._stored(tournament.id)
        self.assertEqual(stored["version"], 1)
        self.assertEqual(stored["status"], "ACTIVE")
        self.assertEqual(len(stored["matches"]), 6)
        self.assertEqual(stored["createdAt"], tournament.created_at)
        self.assertEqual(stored["updatedAt"], tournament.created_at)
        self.assertIsNone(stored["endedAt"])
        self.assertEqual(stored["teams"][0]["tournamentId"], tournament.id)

        self.assertEqual(TournamentService.get_tournament("session1"), tournament)

    def test_start_twice_is_refused(self) -> None:
        TournamentService.start_tournament("session1", TeamMode.RANDOM)
        with self.assertRaises(TournamentAlreadyActiveError):
            TournamentService.start_tournament("session1", TeamMode.RANDOM)

    def test_start_requires_session_in_progress(self) -> None:
        add_session(self.db, "session2", player_docs(4), status="UPCOMING")
        with self.assertRaises(SessionNotInProgressError):
            TournamentService.start_tournament("session2", TeamMode.RANDOM)

    def test_start_with_too_few_players(self) -> None:
        add_session(self.db, "session2", player_docs(2))
        with self.assertRaises(InsufficientPlayersError):
            TournamentService.start_tournament("session2", TeamMode.RANDOM)
        self.assertEqual(list(self.db.collection("tournaments").stream()), [])

    def test_submit_game_bumps_version(self) -> None:
        tournament = TournamentService.start_tournament("session1", TeamMode.FAIR)
        updated = TournamentService.submit_game(
            "session1", "round_robin-r1-s1", 11, 6
        )

        self.assertEqual(updated.version, 2)
        stored = self._stored(tournament.id)
        self.assertEqual(stored["version"], 2)
        self.assertEqual(stored["matches"][0]["winsA"], 1)
        self.assertEqual(
            stored["matches"][0]["games"], [{"gameNumber": 1, "scoreA": 11, "scoreB": 6}]
        )

    def test_submit_game_without_tournament(self) -> None:
        with self.assertRaises(NoActiveTournamentError):
            TournamentService.submit_game("session1", "round_robin-r1-s1", 11, 6)

    def test_end_tournament(self) -> None:
        tournament = TournamentService.start_tournament("session1", TeamMode.FAIR)
        ended = TournamentService.end_tournament("session1")

        self.assertEqual(ended.status, TournamentStatus.ENDED)
        stored = self._stored(tournament.id)
        self.assertEqual(stored["status"], "ENDED")
        self.assertEqual(stored["stage"], "ENDED")
        self.assertEqual(stored["endedAt"], ended.ended_at)
        self.assertEqual(stored["createdAt"], tournament.created_at)
        self.assertIsNotNone(ended.ended_at)

        with self.assertRaises(NoActiveTournamentError):
            TournamentService.end_tournament("session1")

    def test_start_rejects_tournament_started_since_read(self) -> None:
        first = TournamentService.start_tournament("session1", TeamMode.FAIR)

        # A second request that read the session before the first one linked it
        with patch.object(TournamentService, "get_tournament", return_value=None):
            with self.assertRaises(TournamentAlreadyActiveError):
                TournamentService.start_tournament("session1", TeamMode.FAIR)

        session = self.db.collection("sessions").document("session1").get().to_dict()
        self.assertEqual(session["tournamentId"], first.id)
        self.assertEqual(len(list(self.db.collection("tournaments").stream())), 1)

    def test_start_rejects_session_relinked_since_read(self) -> None:
        first = TournamentService.start_tournament("session1", TeamMode.FAIR)
        TournamentService.end_tournament("session1")

        stale_session = TournamentService.get_session("session1", self.db)
        session_without_link = (stale_session[0], stale_session[1], {})
        with patch.object(
            TournamentService, "get_session", return_value=session_without_link
        ), patch.object(TournamentService, "get_tournament", return_value=None):
            with self.assertRaises(StaleTournamentError):
                TournamentService.start_tournament("session1", TeamMode.FAIR)

        session = self.db.collection("sessions").document("session1").get().to_dict()
        self.assertEqual(session["tournamentId"], first.id)

    def test_concurrent_write_is_rejected(self) -> None:
        tournament = TournamentService.start_tournament("session1", TeamMode.FAIR)
        # Another writer gets in first
        self.db.collection("tournaments").document(tournament.id).update({"version": 5})

        with self.assertRaises(StaleTournamentError):
            TournamentService._save(self.db, tournament, expected_version=1)


class StartTransactionTestCase(unittest.TestCase):
    """Test case for creating a tournament and linking its session."""

    def setUp(self) -> None:
        self.transaction = MagicMock()
        self.session_ref = MagicMock()
        self.session_snapshot = MagicMock()
        self.session_snapshot.exists = True
        self.session_snapshot.to_dict.return_value = {"status": "IN_PROGRESS"}
        self.session_ref.get.return_value = self.session_snapshot

        self.tournaments = MagicMock()
        self.refs: dict[str, MagicMock] = {}
        self.tournaments.document.side_effect = self._ref
        self.payload = {"id": "t2", "version": 1}

    def _ref(self, tournament_id: str) -> MagicMock:
        if tournament_id not in self.refs:
            ref = MagicMock()
            ref.get.return_value.exists = False
            self.refs[tournament_id] = ref
        return self.refs[tournament_id]

    def _run(self, expected_tournament_id=None) -> None:
        TournamentService._start_transaction(
            self.transaction,
            self.session_ref,
            self.tournaments,
            self.payload,
            expected_tournament_id,
        )

    def test_creates_and_links(self) -> None:
        self._run()

        self.session_ref.get.assert_called_with(transaction=self.transaction)
        self.transaction.set.assert_called_with(self.refs["t2"], self.payload)
        self.transaction.update.assert_called_with(
            self.session_ref, {"tournamentId": "t2"}
        )

    def test_replaces_finished_tournament(self) -> None:
        self.session_snapshot.to_dict.return_value = {"tournamentId": "t1"}
        old = self._ref("t1").get.return_value
        old.exists = True
        old.to_dict.return_value = {"status": "COMPLETED"}

        self._run("t1")

        self.transaction.update.assert_called_with(
            self.session_ref, {"tournamentId": "t2"}
        )

    def test_refuses_active_tournament(self) -> None:
        self.session_snapshot.to_dict.return_value = {"tournamentId": "t1"}
        old = self._ref("t1").get.return_value
        old.exists = True
        old.to_dict.return_value = {"status": "ACTIVE"}

        with self.assertRaises(TournamentAlreadyActiveError):
            self._run(None)
        self.transaction.set.assert_not_called()
        self.transaction.update.assert_not_called()

    def test_refuses_relinked_session(self) -> None:
        self.session_snapshot.to_dict.return_value = {"tournamentId": "t9"}

        with self.assertRaises(StaleTournamentError):
            self._run("t1")
        self.transaction.set.assert_not_called()

    def test_refuses_existing_document(self) -> None:
        self._ref("t2").get.return_value.exists = True

        with self.assertRaises(StaleTournamentError):
            self._run()
        self.transaction.set.assert_not_called()

    def test_missing_session(self) -> None:
        self.session_snapshot.exists = False

        with self.assertRaises(SessionNotFoundError):
            self._run()


class SaveTransactionTestCase(unittest.TestCase):
    """Test case for the version check inside the save transaction."""

    def setUp(self) -> None:
        self.transaction = MagicMock()
        self.ref = MagicMock()
        self.snapshot = MagicMock()
        self.ref.get.return_value = self.snapshot

    def test_update_matching_version(self) -> None:
        self.snapshot.exists = True
        self.snapshot.to_dict.return_value = {"version": 3}
        payload = {"version": 4}

        TournamentService._save_transaction(self.transaction, self.ref, payload, 3)

        self.transaction.update.assert_called_with(self.ref, payload)

    def test_update_stale_version(self) -> None:
        self.snapshot.exists = True
        self.snapshot.to_dict.return_value = {"version": 4}
        with self.assertRaises(StaleTournamentError):
            TournamentService._save_transaction(
                self.transaction, self.ref, {"version": 4}, 3
            )
        self.transaction.update.assert_not_called()

    def test_update_missing_document(self) -> None:
        self.snapshot.exists = False
        with self.assertRaises(StaleTournamentError):
            TournamentService._save_transaction(
                self.transaction, self.ref, {"version": 2}, 1
            )


if __name__ == "__main__":
    unittest.main()
