from __future__ import annotations

import json
import tempfile
from pathlib import Path
from unittest import IsolatedAsyncioTestCase, TestCase, mock

from quizgame.db import GameStore, Settings
from quizgame.models import Game, GameState, QuizSnapshot, Snapshot


def _game(game_id: int) -> Game:
    return Game(id=game_id, quiz=QuizSnapshot(quiz_id=1, name="Quiz"))


class InMemoryStoreTests(IsolatedAsyncioTestCase):
    async def test_transaction_persists_on_exit(self):
        store = GameStore()
        async with store.transaction() as s:
            s.games.append(_game(1))

        loaded = await store.load()
        self.assertEqual([g.id for g in loaded.games], [1])

    async def test_loaded_snapshot_is_a_copy(self):
        store = GameStore()
        async with store.transaction() as s:
            s.games.append(_game(1))

        loaded = await store.load()
        loaded.games[0].state = GameState.END

        again = await store.load()
        self.assertEqual(again.games[0].state, GameState.LOBBY)

    async def test_failed_transaction_leaves_no_trace(self):
        store = GameStore()
        with self.assertRaises(RuntimeError):
            async with store.transaction() as s:
                s.games.append(_game(1))
                raise RuntimeError("validation failed")

        loaded = await store.load()
        self.assertEqual(loaded.games, [])


class FileStoreTests(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "data" / "database.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    async def test_persist_writes_json_file(self):
        store = GameStore(self.path)
        async with store.transaction() as s:
            s.games.append(_game(4))
            s.allocate_player_id()

        raw = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(raw["games"][0]["id"], 4)
        self.assertEqual(raw["next_player_id"], 2)

    async def test_every_load_rereads_the_file(self):
        writer = GameStore(self.path)
        reader = GameStore(self.path)
        self.assertEqual((await reader.load()).games, [])

        async with writer.transaction() as s:
            s.games.append(_game(1))
        async with writer.transaction() as s:
            s.games[0].state = GameState.QUESTION_OPEN

        loaded = await reader.load()
        self.assertEqual(loaded.games[0].state, GameState.QUESTION_OPEN)

    async def test_failed_write_keeps_previous_snapshot(self):
        store = GameStore(self.path)
        with mock.patch.object(GameStore, "_write_atomic", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                async with store.transaction() as s:
                    s.games.append(_game(1))

        self.assertFalse(self.path.exists())
        self.assertEqual((await store.load()).games, [])

    async def test_failed_write_after_earlier_write(self):
        store = GameStore(self.path)
        async with store.transaction() as s:
            s.games.append(_game(1))

        with mock.patch.object(GameStore, "_write_atomic", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                await store.persist(Snapshot())

        self.assertEqual([g.id for g in (await store.load()).games], [1])

    async def test_no_temp_files_left_behind(self):
        store = GameStore(self.path)
        await store.persist((await store.load()))
        self.assertEqual(sorted(p.name for p in self.path.parent.iterdir()), ["database.json"])


class SettingsTests(TestCase):
    def test_defaults(self):
        config = Settings(_env_file=None)
        self.assertEqual(config.QUESTION_COUNTDOWN_SEC, 3)
        self.assertEqual(config.MAX_ACTIVE_GAMES, 10)
        self.assertEqual(config.MAX_AUTO_START_NUM, 50)
