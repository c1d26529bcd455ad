from __future__ import annotations

import logging
from functools import partial
from typing import List, Optional, Tuple

from . import players, scoring, state_machine
from .db import GameStore, Settings, settings
from .errors import EmptyQuiz, IncompatibleState, InvalidAutoStart, InvalidGameId, TooManyActiveGames
from .models import (
    Game,
    GameAction,
    GameState,
    Player,
    QuestionResult,
    QuizSnapshot,
    RankingEntry,
    Snapshot,
)
from .schemas import (
    AnswerOptionOut,
    GameListOut,
    GameResultsOut,
    GameStatusOut,
    PlayerQuestionOut,
    PlayerStatusOut,
)
from .timers import TimerCallback, TimerRegistry
from .utils import now_seconds

logger = logging.getLogger(__name__)

# (delay in seconds, callback) for the automatic transition a move leads to
Deferred = Optional[Tuple[float, TimerCallback]]

QUESTION_HIDDEN_STATES = (
    GameState.LOBBY,
    GameState.QUESTION_COUNTDOWN,
    GameState.FINAL_RESULTS,
    GameState.END,
)


class GameController:
    def __init__(
        self,
        store: GameStore | None = None,
        timers: TimerRegistry | None = None,
        config: Settings | None = None,
    ):
        self.settings = config or settings
        self.store = store or GameStore(self.settings.DATA_FILE)
        self.timers = timers or TimerRegistry()

    # -- admin ---------------------------------------------------------------

    async def start_game(self, quiz: QuizSnapshot, auto_start_num: int = 0) -> int:
        if auto_start_num < 0 or auto_start_num > self.settings.MAX_AUTO_START_NUM:
            raise InvalidAutoStart(
                f"autoStartNum must be between 0 and {self.settings.MAX_AUTO_START_NUM}"
            )

        async with self.store.transaction() as s:
            running = [g for g in s.games_for_quiz(quiz.quiz_id) if g.state != GameState.END]
            if len(running) >= self.settings.MAX_ACTIVE_GAMES:
                raise TooManyActiveGames(
                    f"{len(running)} games that are not in END state already exist for this quiz"
                )
            if not quiz.questions:
                raise EmptyQuiz("The quiz does not have any questions in it")

            game = Game(
                id=s.next_game_id(),
                quiz=quiz.model_copy(deep=True),
                auto_start_num=auto_start_num,
            )
            s.games.append(game)

        logger.info("[game-start] game=%s quiz=%s auto_start=%s", game.id, quiz.quiz_id, auto_start_num)
        return game.id

    async def list_games(self, quiz_id: int) -> GameListOut:
        s = await self.store.load()
        games = s.games_for_quiz(quiz_id)
        return GameListOut(
            active_games=sorted(g.id for g in games if g.state != GameState.END),
            inactive_games=sorted(g.id for g in games if g.state == GameState.END),
        )

    async def game_status(self, game_id: int, quiz_id: int | None = None) -> GameStatusOut:
        s = await self.store.load()
        game = self._find_game(s, game_id, quiz_id)
        return GameStatusOut(
            state=game.state,
            at_question=game.at_question,
            players=[p.name for p in game.players],
            metadata=game.quiz,
        )

    async def game_results(self, game_id: int, quiz_id: int | None = None) -> GameResultsOut:
        s = await self.store.load()
        game = self._find_game(s, game_id, quiz_id)
        return scoring.game_results(game)

    async def apply_action(self, game_id: int, action: str | GameAction, quiz_id: int | None = None) -> GameState:
        async with self.store.transaction() as s:
            game = self._find_game(s, game_id, quiz_id)
            act = state_machine.check_action(game, action)
            previous = game.state
            deferred = self._transition(game, act)

        logger.info(
            "[game-action] game=%s action=%s %s -> %s", game_id, act.value, previous.value, game.state.value
        )
        self._settle(game_id, deferred)
        return game.state

    async def reset(self) -> None:
        self.timers.cancel_all()
        await self.store.persist(Snapshot())
        # a callback that was mid-transaction may have scheduled its follow-up
        self.timers.cancel_all()
        logger.info("[reset] all games discarded")

    # -- players -------------------------------------------------------------

    async def join(self, game_id: int, name: str) -> int:
        async with self.store.transaction() as s:
            game = s.find_game(game_id)
            if game is None:
                raise InvalidGameId(f"Game {game_id} does not exist")
            if game.state != GameState.LOBBY:
                raise IncompatibleState("Game is not in LOBBY state")

            name = players.choose_player_name(game, name)
            player_id = s.allocate_player_id()
            game.players.append(Player(player_id=player_id, name=name))
            game.ranking.append(RankingEntry(name=name))

            started = False
            if (
                game.auto_start_num
                and len(game.players) >= game.auto_start_num
                and not self.timers.pending(game_id)
            ):
                deferred = self._transition(game, GameAction.NEXT_QUESTION)
                started = True

        if started:
            logger.info("[auto-start] game=%s players=%s", game_id, len(game.players))
            self._settle(game_id, deferred)
        return player_id

    async def player_status(self, player_id: int) -> PlayerStatusOut:
        s = await self.store.load()
        game = players.resolve_game(s, player_id)
        return PlayerStatusOut(
            state=game.state,
            num_questions=game.num_questions,
            at_question=game.at_question,
        )

    async def current_question(self, player_id: int, position: int) -> PlayerQuestionOut:
        s = await self.store.load()
        game = players.resolve_game(s, player_id)
        if game.state in QUESTION_HIDDEN_STATES:
            raise IncompatibleState(f"No question is shown in state {game.state.value}")
        players.check_position(position, game)

        q = game.quiz.questions[position - 1]
        return PlayerQuestionOut(
            question_id=q.question_id,
            question=q.question,
            time_limit=q.time_limit,
            thumbnail_url=q.thumbnail_url,
            points=q.points,
            answer_options=[
                AnswerOptionOut(answer_id=o.answer_id, answer=o.answer, colour=o.colour)
                for o in q.answer_options
            ],
        )

    async def submit_answer(self, player_id: int, position: int, answer_ids: List[int]) -> None:
        async with self.store.transaction() as s:
            game = players.resolve_game(s, player_id)
            players.check_position(position, game)
            if game.state != GameState.QUESTION_OPEN:
                raise IncompatibleState("Game is not in QUESTION_OPEN state")
            players.check_answer_ids(game.quiz.questions[position - 1], answer_ids)
            players.record_answer(game, player_id, answer_ids, now_seconds())

    async def question_result(self, player_id: int, position: int) -> QuestionResult:
        s = await self.store.load()
        game = players.resolve_game(s, player_id)
        return scoring.question_result(game, position)

    async def final_results(self, player_id: int) -> GameResultsOut:
        s = await self.store.load()
        game = players.resolve_game(s, player_id)
        return scoring.game_results(game)

    # -- transitions ---------------------------------------------------------

    def _find_game(self, s: Snapshot, game_id: int, quiz_id: int | None) -> Game:
        game = s.find_game(game_id)
        if game is None:
            raise InvalidGameId(f"Game {game_id} does not exist")
        if quiz_id is not None and game.quiz.quiz_id != quiz_id:
            raise InvalidGameId(f"Game {game_id} does not belong to quiz {quiz_id}")
        return game

    def _transition(self, game: Game, act: GameAction) -> Deferred:
        """Apply an already validated action and return the timer it starts.

        Timers are only touched by the caller once the new state is persisted.
        """
        if act is GameAction.NEXT_QUESTION:
            state_machine.question_countdown(game)
            return self.settings.QUESTION_COUNTDOWN_SEC, partial(self._countdown_expired, game.id, game.at_question)

        if act is GameAction.SKIP_COUNTDOWN:
            return self._open_question(game)

        if act is GameAction.GO_TO_ANSWER:
            if game.state == GameState.QUESTION_OPEN:
                state_machine.question_close(game)
            state_machine.answer_show(game)
        elif act is GameAction.GO_TO_FINAL_RESULTS:
            state_machine.final_results(game)
        elif act is GameAction.END:
            state_machine.end_game(game)
        return None

    def _open_question(self, game: Game) -> Deferred:
        state_machine.question_open(game)
        question = game.current_question()
        return question.time_limit, partial(self._question_expired, game.id, game.at_question)

    def _settle(self, game_id: int, deferred: Deferred) -> None:
        self.timers.cancel(game_id)
        if deferred is not None:
            delay, callback = deferred
            self.timers.schedule(game_id, delay, callback)

    async def _countdown_expired(self, game_id: int, position: int) -> None:
        # position is the question answered before this countdown started
        async with self.store.transaction() as s:
            game = s.find_game(game_id)
            if game is None or game.state != GameState.QUESTION_COUNTDOWN or game.at_question != position:
                logger.info("[timer-abort] game=%s countdown after question %s is over", game_id, position)
                return
            deferred = self._open_question(game)

        logger.info("[game-auto] game=%s question %s open", game_id, game.at_question)
        self._settle(game_id, deferred)

    async def _question_expired(self, game_id: int, position: int) -> None:
        async with self.store.transaction() as s:
            game = s.find_game(game_id)
            if game is None or game.state != GameState.QUESTION_OPEN or game.at_question != position:
                logger.info("[timer-abort] game=%s question %s is no longer open", game_id, position)
                return
            state_machine.question_close(game)

        logger.info("[game-auto] game=%s question %s closed", game_id, game.at_question)
        self._settle(game_id, None)


controller = GameController()
