"""Legal moves of a game and the in-place transitions between states.

Functions here only touch the ``Game`` they are given. Loading, persisting
and timers belong to ``GameController``.
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from .errors import IncompatibleState, InvalidAction
from .models import Game, GameAction, GameState, QuestionResult
from .scoring import close_question
from .utils import now_seconds

VALID_ACTIONS: Dict[GameState, FrozenSet[GameAction]] = {
    GameState.LOBBY: frozenset({GameAction.END, GameAction.NEXT_QUESTION}),
    GameState.QUESTION_COUNTDOWN: frozenset({GameAction.END, GameAction.SKIP_COUNTDOWN}),
    GameState.QUESTION_OPEN: frozenset({GameAction.END, GameAction.GO_TO_ANSWER}),
    GameState.QUESTION_CLOSE: frozenset(
        {
            GameAction.END,
            GameAction.GO_TO_FINAL_RESULTS,
            GameAction.GO_TO_ANSWER,
            GameAction.NEXT_QUESTION,
        }
    ),
    GameState.ANSWER_SHOW: frozenset(
        {GameAction.END, GameAction.GO_TO_FINAL_RESULTS, GameAction.NEXT_QUESTION}
    ),
    GameState.FINAL_RESULTS: frozenset({GameAction.END}),
    GameState.END: frozenset(),
}


def parse_action(action: str | GameAction) -> GameAction:
    try:
        return GameAction(action)
    except ValueError as exc:
        raise InvalidAction(f"{action!r} is not a valid action") from exc


def check_action(game: Game, action: str | GameAction) -> GameAction:
    """Validate ``action`` against the game's current state without mutating it."""
    act = parse_action(action)
    if act not in VALID_ACTIONS[game.state]:
        raise IncompatibleState(f"Action {act.value} cannot be applied in state {game.state.value}")
    if act is GameAction.NEXT_QUESTION and game.at_question >= game.num_questions:
        raise IncompatibleState("There are no more questions in this game")
    return act


def question_countdown(game: Game) -> None:
    game.state = GameState.QUESTION_COUNTDOWN


def question_open(game: Game) -> None:
    game.state = GameState.QUESTION_OPEN
    game.question_open_time = now_seconds()
    game.at_question += 1
    game.answer_times = {}
    game.question_results.append(QuestionResult(question_id=game.current_question().question_id))


def question_close(game: Game) -> None:
    game.state = GameState.QUESTION_CLOSE
    close_question(game)


def answer_show(game: Game) -> None:
    game.state = GameState.ANSWER_SHOW


def final_results(game: Game) -> None:
    game.state = GameState.FINAL_RESULTS
    game.at_question = 0


def end_game(game: Game) -> None:
    game.state = GameState.END
    game.at_question = 0
