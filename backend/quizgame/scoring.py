"""Question close scoring and the result views built from it.

Points decay with the order players got the question right: the first
correct answerer gets the full value, the second half, the third a third and
so on. Each share is rounded on its own, so the total handed out for a
question need not equal its point value.
"""

from __future__ import annotations

from .errors import IncompatibleState, InvalidPosition
from .models import Game, GameState, QuestionResult
from .schemas import GameResultsOut
from .utils import round_half_up


def close_question(game: Game) -> QuestionResult:
    """Finalise the result of the open question and fold it into the scores."""
    index = game.at_question - 1
    result = game.question_results[index]
    question = game.quiz.questions[index]

    times = list(game.answer_times.values())
    result.average_answer_time = round_half_up(sum(times) / len(times)) if times else 0

    rank = 1
    for name in result.players_correct:
        player = game.find_player_by_name(name)
        if player is None:
            continue
        awarded = round_half_up(question.points * (1 / rank))
        player.score += awarded
        entry = next((r for r in game.ranking if r.name == name), None)
        if entry is not None:
            entry.score += awarded
        rank += 1

    if game.players:
        result.percent_correct = round_half_up(len(result.players_correct) / len(game.players) * 100)
    else:
        result.percent_correct = 0

    # list.sort stays stable with reverse=True, ties keep their order
    game.ranking.sort(key=lambda r: r.score, reverse=True)
    return result


def question_result(game: Game, position: int) -> QuestionResult:
    if game.state != GameState.ANSWER_SHOW:
        raise IncompatibleState("Game is not in ANSWER_SHOW state")
    if position < 1 or position > game.at_question:
        raise InvalidPosition("Question has not been opened in this game")
    return game.question_results[position - 1].model_copy(deep=True)


def game_results(game: Game) -> GameResultsOut:
    if game.state != GameState.FINAL_RESULTS:
        raise IncompatibleState("Game is not in FINAL_RESULTS state")
    return GameResultsOut(
        ranking=[r.model_copy() for r in game.ranking],
        question_results=[q.model_copy(deep=True) for q in game.question_results],
    )
