from __future__ import annotations

import re
from typing import List

from .errors import InvalidAnswerIds, InvalidPlayerId, InvalidPlayerName, InvalidPosition
from .models import Game, Question, Snapshot
from .utils import random_player_name

VALID_NAME = re.compile(r"[A-Za-z0-9 ]*")


def resolve_game(snapshot: Snapshot, player_id: int) -> Game:
    """Return the game the player joined."""
    for game in snapshot.games:
        if game.find_player(player_id) is not None:
            return game
    raise InvalidPlayerId(f"Player {player_id} does not exist")


def check_position(position: int, game: Game) -> None:
    if position < 1 or position > game.num_questions:
        raise InvalidPosition("Invalid question position for this game")
    if position != game.at_question:
        raise InvalidPosition("Game is not currently on this question")


def choose_player_name(game: Game, name: str) -> str:
    if not VALID_NAME.fullmatch(name):
        raise InvalidPlayerName("Name contains invalid characters")
    if game.find_player_by_name(name) is not None:
        raise InvalidPlayerName("Name is already taken in this game")
    if name:
        return name

    generated = random_player_name()
    while game.find_player_by_name(generated) is not None:
        generated = random_player_name()
    return generated


def check_answer_ids(question: Question, answer_ids: List[int]) -> None:
    valid = {o.answer_id for o in question.answer_options}
    if any(a not in valid for a in answer_ids):
        raise InvalidAnswerIds("Answer ids are not valid for this question")
    if len(set(answer_ids)) != len(answer_ids):
        raise InvalidAnswerIds("Duplicate answer ids submitted")
    if not answer_ids:
        raise InvalidAnswerIds("At least one answer id must be submitted")


def record_answer(game: Game, player_id: int, answer_ids: List[int], now: int) -> bool:
    """Store the player's latest submission for the open question.

    Returns whether the submission was fully correct.
    """
    question = game.current_question()
    name = game.find_player(player_id).name
    correct = set(answer_ids) == question.correct_answer_ids()

    result = game.question_results[game.at_question - 1]
    if correct and name not in result.players_correct:
        result.players_correct.append(name)
    elif not correct and name in result.players_correct:
        result.players_correct.remove(name)

    game.answer_times[player_id] = now - game.question_open_time
    return correct
