from __future__ import annotations


class GameError(ValueError):
    """Client-input or state-precondition failure raised by the engine.

    ``code`` is the stable token the HTTP layer reports back to clients.
    """

    code = "GAME_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidGameId(GameError):
    code = "INVALID_GAME_ID"


class InvalidPlayerId(GameError):
    code = "INVALID_PLAYER_ID"


class InvalidPlayerName(GameError):
    code = "INVALID_PLAYER_NAME"


class InvalidAction(GameError):
    code = "INVALID_ACTION"


class IncompatibleState(GameError):
    code = "INCOMPATIBLE_GAME_STATE"


class InvalidPosition(GameError):
    code = "INVALID_POSITION"


class InvalidAnswerIds(GameError):
    code = "INVALID_ANSWER_IDS"


class TooManyActiveGames(GameError):
    code = "MAX_ACTIVE_GAMES"


class EmptyQuiz(GameError):
    code = "QUIZ_IS_EMPTY"


class InvalidAutoStart(GameError):
    code = "INVALID_AUTO_START"
