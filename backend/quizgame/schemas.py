from pydantic import BaseModel, Field
from typing import List
from .models import GameState, QuestionIn, QuestionResult, QuizSnapshot, RankingEntry


class QuizIn(BaseModel):
    name: str
    description: str = ""
    thumbnail_url: str = ""
    questions: List[QuestionIn] = Field(default_factory=list)


class StartGameIn(BaseModel):
    auto_start_num: int = 0
    quiz: QuizIn


class ActionIn(BaseModel):
    action: str


class JoinIn(BaseModel):
    game_id: int
    player_name: str = ""


class AnswerIn(BaseModel):
    answer_ids: List[int]


class GameIdOut(BaseModel):
    game_id: int


class PlayerIdOut(BaseModel):
    player_id: int


class GameListOut(BaseModel):
    active_games: List[int]
    inactive_games: List[int]


class GameStatusOut(BaseModel):
    state: GameState
    at_question: int
    players: List[str]
    metadata: QuizSnapshot


class PlayerStatusOut(BaseModel):
    state: GameState
    num_questions: int
    at_question: int


class AnswerOptionOut(BaseModel):
    answer_id: int
    answer: str
    colour: str


class PlayerQuestionOut(BaseModel):
    question_id: int
    question: str
    time_limit: int
    thumbnail_url: str
    points: int
    answer_options: List[AnswerOptionOut]


class GameResultsOut(BaseModel):
    ranking: List[RankingEntry]
    question_results: List[QuestionResult]
