from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, computed_field

from .utils import now_ts, random_colour


class GameState(str, Enum):
    LOBBY = "LOBBY"
    QUESTION_COUNTDOWN = "QUESTION_COUNTDOWN"
    QUESTION_OPEN = "QUESTION_OPEN"
    QUESTION_CLOSE = "QUESTION_CLOSE"
    ANSWER_SHOW = "ANSWER_SHOW"
    FINAL_RESULTS = "FINAL_RESULTS"
    END = "END"


class GameAction(str, Enum):
    NEXT_QUESTION = "NEXT_QUESTION"
    SKIP_COUNTDOWN = "SKIP_COUNTDOWN"
    GO_TO_ANSWER = "GO_TO_ANSWER"
    GO_TO_FINAL_RESULTS = "GO_TO_FINAL_RESULTS"
    END = "END"


class AnswerOption(BaseModel):
    answer_id: int
    answer: str
    colour: str
    correct: bool


class Question(BaseModel):
    question_id: int
    question: str
    time_limit: int  # seconds
    points: int
    answer_options: List[AnswerOption]
    thumbnail_url: str = ""

    def correct_answer_ids(self) -> set[int]:
        return {o.answer_id for o in self.answer_options if o.correct}


class QuizSnapshot(BaseModel):
    quiz_id: int
    name: str
    description: str = ""
    thumbnail_url: str = ""
    time_created: float = Field(default_factory=now_ts)
    time_last_edited: float = Field(default_factory=now_ts)
    questions: List[Question] = Field(default_factory=list)

    @computed_field
    @property
    def num_questions(self) -> int:
        return len(self.questions)

    @computed_field
    @property
    def time_limit(self) -> int:
        return sum(q.time_limit for q in self.questions)


class Player(BaseModel):
    player_id: int
    name: str
    score: int = 0


class QuestionResult(BaseModel):
    question_id: int
    players_correct: List[str] = Field(default_factory=list)
    average_answer_time: int = 0
    percent_correct: int = 0


class RankingEntry(BaseModel):
    name: str
    score: int = 0


# States: LOBBY -> QUESTION_COUNTDOWN -> QUESTION_OPEN -> QUESTION_CLOSE
#         -> ANSWER_SHOW -> (QUESTION_COUNTDOWN ...) -> FINAL_RESULTS -> END
class Game(BaseModel):
    id: int
    quiz: QuizSnapshot
    state: GameState = GameState.LOBBY
    at_question: int = 0
    question_open_time: Optional[int] = None
    auto_start_num: int = 0
    players: List[Player] = Field(default_factory=list)
    # player_id -> seconds taken by the latest submission for the open question
    answer_times: Dict[int, int] = Field(default_factory=dict)
    question_results: List[QuestionResult] = Field(default_factory=list)
    ranking: List[RankingEntry] = Field(default_factory=list)

    @property
    def num_questions(self) -> int:
        return self.quiz.num_questions

    def current_question(self) -> Question:
        return self.quiz.questions[self.at_question - 1]

    def find_player(self, player_id: int) -> Optional[Player]:
        return next((p for p in self.players if p.player_id == player_id), None)

    def find_player_by_name(self, name: str) -> Optional[Player]:
        return next((p for p in self.players if p.name == name), None)


class Snapshot(BaseModel):
    """Everything the store persists: all games plus id counters."""

    games: List[Game] = Field(default_factory=list)
    next_player_id: int = 1

    def find_game(self, game_id: int) -> Optional[Game]:
        return next((g for g in self.games if g.id == game_id), None)

    def games_for_quiz(self, quiz_id: int) -> List[Game]:
        return [g for g in self.games if g.quiz.quiz_id == quiz_id]

    def next_game_id(self) -> int:
        return max((g.id for g in self.games), default=0) + 1

    def allocate_player_id(self) -> int:
        pid = self.next_player_id
        self.next_player_id += 1
        return pid


class AnswerOptionIn(BaseModel):
    answer: str
    correct: bool


class QuestionIn(BaseModel):
    question: str
    time_limit: int
    points: int
    answer_options: List[AnswerOptionIn]
    thumbnail_url: str = ""


def build_quiz_snapshot(
    quiz_id: int,
    name: str,
    questions: List[QuestionIn],
    description: str = "",
    thumbnail_url: str = "",
) -> QuizSnapshot:
    """Freeze authored questions into a snapshot, numbering ids in creation order
    and picking a display colour for every answer option."""
    built: List[Question] = []
    answer_id = 1
    for question_id, q in enumerate(questions, start=1):
        options = []
        for opt in q.answer_options:
            options.append(
                AnswerOption(
                    answer_id=answer_id,
                    answer=opt.answer,
                    colour=random_colour(),
                    correct=opt.correct,
                )
            )
            answer_id += 1
        built.append(
            Question(
                question_id=question_id,
                question=q.question,
                time_limit=q.time_limit,
                points=q.points,
                answer_options=options,
                thumbnail_url=q.thumbnail_url,
            )
        )
    return QuizSnapshot(
        quiz_id=quiz_id,
        name=name,
        description=description,
        thumbnail_url=thumbnail_url,
        questions=built,
    )
