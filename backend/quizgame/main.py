import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Optional

from .db import settings
from .errors import GameError
from .game import controller
from .models import QuestionResult, build_quiz_snapshot
from .schemas import (
    ActionIn,
    AnswerIn,
    GameIdOut,
    GameListOut,
    GameResultsOut,
    GameStatusOut,
    JoinIn,
    PlayerIdOut,
    PlayerQuestionOut,
    PlayerStatusOut,
    StartGameIn,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    try:
        yield
    finally:
        controller.timers.cancel_all()
        logger.info("Stop Server")


app = FastAPI(title="Quiz Game API", lifespan=lifespan)

origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
origin_regex = settings.CORS_ORIGIN_REGEX or None

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_origin_regex=origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return JSONResponse(status_code=400, content={"error": exc.code, "message": exc.message})


def require_admin(x_admin_key: Optional[str] = Header(default=None)):
    if x_admin_key != settings.ADMIN_KEY:
        raise HTTPException(status_code=401, detail="Invalid admin key")


@app.post("/api/admin/quiz/{quiz_id}/game/start", response_model=GameIdOut)
async def start_game(quiz_id: int, payload: StartGameIn, _: None = Depends(require_admin)):
    quiz = build_quiz_snapshot(
        quiz_id,
        payload.quiz.name,
        payload.quiz.questions,
        description=payload.quiz.description,
        thumbnail_url=payload.quiz.thumbnail_url,
    )
    game_id = await controller.start_game(quiz, payload.auto_start_num)
    return GameIdOut(game_id=game_id)


@app.get("/api/admin/quiz/{quiz_id}/games", response_model=GameListOut)
async def list_games(quiz_id: int, _: None = Depends(require_admin)):
    return await controller.list_games(quiz_id)


@app.get("/api/admin/quiz/{quiz_id}/game/{game_id}", response_model=GameStatusOut)
async def game_status(quiz_id: int, game_id: int, _: None = Depends(require_admin)):
    return await controller.game_status(game_id, quiz_id)


@app.put("/api/admin/quiz/{quiz_id}/game/{game_id}")
async def change_game_state(quiz_id: int, game_id: int, payload: ActionIn, _: None = Depends(require_admin)):
    await controller.apply_action(game_id, payload.action, quiz_id)
    return {}


@app.get("/api/admin/quiz/{quiz_id}/game/{game_id}/results", response_model=GameResultsOut)
async def game_results(quiz_id: int, game_id: int, _: None = Depends(require_admin)):
    return await controller.game_results(game_id, quiz_id)


@app.delete("/api/admin/clear")
async def clear(_: None = Depends(require_admin)):
    await controller.reset()
    return {}


@app.post("/api/player/join", response_model=PlayerIdOut)
async def join(payload: JoinIn):
    player_id = await controller.join(payload.game_id, payload.player_name)
    return PlayerIdOut(player_id=player_id)


@app.get("/api/player/{player_id}", response_model=PlayerStatusOut)
async def player_status(player_id: int):
    return await controller.player_status(player_id)


@app.get("/api/player/{player_id}/question/{position}", response_model=PlayerQuestionOut)
async def player_question(player_id: int, position: int):
    return await controller.current_question(player_id, position)


@app.put("/api/player/{player_id}/question/{position}/answer")
async def submit_answer(player_id: int, position: int, payload: AnswerIn):
    await controller.submit_answer(player_id, position, payload.answer_ids)
    return {}


@app.get("/api/player/{player_id}/question/{position}/results", response_model=QuestionResult)
async def player_question_results(player_id: int, position: int):
    return await controller.question_result(player_id, position)


@app.get("/api/player/{player_id}/results", response_model=GameResultsOut)
async def player_final_results(player_id: int):
    return await controller.final_results(player_id)
