from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..deps import get_trainer
from ..errors import SessionStateError
from ..sessions import ReadingSession
from ..trainer import Trainer


router = APIRouter(prefix="/read", tags=["reading_module"])


class SessionRequest(BaseModel):
    session_id: str


class SelectRequest(BaseModel):
    session_id: str
    question_index: int = Field(ge=0)
    option_index: int = Field(ge=0)


def _active_session(trainer: Trainer, session_id: str) -> ReadingSession:
    session = trainer.session
    if not isinstance(session, ReadingSession) or session.session_id != session_id:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/session/start")
async def start_session(trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    session = trainer.start_reading()
    await session.load()
    return session.snapshot()


@router.get("/session/state")
async def get_state(session_id: str, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    return _active_session(trainer, session_id).snapshot()


@router.post("/session/select")
async def select_option(req: SelectRequest, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    session = _active_session(trainer, req.session_id)
    try:
        session.select(req.question_index, req.option_index)
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


@router.post("/session/submit")
async def submit_answers(req: SessionRequest, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    session = _active_session(trainer, req.session_id)
    try:
        session.submit()
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    data = session.snapshot()
    data["reviewSeconds"] = session.review_delay
    return data


@router.post("/session/retry")
async def retry_session(req: SessionRequest, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    session = _active_session(trainer, req.session_id)
    try:
        await session.load()
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.snapshot()


@router.post("/session/exit")
async def exit_session(req: SessionRequest, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    _active_session(trainer, req.session_id).exit()
    return {"mode": trainer.mode.value}
