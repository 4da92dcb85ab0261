from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Any, Dict

from ..deps import get_trainer
from ..errors import SessionStateError
from ..sessions import WritingSession
from ..trainer import Trainer


router = APIRouter(prefix="/write", tags=["writing"])

# Longest draft sent for evaluation
MAX_DRAFT_CHARS = 8000


class SessionRequest(BaseModel):
	session_id: str


class DraftRequest(BaseModel):
	session_id: str
	text: str


def _active_session(trainer: Trainer, session_id: str) -> WritingSession:
	session = trainer.session
	if not isinstance(session, WritingSession) or session.session_id != session_id:
		raise HTTPException(status_code=404, detail="Session not found")
	return session


@router.post("/session/start")
async def start_session(trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
	session = trainer.start_writing()
	await session.load()
	return session.snapshot()


@router.get("/session/state")
async def get_state(session_id: str, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
	return _active_session(trainer, session_id).snapshot()


@router.put("/session/draft")
async def update_draft(req: DraftRequest, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
	session = _active_session(trainer, req.session_id)
	if len(req.text) > MAX_DRAFT_CHARS:
		raise HTTPException(status_code=400, detail=f"draft must be at most {MAX_DRAFT_CHARS} characters")
	try:
		session.update_draft(req.text)
	except SessionStateError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return session.snapshot()


@router.post("/session/submit")
async def submit_draft(req: SessionRequest, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
	session = _active_session(trainer, req.session_id)
	try:
		await session.submit()
	except SessionStateError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return session.snapshot()


@router.post("/session/finalize")
async def finalize(req: SessionRequest, trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
	session = _active_session(trainer, req.session_id)
	try:
		score = session.finalize()
	except SessionStateError as e:
		raise HTTPException(status_code=400, detail=str(e))
	return {"score": score, "mode": trainer.mode.value, "dashboard": trainer.dashboard()}


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
