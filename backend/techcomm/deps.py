from __future__ import annotations
from fastapi import HTTPException, Request

from .trainer import Trainer


def get_trainer(request: Request) -> Trainer:
	trainer = getattr(request.app.state, "trainer", None)
	if trainer is None:
		raise HTTPException(status_code=503, detail="trainer is not initialised")
	return trainer
