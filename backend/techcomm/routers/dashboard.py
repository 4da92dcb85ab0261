from __future__ import annotations
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..deps import get_trainer
from ..trainer import Trainer

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def dashboard(trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    return trainer.dashboard()


@router.get("/progress")
async def progress(trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    return trainer.store.get_progress().model_dump(mode="json", by_alias=True)


@router.post("/dashboard/return")
async def return_to_dashboard(trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    trainer.return_to_dashboard()
    return trainer.dashboard()


@router.get("/notification")
async def current_notification(trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    note = trainer.notifications.current()
    if note is None:
        return {"message": None}
    return {"message": note.message, "expiresIn": max(0.0, note.expires_at - trainer.notifications.clock())}


@router.delete("/notification")
async def dismiss_notification(trainer: Trainer = Depends(get_trainer)) -> Dict[str, Any]:
    trainer.notifications.dismiss()
    return {"message": None}
