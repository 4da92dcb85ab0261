from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI

from .db import SessionLocal, ensure_schema
from .gemini_client import GeminiClient, GeminiError
from .generation import ExerciseGenerator
from .progress_store import ProgressStore
from .settings import settings
from .storage import SqlKeyValueStore
from .trainer import Trainer
from .routers import health, dashboard
from .routers import read
from .routers import write

logger = logging.getLogger(__name__)


class _UnconfiguredClient:
	# Lets the app start without a key; every exercise then fails with a readable message
	async def generate(self, prompt: str, **kwargs: Any) -> str:
		raise GeminiError("GEMINI_API_KEY is not configured")

	async def aclose(self) -> None:
		pass


def configure_logging() -> None:
	logging.basicConfig(
		level=settings.log_level.upper(),
		format="[%(levelname)s] %(asctime)s - %(name)s - %(message)s",
	)
	logging.getLogger("httpx").setLevel(logging.WARNING)


def build_trainer() -> Trainer:
	ensure_schema()
	store = ProgressStore(SqlKeyValueStore(SessionLocal))
	if settings.gemini_api_key:
		client: Any = GeminiClient()
	else:
		logger.error("GEMINI_API_KEY not found in environment; exercises cannot be generated")
		client = _UnconfiguredClient()
	return Trainer(store, ExerciseGenerator(client))


def create_app(trainer: Optional[Trainer] = None) -> FastAPI:
	configure_logging()
	app = FastAPI(title="TechComm Trainer API")
	app.include_router(health.router)
	app.include_router(dashboard.router)
	app.include_router(read.router)
	app.include_router(write.router)
	if trainer is not None:
		app.state.trainer = trainer

	@app.get("/info")
	def root() -> Dict[str, Any]:
		return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key), "model": settings.gemini_model}

	@app.on_event("startup")
	async def startup_event():
		if getattr(app.state, "trainer", None) is None:
			app.state.trainer = build_trainer()
		logger.info("Trainer ready at level %d", app.state.trainer.store.get_progress().level)

	@app.on_event("shutdown")
	async def shutdown_event():
		current: Optional[Trainer] = getattr(app.state, "trainer", None)
		if current is None:
			return
		if current.session is not None:
			current.session.teardown()
		aclose = getattr(current.generator.client, "aclose", None)
		if aclose is not None:
			await aclose()

	return app


app = create_app()
