import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from mnemos.application.config import resolve_config
from mnemos.application.factory import build_service
from mnemos.application.scheduling.sm2 import schedule
from mnemos.application.scheduling.smart import schedule_smart
from mnemos.consts import VERSION
from mnemos.domain.adaptive.models import ScheduleFactors
from mnemos.domain.cards.models import CardProgress
from mnemos.infrastructure.adapters.snapshot import (
    ProgressModel,
    SnapshotError,
    SnapshotModel,
    to_domain,
)

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mnemos.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Mnemos Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Mnemos Server shutting down...")


app = FastAPI(
    title="Mnemos Server",
    description="Adaptive spaced-repetition engine over learner snapshots.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


class PreviewRequest(BaseModel):
    progress: ProgressModel
    quality: Any = None  # malformed values schedule as 3
    now: datetime | None = None
    # With a snapshot, smart-scheduling factors are applied as well.
    snapshot: SnapshotModel | None = None


@app.post("/schedule/preview")
async def schedule_preview(req: PreviewRequest):
    """What-if SM-2 update for one progress record. Nothing is stored."""
    config = resolve_config()
    now = req.now or datetime.now()
    progress = CardProgress(
        **req.progress.model_dump(exclude={"next_review_date"}),
        next_review_date=req.progress.next_review_date or now.date(),
    )

    if req.snapshot is None:
        updated = schedule(progress, req.quality, today=now.date(), settings=config.scheduling)
        factors = ScheduleFactors(base_interval=updated.interval)
        return jsonable_encoder({"progress": updated, "factors": factors})

    try:
        learner = to_domain(req.snapshot)
    except SnapshotError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None

    card = next((c for c in learner.flashcards if c.id == progress.card_id), None)
    if card is None:
        raise HTTPException(status_code=404, detail=f"Unknown card: {progress.card_id}")

    service = build_service(learner, config)
    context = await service.schedule_context(now)
    updated, factors = schedule_smart(
        card, progress, req.quality, context, today=now.date(), settings=config.scheduling
    )
    return jsonable_encoder({"progress": updated, "factors": factors})


class AnalyzeRequest(BaseModel):
    snapshot: SnapshotModel
    perfect_streak: int | None = Field(default=None, ge=0)


@app.post("/analyze")
async def analyze(req: AnalyzeRequest):
    try:
        learner = to_domain(req.snapshot)
    except SnapshotError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None

    try:
        service = build_service(learner, resolve_config())
        now = learner.now or datetime.now()
        streak = learner.perfect_streak if req.perfect_streak is None else req.perfect_streak
        await service.adjust_difficulty(streak, now=now)
        report = await service.analyze(now=now)
        return jsonable_encoder(report)
    except Exception as e:
        logger.error(f"Analysis failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


class PlanRequest(BaseModel):
    snapshot: SnapshotModel
    target_cards: int | None = Field(default=None, ge=0)
    seed: int | None = None


@app.post("/plan")
async def plan(req: PlanRequest):
    try:
        learner = to_domain(req.snapshot)
    except SnapshotError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None

    try:
        service = build_service(learner, resolve_config())
        now = learner.now or datetime.now()
        await service.adjust_difficulty(learner.perfect_streak, now=now)
        result = await service.plan(
            current_streak=learner.current_streak,
            last_study_date=learner.last_study_date,
            daily_goal=learner.daily_goal,
            target_cards=req.target_cards,
            seed=req.seed,
            now=now,
        )
        return jsonable_encoder(result)
    except Exception as e:
        logger.error(f"Planning failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e

