"""
Generation Router — /generation

Endpoints:
  POST /generation/questions  — generate N unique questions (fallback-backed)
  POST /generation/offline    — select questions from the static offline bank
  POST /generation/prepare    — online or offline, decided by the Mode Arbiter
  GET  /generation/subjects   — subjects covered by the fallback library and bank
  GET  /generation/served/{session_id} — question ids already served to a session
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from generation.errors import BatchValidationError, ExhaustionError
from generation.orchestrator import GenerationOrchestrator
from generation.schemas import BatchRequest, GeneratedBatch, OfflineRequest, OfflineSelection
from question_bank.bank import load_bank
from question_bank.selector import select
from services.mode_arbiter import ModeArbiter
from services.usage_tracker import get_served_questions, record_served_questions

router = APIRouter(prefix="/generation", tags=["generation"])

# Use Python's standard logger so output appears in the uvicorn console
log = logging.getLogger("generation.pipeline")
logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")


# ─── Dependencies ──────────────────────────────────────────────────────────────

def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


def get_arbiter(request: Request) -> ModeArbiter:
    return request.app.state.arbiter


def _track_usage(background_tasks: BackgroundTasks, session_id, question_ids) -> None:
    if session_id:
        background_tasks.add_task(record_served_questions, session_id, question_ids)


# ─── Online generation ─────────────────────────────────────────────────────────

@router.post("/questions", response_model=GeneratedBatch)
async def generate_questions(
    request: BatchRequest,
    background_tasks: BackgroundTasks,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """
    **Generate a batch of exactly `count` unique MCQs.**

    Slots that generation cannot fill (providers down, duplicates, malformed
    output) are filled from the curated library; `warning` says how many.
    `source` is `local-bank` only when every question came from the library.
    """
    log.info("=" * 60)
    log.info(f"[QUESTIONS] subject={request.subject}, count={request.count}, objective={request.objective!r}")

    try:
        batch = await orchestrator.generate(
            request.subject, request.count, request.objective, request.difficulty
        )
    except BatchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExhaustionError as e:
        log.error(f"[QUESTIONS] Exhausted: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        log.error(f"[QUESTIONS] Unexpected error: {e}")
        raise HTTPException(status_code=500, detail=f"Generation error: {e}")

    _track_usage(background_tasks, request.session_id, [q.id for q in batch.questions])
    return batch


# ─── Offline selection ─────────────────────────────────────────────────────────

@router.post("/offline", response_model=OfflineSelection)
def select_offline(request: OfflineRequest):
    """Pick questions from the static bank; never calls a provider."""
    try:
        return select(subject=request.subject, objective=request.objective, count=request.count)
    except BatchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ─── Mode-arbitrated preparation ───────────────────────────────────────────────

@router.post("/prepare")
async def prepare_questions(
    request: BatchRequest,
    background_tasks: BackgroundTasks,
    arbiter: ModeArbiter = Depends(get_arbiter),
) -> Dict[str, Any]:
    """
    **Prepare questions for an exam session.**

    Online (probe succeeds and a provider is configured) → generation pipeline.
    Otherwise → offline bank. The response carries `mode: online|offline`.
    """
    try:
        result = await arbiter.prepare(
            request.subject, request.count, request.objective, request.difficulty
        )
    except BatchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExhaustionError as e:
        log.error(f"[PREPARE] Exhausted: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        log.error(f"[PREPARE] Unexpected error: {e}")
        raise HTTPException(status_code=500, detail=f"Preparation error: {e}")

    _track_usage(background_tasks, request.session_id, [q["id"] for q in result["questions"]])
    return result


# ─── Subjects ──────────────────────────────────────────────────────────────────

@router.get("/subjects")
def list_subjects(orchestrator: GenerationOrchestrator = Depends(get_orchestrator)):
    """Per-subject question counts in the fallback library and the offline bank."""
    return {
        "fallback_library": orchestrator.fallback.subjects(),
        "offline_bank": load_bank().subjects(),
    }


# ─── Served questions ──────────────────────────────────────────────────────────

@router.get("/served/{session_id}")
def served_questions(session_id: str):
    """Question ids recorded for an exam session, oldest first."""
    ids = get_served_questions(session_id)
    return {"session_id": session_id, "count": len(ids), "question_ids": ids}
