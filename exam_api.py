"""
Exam Question Service — Main Application
FastAPI application that generates unique MCQ batches for exam sessions,
falling back to a curated library and an offline bank when generation is unavailable.
"""

from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from generation.orchestrator import GenerationOrchestrator
from generation.provider_client import build_providers
from generation.settings import get_settings
from routers import generation
from services.mode_arbiter import build_arbiter



@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build providers + orchestrator. Shutdown: close provider connections."""
    settings = get_settings()
    providers = build_providers(settings)
    app.state.orchestrator = GenerationOrchestrator(providers, settings)
    app.state.arbiter = build_arbiter(app.state.orchestrator)
    yield
    for provider in providers:
        await provider.aclose()


app = FastAPI(
    title="Exam Question Service",
    description="Concurrent MCQ generation with deduplication, curated fallback and offline selection",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Error bodies: {"error": message} ──────────────────────────────────────────

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(generation.router)


@app.get("/")
def root():
    return {
        "name": "Exam Question Service",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "questions": "/generation/questions",
            "offline": "/generation/offline",
            "prepare": "/generation/prepare",
            "subjects": "/generation/subjects",
        },
    }


@app.get("/health")
def health_check(request: Request):
    orchestrator = getattr(request.app.state, "orchestrator", None)
    providers = [p.name for p in orchestrator.providers] if orchestrator else []
    return {
        "status": "healthy",
        "service": "exam-question-service",
        "providers": providers,
        "fallback_library": bool(orchestrator and orchestrator.fallback.has_library()),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
