import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Routers
from routers.health import router as health_router
from routers.score import router as score_router
from routers.sessions import router as sessions_router
from services.errors import EngineError, ProblemGenerationFailed

logger = logging.getLogger("wordmath")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="WordMath – Problem Engine API")

# Allow calls from the Next.js dev server plus any configured front-ends
_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
_origins += [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EngineError)
def engine_error_handler(request: Request, exc: EngineError):
    body = {"ok": False, "error": exc.kind, "detail": str(exc)}
    if isinstance(exc, ProblemGenerationFailed):
        body["reason"] = exc.reason
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "invalid request") if errors else "invalid request"
    return JSONResponse(
        status_code=400, content={"ok": False, "error": "InvalidRequest", "detail": detail}
    )


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(sessions_router)  # /sessions, /sessions/recent, /sessions/{id}/submit
app.include_router(score_router)  # /score/{account_id}
app.include_router(health_router)  # /health/...
