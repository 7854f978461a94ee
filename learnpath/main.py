from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from learnpath import __version__
from learnpath.ai.errors import ModelError, ParseError, SchemaValidationError
from learnpath.api.routes import lessons, quizzes, roadmaps
from learnpath.config import get_settings
from learnpath.core.exceptions import ai_error_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from learnpath.core.lifespan import lifespan
from learnpath.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="LearnPath Engine", version=__version__, lifespan=lifespan, docs_url="/docs" if settings.debug else None, redoc_url=None)

app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_credentials=True, allow_methods=["GET", "POST", "PATCH", "OPTIONS"], allow_headers=["content-type", "authorization"], expose_headers=["content-length", "x-request-id"])

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
for ai_error in (ModelError, ParseError, SchemaValidationError):
  app.add_exception_handler(ai_error, ai_error_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(lessons.router, prefix="/v1/lessons", tags=["lessons"])
app.include_router(roadmaps.router, prefix="/v1/roadmaps", tags=["roadmaps"])
app.include_router(quizzes.router, prefix="/v1/quizzes", tags=["quizzes"])
