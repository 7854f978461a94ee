import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from learnpath.config import get_settings
from learnpath.core.firebase import initialize_firebase
from learnpath.core.logging import _initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and Firebase once uvicorn has started."""
  settings = get_settings()
  logger = logging.getLogger("learnpath.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except RuntimeError:
    # The service still runs with stdout logging when the log dir is unwritable.
    logger.warning("Initial logging setup failed; continuing with default handlers.", exc_info=True)

  initialize_firebase()
  if not settings.gemini_api_key:
    logger.warning("GEMINI_API_KEY is not set; generation requests will fail with a credentials error.")

  yield
