import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the API under uvicorn."""
  port = os.getenv("PORT", "8002")
  logger.info("Starting LearnPath engine on port %s...", port)
  # Replace the current process so uvicorn receives SIGTERM directly.
  args = ["uvicorn", "learnpath.main:app", "--host", "0.0.0.0", "--port", port, "--no-server-header"]
  os.execvp("uvicorn", args)


if __name__ == "__main__":
  main()
