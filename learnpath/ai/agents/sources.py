"""Source discovery agent implementation."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from learnpath.ai.agents.base import BaseAgent
from learnpath.ai.agents.prompts import render_search_sources_prompt
from learnpath.ai.pipeline.contracts import GenerationRequest, SourceList

logger = logging.getLogger(__name__)

MAX_SOURCES = 15


def domain_from_url(url: str) -> str:
  """Return the host of ``url`` without a leading ``www.``."""
  host = urlparse(url.strip()).netloc.lower()
  if host.startswith("www."):
    host = host[4:]
  return host


class SourceDiscoveryAgent(BaseAgent):
  """Find reputable learning sources for a topic and phase."""

  name = "SourceDiscovery"

  async def run(self, topic: str, phase: str) -> dict[str, Any]:
    request = GenerationRequest(prompt=render_search_sources_prompt(topic, phase))
    payload = await self._generate_json(request, SourceList)

    sources: list[dict[str, Any]] = []
    seen: set[str] = set()
    for item in payload.data.get("sources", []):
      url = item["url"].strip()
      if not url or url in seen:
        continue
      seen.add(url)
      # Domain falls back to the URL host when the model left it blank.
      if not item.get("domain"):
        item["domain"] = domain_from_url(url)
      sources.append({**item, "url": url})

    if len(sources) > MAX_SOURCES:
      logger.info("Trimming %d discovered sources to %d", len(sources), MAX_SOURCES)
      sources = sources[:MAX_SOURCES]

    logger.info("Discovered %d sources topic=%r phase=%r", len(sources), topic, phase)
    return {"sources": sources}
