"""Roadmap generation routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from learnpath.api.deps import get_roadmap_service
from learnpath.api.models import CreateRoadmapRequest, RoadmapResponse
from learnpath.core.security import get_current_user_id
from learnpath.services.roadmaps import RoadmapService

router = APIRouter()


@router.post("", response_model=RoadmapResponse, status_code=status.HTTP_201_CREATED)
async def create_roadmap(
  request: CreateRoadmapRequest,
  user_id: str = Depends(get_current_user_id),  # noqa: B008
  service: RoadmapService = Depends(get_roadmap_service),  # noqa: B008
) -> RoadmapResponse:
  """Generate a phased roadmap for a topic and store it on the topic document."""
  roadmap = await service.create_roadmap(
    user_id=user_id,
    topic_id=request.topic_id,
    topic=request.topic,
    duration=request.duration,
    level=request.level,
    goal=request.goal,
    target_audience=request.target_audience,
  )
  return RoadmapResponse(**roadmap)
