from __future__ import annotations
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..deps import get_holistic_service
from ..errors import DuplicateAttempt, JudgeUnavailable, PersistenceError, StoreUnavailable
from ..scoring.holistic import HolisticResult, HolisticScoringService


router = APIRouter(prefix="/holistic", tags=["holistic"])


class WritingRequest(BaseModel):
	user_id: str = Field(min_length=1)
	task_id: str = Field(min_length=1)
	response_text: str = Field(min_length=10)
	attempt_number: int = Field(default=1, ge=1)
	prompt: Optional[str] = None
	required_points: List[str] = Field(default_factory=list)
	format_type: Optional[str] = None
	word_count_min: Optional[int] = Field(default=None, ge=0)
	word_count_max: Optional[int] = Field(default=None, ge=1)
	language: str = "English"
	course_name: Optional[str] = None
	level: Optional[str] = None
	scoring_weights: Optional[Dict[str, Optional[float]]] = None


class ConversationTurn(BaseModel):
	role: Literal["user", "assistant"]
	content: str


class SpeakingRequest(BaseModel):
	user_id: str = Field(min_length=1)
	task_id: str = Field(min_length=1)
	conversation_history: List[ConversationTurn] = Field(min_length=1)
	attempt_number: int = Field(default=1, ge=1)
	task_instructions: Optional[str] = None
	required_points: List[str] = Field(default_factory=list)
	language: str = "English"
	course_name: Optional[str] = None
	level: Optional[str] = None
	scoring_weights: Optional[Dict[str, Optional[float]]] = None


async def _run(coro) -> HolisticResult:
	try:
		return await coro
	except DuplicateAttempt as e:
		raise HTTPException(status_code=409, detail=str(e))
	except JudgeUnavailable as e:
		raise HTTPException(status_code=502, detail=f"AI evaluation failed: {e}")
	except (StoreUnavailable, PersistenceError) as e:
		raise HTTPException(status_code=500, detail=f"Failed to save evaluation: {e}")


@router.post("/writing")
async def score_writing(req: WritingRequest, service: HolisticScoringService = Depends(get_holistic_service)):
	result = await _run(service.score_writing(**req.model_dump()))
	return result.to_dict()


@router.post("/speaking")
async def score_speaking(req: SpeakingRequest, service: HolisticScoringService = Depends(get_holistic_service)):
	result = await _run(service.score_speaking(**req.model_dump()))
	return result.to_dict()
