from __future__ import annotations
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..deps import get_scoring_service
from ..errors import PersistenceError, QuestionNotFound, StoreUnavailable
from ..scoring.orchestrator import ScoringService, SubmittedAnswer
from ..scoring.reading import score_reading_test

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scoring", tags=["scoring"])


class ScoreQuestionRequest(BaseModel):
	user_id: str = Field(min_length=1)
	task_id: str = Field(min_length=1)
	question_id: str = Field(min_length=1)
	user_answer: Any = None
	attempt_number: int = Field(default=1, ge=1)


class AnswerItem(BaseModel):
	question_id: str = Field(min_length=1)
	user_answer: Any = None


class ScoreBatchRequest(BaseModel):
	user_id: str = Field(min_length=1)
	task_id: str = Field(min_length=1)
	attempt_number: int = Field(default=1, ge=1)
	answers: List[AnswerItem]


class ReadingTestRequest(BaseModel):
	data: Dict[str, Any]
	user_answers: Dict[str, Any] = Field(default_factory=dict)


@router.post("/question")
async def score_question(req: ScoreQuestionRequest, service: ScoringService = Depends(get_scoring_service)):
	try:
		scored = await service.score_single(
			user_id=req.user_id,
			task_id=req.task_id,
			question_id=req.question_id,
			user_answer=req.user_answer,
			attempt_number=req.attempt_number,
		)
	except QuestionNotFound as e:
		raise HTTPException(status_code=404, detail=str(e))
	except (StoreUnavailable, PersistenceError) as e:
		raise HTTPException(status_code=500, detail=f"Failed to score answer: {e}")
	return scored.to_dict()


@router.post("/batch")
async def score_batch(req: ScoreBatchRequest, service: ScoringService = Depends(get_scoring_service)):
	answers = [SubmittedAnswer(a.question_id, a.user_answer) for a in req.answers]
	try:
		outcome = await service.score_batch(
			user_id=req.user_id,
			task_id=req.task_id,
			answers=answers,
			attempt_number=req.attempt_number,
		)
	except StoreUnavailable as e:
		raise HTTPException(status_code=500, detail=f"Failed to fetch questions: {e}")
	return outcome.to_dict()


@router.post("/reading-test")
def score_reading(req: ReadingTestRequest):
	return score_reading_test(req.data, req.user_answers).to_dict()
