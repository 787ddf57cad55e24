from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..deps import get_planner
from ..errors import PlanningError
from ..planning.allocator import QuizPlanner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/planning", tags=["planning"])


class PlanQuizRequest(BaseModel):
	total_points: int = Field(ge=1)
	question_types: List[str] = Field(min_length=1)
	level: str = "A1"


@router.post("/quiz")
def plan_quiz(req: PlanQuizRequest, planner: QuizPlanner = Depends(get_planner)):
	try:
		plan = planner.plan(req.total_points, req.question_types, req.level.upper())
	except PlanningError as e:
		detail = {"error": str(e)}
		if e.validation is not None:
			detail["details"] = e.validation
		raise HTTPException(status_code=400, detail=detail)
	return {
		"success": True,
		"plan": plan.to_dict(),
		"validation": plan.validation,
		"point_guidelines": planner.point_guidelines(plan.level),
	}
