from __future__ import annotations
from fastapi import Depends
from sqlalchemy.orm import Session

from .db import get_db
from .judge import AIJudge, GeminiJudge
from .planning.allocator import QuizPlanner
from .scoring.holistic import HolisticScoringService
from .scoring.orchestrator import ScoringService
from .scoring.subjective import SubjectiveEvaluator
from .settings import settings
from .stores import SqlQuestionStore, SqlScoreStore


def get_question_store(db: Session = Depends(get_db)) -> SqlQuestionStore:
	return SqlQuestionStore(db)


def get_score_store(db: Session = Depends(get_db)) -> SqlScoreStore:
	return SqlScoreStore(db)


def get_judge() -> AIJudge:
	return GeminiJudge(settings)


def get_subjective_evaluator(judge: AIJudge = Depends(get_judge)) -> SubjectiveEvaluator:
	return SubjectiveEvaluator(judge, settings)


def get_scoring_service(
	questions: SqlQuestionStore = Depends(get_question_store),
	scores: SqlScoreStore = Depends(get_score_store),
	subjective: SubjectiveEvaluator = Depends(get_subjective_evaluator),
) -> ScoringService:
	return ScoringService(questions, scores, subjective)


def get_holistic_service(
	scores: SqlScoreStore = Depends(get_score_store),
	judge: AIJudge = Depends(get_judge),
) -> HolisticScoringService:
	return HolisticScoringService(scores, judge, settings)


_planner = QuizPlanner()


def get_planner() -> QuizPlanner:
	return _planner
