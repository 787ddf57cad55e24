"""
AI judge collaborator.

The judge receives a structured request describing one free-text answer (or one
whole writing/speaking performance), asks the language model for a JSON verdict
and validates it with pydantic. Every failure mode, from a missing API key to a
malformed model reply, surfaces as :class:`~grader.errors.JudgeError` so that
callers deal with exactly one exception type.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field, ValidationError

from .errors import JudgeError
from .gemini_client import GeminiClient
from .settings import Settings, settings as default_settings


class JudgeRequest(BaseModel):
	kind: str
	correct_answer: str
	user_answer: str
	max_points: float = Field(gt=0)
	context: Optional[str] = None
	word_count: Optional[int] = None
	min_words: Optional[int] = None
	max_words: Optional[int] = None
	grading_criteria: List[str] = Field(default_factory=list)
	# Kind-specific extras (verb/tense/subject, error positions, instruction, ...)
	details: Dict[str, Any] = Field(default_factory=dict)


class JudgeVerdict(BaseModel):
	is_correct: bool
	# Not bounded here: the adapter clamps, the model is not trusted to respect max_points
	points_earned: float
	feedback: Optional[str] = None
	key_points_covered: List[str] = Field(default_factory=list)


class HolisticJudgeRequest(BaseModel):
	skill: str  # "writing" | "speaking"
	response_text: str
	dimensions: Dict[str, float]
	language: str = "English"
	level: Optional[str] = None
	prompt: Optional[str] = None
	required_points: List[str] = Field(default_factory=list)
	format_type: Optional[str] = None
	word_count: Optional[int] = None
	word_count_min: Optional[int] = None
	word_count_max: Optional[int] = None
	turns: Optional[int] = None


class DimensionVerdict(BaseModel):
	score: float
	max_score: Optional[float] = None
	feedback: str = ""
	strengths: List[str] = Field(default_factory=list)
	weaknesses: List[str] = Field(default_factory=list)


class GrammarErrorVerdict(BaseModel):
	error: str
	correction: str
	explanation: str = ""
	grammar_category: str = "other"
	severity: str = "minor"


class HolisticVerdict(BaseModel):
	dimensions: Dict[str, DimensionVerdict]
	grammar_errors: List[GrammarErrorVerdict] = Field(default_factory=list)
	overall_feedback: str = ""
	level_assessment: Optional[str] = None
	strengths: List[str] = Field(default_factory=list)
	areas_for_improvement: List[str] = Field(default_factory=list)


class AIJudge(Protocol):
	async def evaluate(self, request: JudgeRequest) -> JudgeVerdict: ...

	async def evaluate_holistic(self, request: HolisticJudgeRequest) -> HolisticVerdict: ...


def extract_json_block(text: str) -> Dict[str, Any]:
	"""Extract the first JSON object from a model reply.

	Tries the whole text, then a fenced ```json block, then the outermost braces.

	Raises:
		ValueError: If no JSON object can be parsed.
	"""
	candidates = [text]
	fenced = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
	if fenced:
		candidates.append(fenced.group(1))
	first = text.find("{")
	last = text.rfind("}")
	if first != -1 and last > first:
		candidates.append(text[first : last + 1])
	for candidate in candidates:
		try:
			data = json.loads(candidate)
		except ValueError:
			continue
		if isinstance(data, dict):
			return data
	raise ValueError("Failed to parse JSON object from judge output")


_KIND_GUIDANCE: Dict[str, str] = {
	"fill_in_the_blanks": (
		"Evaluate this fill-in-the-blank answer. Accept alternative phrasings and forms "
		"that show the learner understood the gap."
	),
	"short_answer": (
		"Evaluate this short answer. Judge semantic equivalence and coverage of key facts; "
		"minor wording differences are acceptable."
	),
	"essay": (
		"Evaluate this essay for content accuracy, coverage of key points, coherence and "
		"organization, and language use."
	),
	"error_correction": (
		"Evaluate this error correction. Award partial credit for each error the learner fixed "
		"while keeping the meaning of the sentence."
	),
	"sentence_transformation": (
		"Evaluate this sentence transformation. Check that the instruction was followed, the "
		"grammar is correct and the meaning is preserved."
	),
	"verb_conjugation": (
		"Evaluate this verb conjugation. Accept contractions and alternative spellings."
	),
}


def build_answer_prompt(request: JudgeRequest) -> str:
	lines = [_KIND_GUIDANCE.get(request.kind, "Evaluate this answer."), ""]
	lines.append(f'Expected answer: "{request.correct_answer}"')
	lines.append(f'Learner answer: "{request.user_answer}"')
	if request.context:
		lines.append(f'Context: "{request.context}"')
	if request.grading_criteria:
		lines.append(f"Grading criteria: {', '.join(request.grading_criteria)}")
	if request.word_count is not None:
		lines.append(f"Word count: {request.word_count} (required: {request.min_words}-{request.max_words})")
	for key, value in request.details.items():
		lines.append(f"{key.replace('_', ' ').capitalize()}: {json.dumps(value, ensure_ascii=False)}")
	lines.append("")
	lines.append(f"Maximum points: {request.max_points:g}")
	lines.append(
		"Return ONLY a JSON object with keys: is_correct (boolean), points_earned (number between 0 "
		f"and {request.max_points:g}), feedback (string), key_points_covered (array of strings)."
	)
	return "\n".join(lines)


def build_holistic_prompt(request: HolisticJudgeRequest) -> str:
	level = request.level or "intermediate"
	lines = [
		f"You are an expert {request.language} {request.skill} examiner for {level} level learners.",
		"Score the performance on each dimension below; the number is the maximum for that dimension.",
	]
	for name, maximum in request.dimensions.items():
		lines.append(f"- {name}: {maximum:g} points")
	if request.prompt:
		lines.append(f"Task: {request.prompt}")
	if request.required_points:
		lines.append("Required points:")
		lines.extend(f"{i}. {p}" for i, p in enumerate(request.required_points, start=1))
	if request.format_type:
		lines.append(f"Expected format: {request.format_type}")
	if request.word_count_min or request.word_count_max:
		lines.append(f"Word count requirement: {request.word_count_min or 'no min'} - {request.word_count_max or 'no max'}")
	if request.turns is not None:
		lines.append(f"Learner turns in the conversation: {request.turns}")
	lines.append("")
	if request.word_count is not None:
		lines.append(f"Learner response ({request.word_count} words):")
	else:
		lines.append("Learner response:")
	lines.append(request.response_text)
	lines.append("")
	lines.append(
		"Return ONLY a JSON object with keys: dimensions (object keyed by the dimension names, each "
		"with score, max_score, feedback, strengths, weaknesses), grammar_errors (array of objects with "
		"error, correction, explanation, grammar_category, severity of minor|moderate|major), "
		"overall_feedback, level_assessment (CEFR A1-C2), strengths, areas_for_improvement."
	)
	return "\n".join(lines)


class GeminiJudge:
	def __init__(self, config: Optional[Settings] = None) -> None:
		self._config = config or default_settings

	def _client(self) -> GeminiClient:
		return GeminiClient(model=self._config.gemini_judge_model or self._config.gemini_model, config=self._config)

	async def _ask(self, prompt: str) -> Dict[str, Any]:
		try:
			async with self._client() as client:
				raw = await client.generate(prompt, json_output=True)
			return extract_json_block(raw)
		except Exception as exc:
			raise JudgeError(str(exc) or exc.__class__.__name__) from exc

	async def evaluate(self, request: JudgeRequest) -> JudgeVerdict:
		data = await self._ask(build_answer_prompt(request))
		try:
			return JudgeVerdict.model_validate(data)
		except ValidationError as exc:
			raise JudgeError(f"Malformed judge verdict: {exc}") from exc

	async def evaluate_holistic(self, request: HolisticJudgeRequest) -> HolisticVerdict:
		data = await self._ask(build_holistic_prompt(request))
		try:
			verdict = HolisticVerdict.model_validate(data)
		except ValidationError as exc:
			raise JudgeError(f"Malformed holistic verdict: {exc}") from exc
		missing = [name for name in request.dimensions if name not in verdict.dimensions]
		if missing:
			raise JudgeError(f"Judge verdict is missing dimensions: {', '.join(missing)}")
		return verdict
