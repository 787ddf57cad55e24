from __future__ import annotations
from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text, Index
from .db import Base


class TaskQuestion(Base):
	__tablename__ = "task_questions"
	id = Column(String(64), primary_key=True)
	task_id = Column(String(64), nullable=False, index=True)
	question_number = Column(Integer, nullable=False)
	question_type = Column(String(64), nullable=False)
	points = Column(Float, nullable=False)
	# Type-specific payload (explanation, limits, legacy reading record, ...)
	body = Column(JSON, nullable=False, default=dict)
	answer = Column(JSON, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class QuestionScore(Base):
	__tablename__ = "question_scores"
	# Append-only: a re-submission inserts a new row tagged with its attempt_number
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(String(128), nullable=False, index=True)
	task_id = Column(String(64), nullable=False, index=True)
	question_id = Column(String(64), nullable=False)
	question_number = Column(Integer, nullable=False)
	user_answer = Column(JSON, nullable=True)
	correct_answer = Column(JSON, nullable=True)
	is_correct = Column(Boolean, nullable=False)
	points_earned = Column(Float, nullable=False)
	max_points = Column(Float, nullable=False)
	evaluation_data = Column(JSON, nullable=False, default=dict)
	attempt_number = Column(Integer, nullable=False, default=1)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class HolisticScore(Base):
	__tablename__ = "holistic_scores"
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(String(128), nullable=False)
	task_id = Column(String(64), nullable=False)
	attempt_number = Column(Integer, nullable=False)
	skill = Column(String(16), nullable=False)  # "writing" | "speaking"
	response_text = Column(Text, nullable=False)
	word_count = Column(Integer, nullable=False, default=0)
	dimension_scores = Column(JSON, nullable=False, default=dict)
	total_score = Column(Float, nullable=False)
	max_score = Column(Float, nullable=False)
	percentage_score = Column(Float, nullable=False)
	evaluation_data = Column(JSON, nullable=False, default=dict)
	language = Column(String(64), nullable=True)
	course_name = Column(String(128), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	# Lookup index for the attempt gate; intentionally not unique
	__table_args__ = (Index("ix_holistic_attempt", "user_id", "task_id", "attempt_number"),)
