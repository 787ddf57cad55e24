from __future__ import annotations
import json
from typing import Any


def as_text(value: Any) -> str:
	"""Render a submitted or stored value the way it was serialized by the client.

	Booleans become ``true``/``false``, integral floats lose their ``.0`` and
	``None`` becomes ``null``, so that ``1``, ``1.0`` and ``"1"`` compare equal.
	"""
	if value is None:
		return "null"
	if isinstance(value, bool):
		return "true" if value else "false"
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	if isinstance(value, (list, dict)):
		return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
	return str(value)


def fold(value: Any) -> str:
	# Case-insensitive, whitespace-trimmed comparison key
	return as_text(value).strip().lower()


def word_count(text: str) -> int:
	return len((text or "").split())
