#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Структурированный ответ модели: JSON → pydantic-модель."""

import json
import re
from typing import Any, Dict, List

import structlog
from pydantic import BaseModel, Field, ValidationError

from .llm import OpenAIChatLLM

logger = structlog.get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


class OutputParserError(ValueError):
    """Ответ модели не удалось разобрать как JSON-объект нужной формы."""


class Scientist(BaseModel):
    name: str = Field(..., description="科学家的全名")
    birth_year: int = Field(..., description="出生年份")
    nationality: str = Field(..., description="国籍")
    fields: List[str] = Field(default_factory=list, description="研究领域列表")


def _candidates(text: str) -> List[str]:
    found = [text.strip()]
    found.extend(m.strip() for m in _FENCE_RE.findall(text))
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        found.append(text[start:end + 1])
    return found


def parse_json_output(text: str) -> Dict[str, Any]:
    """Достаёт JSON-объект из ответа модели.

    Порядок попыток: весь текст как JSON, блок ```json```, первый фрагмент {...}.
    """
    for candidate in _candidates(text):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    raise OutputParserError(f"В ответе модели нет JSON-объекта: {text[:200]!r}")


def scientist_prompt(name: str) -> str:
    return f"介绍一下{name}，用 JSON 返回：name、birth_year、nationality、fields"


def describe_scientist(llm: OpenAIChatLLM, name: str = "爱因斯坦") -> Scientist:
    text = llm.complete(scientist_prompt(name)).text
    data = parse_json_output(text)
    try:
        return Scientist.model_validate(data)
    except ValidationError as exc:
        logger.warning("scientist validation failed", name=name, error=str(exc))
        raise OutputParserError(str(exc)) from exc


def run(llm: OpenAIChatLLM) -> None:
    scientist = describe_scientist(llm)
    print(json.dumps(scientist.model_dump(), ensure_ascii=False, indent=2))
