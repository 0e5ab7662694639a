#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Хранение истории «вопрос-ответ» в JSON-файле."""

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Union

import structlog

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


@dataclass
class QARecord:
    question: str
    answer: str


def load_records(path: PathLike) -> List[QARecord]:
    """Загружает записи из файла.

    Отсутствующий, нечитаемый или некорректный файл означает пустую историю.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("qa records not loaded", path=str(path), error=str(exc))
        return []
    if not isinstance(data, list):
        return []
    records = []
    for item in data:
        if isinstance(item, dict) and "question" in item and "answer" in item:
            records.append(QARecord(question=str(item["question"]), answer=str(item["answer"])))
    return records


def save_records(path: PathLike, records: List[QARecord]) -> None:
    """Перезаписывает файл целиком (JSON, отступ 2, UTF-8)."""
    payload = [asdict(r) for r in records]
    Path(path).write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def build_messages(records: List[QARecord], question: str, system_prompt: str) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": system_prompt}]
    for r in records:
        messages.append({"role": "user", "content": r.question})
        messages.append({"role": "assistant", "content": r.answer})
    messages.append({"role": "user", "content": question})
    return messages
