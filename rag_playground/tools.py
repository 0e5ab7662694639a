#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Файловые инструменты для агента.

Все пути относительные и не выходят за пределы base_dir.
Схемы TOOL_SCHEMAS передаются модели в формате function calling OpenAI.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import structlog

logger = structlog.get_logger(__name__)

PATH_OUTSIDE_BASE_MESSAGE = "路径不允许超出工作目录"


class PathOutsideBaseError(ValueError):
    def __init__(self, message: str = PATH_OUTSIDE_BASE_MESSAGE) -> None:
        super().__init__(message)


def resolve_path(base_dir: Union[str, Path], relative: str) -> Path:
    """Абсолютный путь внутри base_dir; выход за его пределы запрещён."""
    base = Path(base_dir).resolve()
    full = (base / (relative or ".")).resolve()
    if full != base and base not in full.parents:
        raise PathOutsideBaseError()
    return full


def _function_schema(name: str, description: str, properties: Dict[str, str]) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {k: {"type": "string", "description": v} for k, v in properties.items()},
                "required": list(properties),
            },
        },
    }


TOOL_SCHEMAS: List[Dict[str, Any]] = [
    _function_schema(
        "create_directory",
        "创建目录；若父目录不存在会一并创建。路径相对于当前工作目录。",
        {"dirPath": "相对路径，如 src/components 或 output"},
    ),
    _function_schema(
        "read_file",
        "读取文件内容（UTF-8 文本）。路径相对于当前工作目录。",
        {"filePath": "文件相对路径，如 src/index.ts"},
    ),
    _function_schema(
        "write_file",
        "写入文件；若目录不存在会先创建。用于生成或覆盖文件内容。路径相对于当前工作目录。",
        {"filePath": "文件相对路径", "content": "文件内容（纯文本）"},
    ),
    _function_schema(
        "list_directory",
        "列出目录下的文件名（一层）。路径相对于当前工作目录；传 . 或空表示当前目录。",
        {"dirPath": "目录相对路径，. 表示当前目录"},
    ),
]


class FileTools:
    """Набор файловых операций, привязанный к рабочему каталогу."""

    def __init__(self, base_dir: Union[str, Path]) -> None:
        self.base_dir = Path(base_dir).resolve()
        self._handlers: Dict[str, Callable[[Dict[str, Any]], str]] = {
            "create_directory": lambda a: self.create_directory(a.get("dirPath", "")),
            "read_file": lambda a: self.read_file(a["filePath"]),
            "write_file": lambda a: self.write_file(a["filePath"], a.get("content", "")),
            "list_directory": lambda a: self.list_directory(a.get("dirPath", "")),
        }

    def create_directory(self, dir_path: str) -> str:
        full = resolve_path(self.base_dir, str(dir_path))
        full.mkdir(parents=True, exist_ok=True)
        return f"已创建目录: {full}"

    def read_file(self, file_path: str) -> str:
        return resolve_path(self.base_dir, str(file_path)).read_text(encoding="utf-8")

    def write_file(self, file_path: str, content: str) -> str:
        full = resolve_path(self.base_dir, str(file_path))
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_text(str(content), encoding="utf-8")
        return f"已写入: {full}"

    def list_directory(self, dir_path: str = "") -> str:
        full = resolve_path(self.base_dir, str(dir_path) or ".")
        return "\n".join(sorted(p.name for p in full.iterdir()))

    def run_tool(self, name: str, arguments: str) -> str:
        """Выполняет один вызов; ошибки возвращаются текстом для модели."""
        handler = self._handlers.get(name)
        if handler is None:
            return f"未知工具: {name}"
        try:
            args = json.loads(arguments) if arguments else {}
            if not isinstance(args, dict):
                raise ValueError("参数必须是 JSON 对象")
            logger.info("tool requested", tool=name, args=args)
            return str(handler(args))
        except Exception as exc:
            logger.warning("tool failed", tool=name, error=str(exc))
            return f"错误: {exc}"

    def run_tool_calls(self, tool_calls: List[Any]) -> List[Dict[str, str]]:
        return [
            {
                "role": "tool",
                "tool_call_id": tc.id or "",
                "content": self.run_tool(tc.function.name or "", tc.function.arguments),
            }
            for tc in tool_calls
        ]
