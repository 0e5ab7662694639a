"""
Тесты файловых инструментов агента.

Запуск:
  pytest -q tests/test_tools.py
"""

import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from rag_playground.tools import TOOL_SCHEMAS, FileTools, PathOutsideBaseError, resolve_path


def _call(name: str, args, call_id: str = "call_1") -> SimpleNamespace:
    arguments = args if isinstance(args, str) else json.dumps(args, ensure_ascii=False)
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def test_resolve_path_inside_base(tmp_path: Path) -> None:
    assert resolve_path(tmp_path, "a/b.txt") == (tmp_path / "a" / "b.txt").resolve()
    assert resolve_path(tmp_path, "") == tmp_path.resolve()
    assert resolve_path(tmp_path, ".") == tmp_path.resolve()


@pytest.mark.parametrize("relative", ["..", "../other", "a/../../x", "/etc/passwd"])
def test_resolve_path_rejects_escape(tmp_path: Path, relative: str) -> None:
    with pytest.raises(PathOutsideBaseError) as exc:
        resolve_path(tmp_path / "base", relative)
    assert str(exc.value) == "路径不允许超出工作目录"


def test_sibling_with_common_prefix_is_outside(tmp_path: Path) -> None:
    base = tmp_path / "work"
    base.mkdir()
    with pytest.raises(PathOutsideBaseError):
        resolve_path(base, "../work2/file.txt")


def test_write_creates_parents_and_read_back(tmp_path: Path) -> None:
    tools = FileTools(tmp_path)
    msg = tools.write_file("out/deep/note.txt", "你好")
    assert msg.startswith("已写入: ")
    assert (tmp_path / "out" / "deep" / "note.txt").read_text(encoding="utf-8") == "你好"
    assert tools.read_file("out/deep/note.txt") == "你好"


def test_create_and_list_directory(tmp_path: Path) -> None:
    tools = FileTools(tmp_path)
    assert tools.create_directory("src/components").startswith("已创建目录: ")
    (tmp_path / "a.txt").write_text("x")
    listing = tools.list_directory("").split("\n")
    assert set(listing) == {"a.txt", "src"}
    assert tools.list_directory("src") == "components"


def test_run_tool_calls_messages(tmp_path: Path) -> None:
    (tmp_path / "readme.md").write_text("内容", encoding="utf-8")
    tools = FileTools(tmp_path)
    out = tools.run_tool_calls([
        _call("read_file", {"filePath": "readme.md"}, "c1"),
        _call("delete_everything", {}, "c2"),
        _call("read_file", {"filePath": "../secret"}, "c3"),
        _call("read_file", "{not json", "c4"),
        _call("read_file", {"filePath": "missing.txt"}, "c5"),
    ])
    assert [m["tool_call_id"] for m in out] == ["c1", "c2", "c3", "c4", "c5"]
    assert all(m["role"] == "tool" for m in out)
    assert out[0]["content"] == "内容"
    assert out[1]["content"] == "未知工具: delete_everything"
    assert out[2]["content"] == "错误: 路径不允许超出工作目录"
    assert out[3]["content"].startswith("错误: ")
    assert out[4]["content"].startswith("错误: ")


def test_tool_schemas_cover_all_tools() -> None:
    names = [s["function"]["name"] for s in TOOL_SCHEMAS]
    assert names == ["create_directory", "read_file", "write_file", "list_directory"]
    write = next(s for s in TOOL_SCHEMAS if s["function"]["name"] == "write_file")
    assert write["function"]["parameters"]["required"] == ["filePath", "content"]
