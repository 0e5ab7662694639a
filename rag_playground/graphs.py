#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Графы LangGraph:

- линейный: START -> node_a -> node_b -> END, шаги копятся редьюсером
- условный: узел double в цикле, пока value < 10
- диалоговый: состояние messages (add_messages) и узел llm
"""

import operator
from typing import Annotated, Any, Dict, List, TypedDict

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langgraph.graph import END, START, StateGraph
from langgraph.graph.message import add_messages

from .llm import OpenAIChatLLM

logger = structlog.get_logger(__name__)

_ROLE_BY_TYPE = {"human": "user", "ai": "assistant", "system": "system", "tool": "tool"}


class CounterState(TypedDict):
    count: int
    steps: Annotated[List[str], operator.add]


class RouteState(TypedDict):
    value: int
    path: Annotated[List[str], operator.add]


class MessagesState(TypedDict):
    messages: Annotated[List[BaseMessage], add_messages]


def node_a(state: CounterState) -> Dict[str, Any]:
    return {"count": state["count"] + 1, "steps": ["A 执行了"]}


def node_b(state: CounterState) -> Dict[str, Any]:
    return {"count": state["count"] + 1, "steps": ["B 执行了"]}


def build_linear_graph():
    graph = StateGraph(CounterState)
    graph.add_node("node_a", node_a)
    graph.add_node("node_b", node_b)
    graph.add_edge(START, "node_a")
    graph.add_edge("node_a", "node_b")
    graph.add_edge("node_b", END)
    return graph.compile()


def double(state: RouteState) -> Dict[str, Any]:
    return {"value": state["value"] * 2, "path": ["double"]}


def route_after_double(state: RouteState) -> str:
    """value >= 10 → конец, иначе ещё один проход через double."""
    if state["value"] >= 10:
        return END
    return "double"


def build_conditional_graph():
    graph = StateGraph(RouteState)
    graph.add_node("double", double)
    graph.add_edge(START, "double")
    graph.add_conditional_edges("double", route_after_double, ["double", END])
    return graph.compile()


def to_openai_dicts(messages: List[BaseMessage]) -> List[Dict[str, Any]]:
    return [
        {"role": _ROLE_BY_TYPE.get(m.type, "user"), "content": m.content if isinstance(m.content, str) else str(m.content)}
        for m in messages
    ]


def should_continue(state: MessagesState) -> str:
    """Назад в llm, только если последнее сообщение просит вызвать инструменты."""
    last = state["messages"][-1] if state["messages"] else None
    if last is not None and getattr(last, "tool_calls", None):
        return "llm"
    return END


def build_chat_graph(llm: OpenAIChatLLM):
    def llm_node(state: MessagesState) -> Dict[str, Any]:
        reply = llm.chat_completion(to_openai_dicts(state["messages"]))
        logger.debug("llm node replied", chars=len(reply.content or ""))
        return {"messages": [AIMessage(content=reply.content or "")]}

    graph = StateGraph(MessagesState)
    graph.add_node("llm", llm_node)
    graph.add_edge(START, "llm")
    graph.add_conditional_edges("llm", should_continue, ["llm", END])
    return graph.compile()


def run_examples(llm: OpenAIChatLLM) -> None:
    print("========== 示例 1：线性图 ==========")
    print("最终 state:", build_linear_graph().invoke({"count": 0}))

    print("\n========== 示例 2：条件边 ==========")
    print("最终 state:", build_conditional_graph().invoke({"value": 1}))

    print("\n========== 示例 3：带 LLM ==========")
    result = build_chat_graph(llm).invoke(
        {"messages": [HumanMessage(content="用一句话介绍 LangGraph 是做什么的。")]}
    )
    last = result["messages"][-1] if result["messages"] else None
    print("最后一条消息:", last.content if last is not None else "")
