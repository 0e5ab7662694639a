#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from typing import Any, Dict, List, Optional, Sequence

from llama_index.core.llms import (
    ChatMessage,
    CompletionResponse,
    CompletionResponseGen,
    CustomLLM,
    LLMMetadata,
)
from openai import OpenAI

from .config import LLMConfig


class OpenAIChatLLM(CustomLLM):
    """Адаптер LlamaIndex CustomLLM для OpenAI-совместимого Chat Completions API.

    Оборачивает клиента OpenAI, чтобы использовать его внутри LlamaIndex
    как обычную LLM: поддерживает complete и stream_complete. Для диалогов
    со списком сообщений и вызовом инструментов есть chat_completion.
    """
    def __init__(
        self,
        base_url: str,
        api_key: str,
        model_name: str,
        temperature: float = 0.7,
        top_p: float = 0.9,
        max_tokens: int = 2048,
        system_prompt: str = "你是一个乐于助人的助手。",
        enable_thinking: Optional[bool] = None,
    ) -> None:
        super().__init__()
        self._client = OpenAI(base_url=base_url, api_key=api_key)
        self._model = model_name
        self._temperature = float(temperature)
        self._top_p = float(top_p)
        self._max_tokens = int(max_tokens)
        self._system_prompt = system_prompt
        self._enable_thinking = enable_thinking

    @classmethod
    def from_config(cls, cfg: LLMConfig) -> "OpenAIChatLLM":
        return cls(
            base_url=cfg.base_url,
            api_key=cfg.api_key,
            model_name=cfg.model_name,
            temperature=cfg.temperature,
            top_p=cfg.top_p,
            max_tokens=cfg.max_tokens,
            system_prompt=cfg.system_prompt,
            enable_thinking=cfg.enable_thinking,
        )

    @property
    def metadata(self) -> LLMMetadata:
        return LLMMetadata(
            model_name=f"openai-compat::{self._model}",
            temperature=self._temperature,
            num_output=self._max_tokens,
        )

    def _make_messages(self, user_prompt: str) -> List[Dict[str, str]]:
        """Формирует список сообщений (system + user) для Chat API."""
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def _request_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "temperature": self._temperature,
            "top_p": self._top_p,
            "max_tokens": self._max_tokens,
        }
        if self._enable_thinking is not None:
            kwargs["extra_body"] = {"enable_thinking": self._enable_thinking}
        return kwargs

    def complete(self, prompt: str, **kwargs: Any) -> CompletionResponse:
        """Синхронное получение единого текста ответа для переданного промпта."""
        resp = self._client.chat.completions.create(
            messages=self._make_messages(prompt),
            **self._request_kwargs(),
        )
        text = (resp.choices[0].message.content or "").strip()
        return CompletionResponse(text=text)

    def stream_complete(self, prompt: str, **kwargs: Any) -> CompletionResponseGen:
        """Потоковая генерация: возвращает нарастающий ответ частями."""
        try:
            stream = self._client.chat.completions.create(
                messages=self._make_messages(prompt),
                stream=True,
                **self._request_kwargs(),
            )
        except Exception:
            yield self.complete(prompt)
            return

        buffer = []
        for event in stream:
            if not event.choices:
                continue
            delta = event.choices[0].delta.content or ""
            if delta:
                buffer.append(delta)
                yield CompletionResponse(text="".join(buffer), delta=delta)

    def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ):
        """Один вызов Chat API со своим списком сообщений.

        Возвращает сообщение ассистента (content и, возможно, tool_calls).
        """
        kwargs = self._request_kwargs()
        if tools:
            kwargs["tools"] = tools
        resp = self._client.chat.completions.create(messages=messages, **kwargs)
        return resp.choices[0].message


def to_openai_messages(messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
    """Переводит ChatMessage LlamaIndex в формат сообщений OpenAI Chat API."""
    return [{"role": m.role.value, "content": m.content or ""} for m in messages]
