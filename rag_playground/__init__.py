"""Набор демо: RAG, промпты, графы и агент поверх OpenAI-совместимых моделей.

Содержит:
- config: dataclass-конфиги моделей, Milvus и отдельных демо
- log: настройка structlog
- llm: адаптер LlamaIndex CustomLLM для OpenAI‑совместимого Chat API
- embeddings: эмбеддинги через OpenAI-совместимый эндпоинт
- vectorstore: клиент Milvus, создание коллекций, поиск
- book: загрузка EPUB в Milvus и ответы по книге
- diary: дневник в Milvus с семантическим поиском
- memory_rag: RAG на in-memory VectorStoreIndex
- prompts, structured_output, graphs: примеры шаблонов, JSON-вывода и LangGraph
- history, chat: диалог с сохранением истории в JSON
- tools, agent: агент с файловыми инструментами
"""
