"""LLM provider adapters.

One concrete implementation of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider -- gpt-4o-mini by default (also supports OpenAI-compatible APIs)

main.py builds it only when OPENAI_API_KEY is set and injects the resulting
ChatService into FastAPI's app.state.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
