"""
LLM Gateway Package

Provider-agnostic "prompt in, text out" capability over LangChain chat models:
  - OpenAI           (GPT-4o, GPT-4o-mini)
  - Azure OpenAI     (same models, different endpoint)

Public API::

    from docintel.llm import GenerativeClient

    client = GenerativeClient()
    text   = await client.generate("Summarise: ...")
"""

from docintel.llm.gateway import GenerativeCapability, GenerativeClient, build_chat_model

__all__ = [
    "GenerativeCapability",
    "GenerativeClient",
    "build_chat_model",
]
