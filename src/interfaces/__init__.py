"""Abstract interfaces for every swappable collaborator.

- **embedding_provider** -- text to vectors (OpenAI)
- **llm_provider** -- chat completion, full or streamed (OpenAI)
- **similarity_index** -- ranking of embedded chunks (brute force)
- **document_store** -- documents, chunks and vectors (SQLite)
- **file_storage** -- uploaded PDF bytes (local disk)
- **authorization_gate** -- authenticated / administrator checks
"""
