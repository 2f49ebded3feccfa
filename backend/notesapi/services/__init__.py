# Services package init
"""
Notes API — Services Layer
===========================

What:  Business logic sitting between routes (HTTP) and repositories (storage).
Why:   Routes handle HTTP, services handle rules, repositories handle storage.

Service Inventory:
    - NoteService: owner-scoped note operations, listings and text search
    - UserService: registration, login, identity and public profiles
    - SearchService: semantic search over indexed notes
    - EmbeddingService (abstract): interface for text embedding providers
    - GeminiEmbeddingService: concrete provider using Google Gemini
"""
