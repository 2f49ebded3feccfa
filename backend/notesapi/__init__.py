"""
Notes API — Application Package Initializer
============================================

What: Marks the `notesapi` directory as a Python package.
Why:  Enables module imports like `from notesapi.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend follows a layered architecture with a pluggable storage layer:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Validation, ownership, pagination
    ├─────────────────────────────────────┤
    │     Repositories (Storage Contract) │  ← One interface, two adapters
    ├──────────────────┬──────────────────┤
    │  SQLAlchemy ORM  │  MongoDB driver  │  ← Relational | Document backend
    └──────────────────┴──────────────────┘

    Services depend only on the repository interface. Which adapter is used
    is decided per deployment by the STORAGE_BACKEND setting.
"""

__version__ = "1.0.0"
