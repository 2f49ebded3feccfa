"""
Storage adapters.

Both backends implement the contract in `base.py`; the FastAPI dependencies
in `notesapi.dependencies` pick one per deployment from STORAGE_BACKEND.
"""
