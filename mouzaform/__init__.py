"""
MouzaForm Backend — Application Package Initializer
====================================================

What: Marks the `mouzaform` directory as a Python package.
Why:  Enables module imports like `from mouzaform.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service follows the same layered split used throughout:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Workflow + Gateway)     │  ← Submission workflow, queries
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Store handle, transactions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
