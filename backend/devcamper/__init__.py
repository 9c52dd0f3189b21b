"""
DevCamper Backend: Application Package Initializer
====================================================

What: Marks the `devcamper` directory as a Python package.
Who:  Imported by uvicorn (devcamper.main:app), Alembic and pytest.

Architecture Note:
    The backend is layered the same way for every resource:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Query pipeline │ Authorization    │  ← advanced results, owner checks
    ├─────────────────────────────────────┤
    │         Services (Business Rules)   │  ← bootcamps, courses, reviews
    ├─────────────────────────────────────┤
    │     Resource Store │ Models/Schemas │  ← SQLAlchemy + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
