"""
Users API: Application Package
===============================

What: CRUD REST service over a single `users` table.
How:  Layered the same way for every resource:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (SQL + errors)     │  ← one statement per operation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← engine, sessions, schema init
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
