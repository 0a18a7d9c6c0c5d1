"""
ProfileHub Backend — Application Package Initializer
======================================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, hashing, uploads
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← Mongo documents + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Motor client lifecycle
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
