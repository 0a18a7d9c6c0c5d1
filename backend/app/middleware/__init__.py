"""
ProfileHub Backend — Middleware Package
========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    - Request ID first, so every later log line can carry it
    - Logging captures status and duration on the way back out
"""
