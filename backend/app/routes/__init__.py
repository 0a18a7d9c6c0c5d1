"""
ProfileHub Backend — API Routes Package
=========================================

Route Inventory:
    - users.py:   /api/users/*   (register, login, list, get, image, delete)
    - health.py:  GET /health    (service health check)

Routes stay thin: unpack the request, call the service, return its result.
"""
