"""
Users API: Routes Package
==========================

Route Inventory:
    - users.py:   GET    /api/users
                  GET    /api/users/{id}
                  POST   /api/users
                  PUT    /api/users/{id}
                  DELETE /api/users/{id}
    - health.py:  GET    /health

Routes stay thin: extract path/body, call the service, return the model.
"""
