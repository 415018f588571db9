"""
Users API: Middleware Package
==============================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation ID for log lines and error bodies
    2. Logging: one access line per request, with the request ID
    3. CORS: FastAPI's CORSMiddleware (handles preflight)
"""
