# Middleware package init
"""
MouzaForm Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request Context] → [Timeout] → [CORS] → Route Handler

    1. Request Context: correlation ID for every log line, access log
       (records timed-out requests too)
    2. Timeout: abandons requests past request_timeout_seconds
    3. CORS: FastAPI's CORSMiddleware (handles preflight)
"""
