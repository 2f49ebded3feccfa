# Middleware package init
"""
Notes API — Middleware Package
===============================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    1. Rate limiting rejects abusive clients before any other work
    2. Request ID makes the correlation id available to everything after it
    3. Access logging reads that id and the final status code

    main.create_app adds them in the reverse order, because Starlette wraps
    each newly added middleware around the existing stack.
"""
