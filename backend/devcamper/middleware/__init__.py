"""
DevCamper Backend: Middleware Package
=======================================

Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any processing
    2. Request ID: correlation ID for logs and the X-Request-ID header
    3. Logging: method, path, status and duration with the request ID

Responses pass back through the chain in reverse order.
"""
