"""
citizen_registry.observability

structlog configuration and the request-context middleware.
"""
