"""
Domain layer for contact form business logic.

This layer contains:
- Data models (type-safe structures)
- Origin policy predicates and CORS headers
- The submission pipeline (validate, verify, compose, send)
"""
