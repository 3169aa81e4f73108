"""
Shared error handling package.

Translates portfolio domain errors, authentication failures and
unexpected exceptions into one JSON error shape.
"""
