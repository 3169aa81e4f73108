"""
Domain layer package.

Entities, accounting rules, error types and port interfaces for the
portfolio engine. Pure Python: no framework imports, no IO.
"""
