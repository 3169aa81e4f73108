"""
Interfaces layer package.

HTTP surface of the service: FastAPI routers, Pydantic request/response
schemas and dependency wiring. Routes translate requests into use case
commands and queries; they hold no accounting rules.
"""
