"""
Portfolio HTTP interface: routers, schemas and dependency wiring.
"""
