"""
Application layer package.

Use cases that drive the portfolio engine: one class per operation,
each with a single ``execute`` method. Depends on domain ports only;
concrete stores and oracles are injected.
"""
