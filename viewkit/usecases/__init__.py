"""Use-case layer: fragment dialog dispatch and CRUD request orchestration.

Modules here coordinate domain objects and ports without performing
transport I/O directly.
"""
