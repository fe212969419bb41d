"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports: the OData REST
    client, its offline mock, and the import-based fragment loader.

Dependencies:
    ``odata_rest`` and ``http_client`` depend on ``requests``; the rest are
    pure Python.

Call context:
    Imported by ``viewkit.app.controller`` for runtime wiring and by tests.
"""
