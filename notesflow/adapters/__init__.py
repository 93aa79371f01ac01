"""Adapter package for external I/O implementations.

Purpose:
    Concrete implementations of the domain ports: the shared ``ApiGateway``
    transport, REST adapters per endpoint family and local JSON storage.

Dependencies:
    ``requests`` for network I/O, the filesystem for storage, and domain
    protocol definitions.

Call context:
    Imported by ``notesflow.app.controller`` for runtime wiring and by tests.
"""
