"""Application composition layer.

Controllers in this package own the client state machines (session and note
list) and wire adapters and use cases into runnable workflows.
"""
