"""ViewModel package for UI state and command surfaces.

Call context:
    Views and the CLI import concrete viewmodels from this package to bind
    user input to controller commands.

Dependencies:
    Modules in this package depend on domain types only. I/O adapters and
    use-case orchestration remain outside.
"""
