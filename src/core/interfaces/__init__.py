"""Core interfaces/abstractions.

Why:
- Defines contracts (Protocol) implemented by concrete adapters.
- The pipeline depends on these, so tests can plug in fakes.
"""
