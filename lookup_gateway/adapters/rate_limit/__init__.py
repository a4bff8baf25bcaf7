"""Rate limit state storage.

This package provides a small abstraction layer so the gateway can start with
an in-memory store and later move to a shared store without changing the
admission controller.
"""
