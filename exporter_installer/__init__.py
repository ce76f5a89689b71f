"""Prometheus exporter installer (Python-first, step-driven).

Core design goals:
- Ordered, named steps (fatal or best-effort)
- Idempotent reruns
- Pinned, configurable exporter versions
- Guaranteed cleanup of scratch space
- Centralized logging
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
