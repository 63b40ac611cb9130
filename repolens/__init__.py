"""repolens: framework, API, state and event detection over per-file facts."""

ENGINE_VERSION = "0.1.0"

__all__ = ["ENGINE_VERSION"]
