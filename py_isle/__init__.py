"""
Deterministic hexagonal island generation and faction territory engine.
"""

__version__ = "0.1.0"
