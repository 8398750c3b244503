"""
Analogy Generation Module

Turns two concepts into a generated analogy under the shared daily quota.
"""

from .factory import create_analogy_module

__all__ = ["create_analogy_module"]
