"""Reader for Crisp source text."""

from .parser import CrispParser

__all__ = ["CrispParser"]
