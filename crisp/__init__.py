"""Crisp: a small Lisp whose user-defined combiners are fexprs."""

__version__ = "0.1.0"
