"""Expression types, errors and models shared across the interpreter."""
