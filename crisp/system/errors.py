"""
System-wide custom error types.
"""


class CrispSyntaxError(ValueError):
    """
    Custom exception raised when reading Crisp source fails due to syntax errors.
    Inherits from ValueError for general compatibility but provides specific context.
    """
    def __init__(self, message: str, source: str, error_details: str = "", line: int = 0, column: int = 0):
        """
        Initializes the CrispSyntaxError.

        Args:
            message: A high-level error message.
            source: The original source text that caused the error.
            error_details: Specific details from the tokenizer or parser, if available.
            line: 1-based line of the offending token (0 when unknown).
            column: 1-based column of the offending token (0 when unknown).
        """
        full_message = message
        if line:
            full_message += f" (line {line}, column {column})"
        shown = source if len(source) <= 200 else source[:200] + "..."
        full_message += f"\nInput: '{shown}'"
        if error_details:
            full_message += f"\nDetails: {error_details}"
        super().__init__(full_message)
        self.message = message
        self.source = source
        self.error_details = error_details
        self.line = line
        self.column = column


class CrispEvaluationError(Exception):
    """
    Base exception raised during the evaluation phase of Crisp expressions.
    Subclasses name the error kind; this class itself is used for runtime
    failures that fit no specific kind (e.g. division by zero).
    """
    kind = "EvaluationError"

    def __init__(self, message: str, expression: str = "", error_details: str = ""):
        """
        Initializes the CrispEvaluationError.

        Args:
            message: A high-level error message describing the evaluation failure.
            expression: The rendered expression being evaluated when the error occurred.
            error_details: Specific details about the error (e.g., from underlying exceptions).
        """
        full_message = f"{message}"
        if expression:
            full_message += f"\nExpression: '{expression}'"
        if error_details:
            full_message += f"\nDetails: {error_details}"
        super().__init__(full_message)
        self.message = message
        self.expression = expression
        self.error_details = error_details


class UnboundSymbolError(CrispEvaluationError, NameError):
    """A lookup or assignment target was never defined."""
    kind = "UnboundSymbol"

    def __init__(self, name: str, expression: str = "", error_details: str = ""):
        super().__init__(f"Unbound symbol: '{name}' is not defined.", expression, error_details)
        self.name = name


class TypeMismatchError(CrispEvaluationError):
    """A value of the wrong type was supplied, e.g. a non-number to `+`."""
    kind = "TypeMismatch"


class NotCallableError(CrispEvaluationError):
    """The head of a list form did not evaluate to a combiner."""
    kind = "NotCallable"


class MalformedFormError(CrispEvaluationError):
    """Wrong arity or shape passed to a builtin form or a fexpr."""
    kind = "Malformed"
