"""Exceptions raised by the strategy DSL core."""

from __future__ import annotations


class DSLError(Exception):
    """Base exception for the strategy DSL."""


class DSLSyntaxError(DSLError):
    """Strategy source could not be parsed.

    Positions are not tracked by the parser, so ``line`` and ``column``
    are always 1.
    """

    def __init__(self, message: str, line: int = 1, column: int = 1):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


class SandboxError(DSLError):
    """An AST was rejected or its evaluation aborted by the sandbox."""


class MaxDepthExceeded(SandboxError):
    """AST nesting is deeper than the sandbox allows."""

    def __init__(self, depth: int, max_depth: int):
        super().__init__(f"Maximum AST depth exceeded: {depth} > {max_depth}")
        self.depth = depth
        self.max_depth = max_depth


class DisallowedOperation(SandboxError):
    """AST node carries a type tag outside the whitelist."""

    def __init__(self, operation: str):
        super().__init__(f"Disallowed operation: {operation}")
        self.operation = operation


class DangerousPatternDetected(SandboxError):
    """Serialized AST contains a forbidden substring."""

    def __init__(self, pattern: str):
        super().__init__(f"Potentially dangerous operation detected: {pattern}")
        self.pattern = pattern


class ExecutionTimeout(SandboxError):
    """Evaluation did not finish before the deadline."""

    def __init__(self, timeout_ms: int):
        super().__init__(f"DSL execution timeout after {timeout_ms} ms")
        self.timeout_ms = timeout_ms
