"""
Errors raised by the instruction-chain interpreter.

Engine failures (navigation, timeouts, detached elements) are not wrapped:
they propagate from Playwright unchanged.
"""

from typing import Any, Dict, Iterable, List, Optional


class BromatoError(ValueError):
    """Base class for interpreter errors."""


class GrammarError(BromatoError):
    """
    A chain or node does not conform to the instruction grammar.

    Raised before the automation engine is called for the offending node.

    Attributes:
        value: The offending value (kind, operation, ...) or None when missing
        accepted: The accepted values for that field, when the set is closed
    """

    def __init__(
        self,
        message: str,
        value: Any = None,
        accepted: Optional[Iterable[str]] = None,
    ):
        self.value = value
        self.accepted = list(accepted) if accepted is not None else []
        if self.accepted:
            message = f"{message}, must be one of {', '.join(self.accepted)}"
        super().__init__(message)


class PayloadValidationError(BromatoError):
    """
    A middleware received a payload it cannot rewrite.

    Carries every issue found so callers can report them all at once.
    """

    def __init__(self, message: str, issues: List[Dict[str, Any]]):
        self.issues = issues
        details = "; ".join(
            f"{'.'.join(str(p) for p in issue.get('loc', ())) or '<root>'}: {issue.get('msg')}"
            for issue in issues
        )
        super().__init__(f"{message}: {details}" if details else message)
