"""
Exception classes for the emote reactor.

Nothing in here is allowed to escape ``MainReactorEngine.process_signal``; the
engine degrades a single reaction, never the whole update loop.  The classes
exist so the places that *do* catch can log something precise.
"""

from typing import Optional


class ReactorError(RuntimeError):
    """
    Base exception for all reactor errors.

    Carries optional rule and target context which is appended to the message.
    """

    def __init__(self, message: str, rule_id: Optional[str] = None, target_id: Optional[str] = None):
        super().__init__(message)
        self.rule_id = rule_id
        self.target_id = target_id

    def __str__(self) -> str:
        base_msg = super().__str__()

        context_parts = []
        if self.rule_id:
            context_parts.append(f"rule={self.rule_id}")
        if self.target_id:
            context_parts.append(f"target={self.target_id}")

        if context_parts:
            return f"{base_msg} ({', '.join(context_parts)})"
        return base_msg


class RuleDefinitionError(ReactorError):
    """
    Raised when a rule file or a single rule definition cannot be parsed.

    The loader turns these into malformed placeholder rules that never match.
    """

    def __init__(self, message: str, rule_id: Optional[str] = None, source: Optional[str] = None):
        super().__init__(message, rule_id=rule_id)
        self.source = source

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.source:
            return f"{base_msg} [in {self.source}]"
        return base_msg


class PortError(ReactorError):
    """Raised (or wrapped) when a collaborator behind a port fails."""

    def __init__(self, message: str, port: str, target_id: Optional[str] = None):
        super().__init__(message, target_id=target_id)
        self.port = port

    def __str__(self) -> str:
        return f"[{self.port}] {super().__str__()}"


class ConfigurationError(ReactorError):
    """Raised when the reactor configuration fails validation."""
    pass
