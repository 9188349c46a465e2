"""Session context for the single active principal."""

from academy.core.session.context import Principal, SessionContext, TeardownHook


__all__ = [
    "Principal",
    "SessionContext",
    "TeardownHook",
]
