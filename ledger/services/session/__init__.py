"""Session resolution package."""

from ledger.services.session.resolver import (
    RequestContext,
    SessionResolverInterface,
    TokenSessionResolver,
)

__all__ = [
    "RequestContext",
    "SessionResolverInterface",
    "TokenSessionResolver",
]
