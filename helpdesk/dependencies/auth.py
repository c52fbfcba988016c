from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from helpdesk.security.identity import AgentIdentity, AgentIdentityProvider
from helpdesk.tickets.errors import UnauthorizedError

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_provider(request: Request) -> AgentIdentityProvider:
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="Identity provider is not configured")
    return provider


async def get_optional_agent(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    provider: Annotated[AgentIdentityProvider, Depends(get_identity_provider)],
) -> AgentIdentity | None:
    """Resolve the calling agent, or ``None`` for requesters.

    An unknown token is not an error here: requester actions stay available and
    agent-only actions are refused by the ticket service.
    """

    if credentials is None or not credentials.credentials:
        return None
    try:
        return provider.verify(credentials.credentials)
    except UnauthorizedError:
        return None


OptionalAgent = Annotated[AgentIdentity | None, Depends(get_optional_agent)]
