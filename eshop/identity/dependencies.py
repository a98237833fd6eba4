from fastapi import Request
from eshop.common.custom_exceptions import AuthenticationError
from eshop.identity.models import Authenticated, Guest, Identity
from eshop.identity.utils import new_guest_token


def get_identity(request: Request) -> Identity:
    identity = getattr(request.state, "identity", None)
    if identity is None:
        # route mounted outside the identity middleware
        identity = Guest(token=new_guest_token())
        request.state.identity = identity
    return identity


def require_user(request: Request) -> Authenticated:
    identity = get_identity(request)
    if not isinstance(identity, Authenticated):
        raise AuthenticationError("Authentication required")
    return identity
