"""Access-control guard: allow/deny decisions over resolved permissions."""

import enum
from typing import Literal, Optional, Sequence, Tuple, Union

from adminpanel.core.exceptions import ResourceNotFoundError
from adminpanel.services.permission_resolver import AllPermissions, PermissionResolver

MatchMode = Literal["any", "all"]


class Outcome(str, enum.Enum):
    allow = "allow"
    deny = "deny"
    unauthenticated = "unauthenticated"


class AccessDecision:
    """Tagged result of an authorization check."""

    __slots__ = ("outcome", "missing", "message")

    def __init__(self, outcome: Outcome, missing: Tuple[str, ...] = (), message: str = ""):
        self.outcome = outcome
        self.missing = missing
        self.message = message

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.allow

    def __repr__(self) -> str:
        return f"AccessDecision({self.outcome.value}, missing={list(self.missing)})"


class AccessGuard:
    """Authorizes a user against one or more required permission names.

    Pure decision function: nothing is mutated, and expected failures are
    returned as decisions rather than raised.
    """

    def __init__(self, resolver: PermissionResolver):
        self.resolver = resolver

    def authorize(
        self,
        user_id: Optional[int],
        required: Union[str, Sequence[str]],
        mode: MatchMode = "all",
    ) -> AccessDecision:
        if mode not in ("any", "all"):
            raise ValueError(f"Unknown match mode: {mode!r}")

        names = (required,) if isinstance(required, str) else tuple(required)

        if user_id is None:
            return AccessDecision(Outcome.unauthenticated, message="User not authenticated")
        try:
            effective = self.resolver.resolve(user_id)
        except ResourceNotFoundError:
            return AccessDecision(Outcome.unauthenticated, message="User not authenticated")

        if isinstance(effective, AllPermissions) or not names:
            return AccessDecision(Outcome.allow)

        missing = tuple(name for name in names if name not in effective)
        if mode == "all" and not missing:
            return AccessDecision(Outcome.allow)
        if mode == "any" and len(missing) < len(names):
            return AccessDecision(Outcome.allow)

        if len(names) == 1:
            message = f"Access denied. Permission '{names[0]}' required."
        elif mode == "all":
            message = (
                "Access denied. All of the following permissions are required: "
                + ", ".join(names)
            )
        else:
            message = (
                "Access denied. At least one of the following permissions is required: "
                + ", ".join(names)
            )
        return AccessDecision(Outcome.deny, missing=missing, message=message)
