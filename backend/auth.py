"""Identity and entitlement gate.

The identity provider runs upstream of this service and forwards the resolved
user, plan and feature flags as request headers. Everything past the router
works with an explicit ``AuthContext`` instead of ambient request state.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Header

from backend.errors import Unauthorized

UNLIMITED_DECKS_FEATURE = "unlimited_decks"
AI_CARDS_FEATURE = "ai_generated_cards"
PRO_PLAN = "pro"


@dataclass(frozen=True)
class AuthContext:
    """The caller's identity and entitlements for one request."""

    user_id: str | None
    plan: str | None = None
    features: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def require_user(self) -> str:
        """Return the user id or raise ``Unauthorized`` for anonymous callers."""
        if not self.user_id:
            raise Unauthorized()
        return self.user_id

    def has(self, feature: str | None = None, plan: str | None = None) -> bool:
        """Check a single feature flag or plan."""
        if feature is not None:
            return feature in self.features
        if plan is not None:
            return self.plan == plan
        return False


def can_create_unlimited_decks(ctx: AuthContext) -> bool:
    # Either the feature or the pro plan grants it.
    return ctx.has(feature=UNLIMITED_DECKS_FEATURE) or ctx.has(plan=PRO_PLAN)


def can_generate_cards(ctx: AuthContext) -> bool:
    return ctx.has(feature=AI_CARDS_FEATURE)


def parse_features(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


async def get_auth_context(
    x_user_id: str | None = Header(default=None),
    x_user_plan: str | None = Header(default=None),
    x_user_features: str | None = Header(default=None),
) -> AuthContext:
    """Build the auth context from identity-provider headers (FastAPI dependency)."""
    return AuthContext(
        user_id=x_user_id.strip() if x_user_id and x_user_id.strip() else None,
        plan=x_user_plan.strip().lower() if x_user_plan else None,
        features=parse_features(x_user_features),
    )
