"""API route describing the subscription plans."""

from fastapi import APIRouter, Depends

from backend.api.schemas import PlanResponse, PricingResponse
from backend.auth import PRO_PLAN, AuthContext, get_auth_context
from backend.config import settings

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


@router.get("", response_model=PricingResponse)
async def pricing(ctx: AuthContext = Depends(get_auth_context)) -> PricingResponse:
    """Compare the free and pro plans."""
    plans = [
        PlanResponse(
            name="free",
            deck_limit=settings.free_deck_limit,
            ai_generated_cards=False,
            features=[
                f"Up to {settings.free_deck_limit} decks",
                "Unlimited cards per deck",
                "Basic flashcard features",
            ],
        ),
        PlanResponse(
            name=PRO_PLAN,
            deck_limit=None,
            ai_generated_cards=True,
            features=[
                "Unlimited decks",
                "Unlimited cards per deck",
                f"AI-generated cards ({settings.ai_cards_per_deck} per request)",
            ],
        ),
    ]
    current = ctx.plan or ("free" if ctx.is_authenticated else None)
    return PricingResponse(plans=plans, current_plan=current)
