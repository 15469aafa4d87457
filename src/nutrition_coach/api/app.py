"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from nutrition_coach.api.admin import router as admin_router
from nutrition_coach.api.dependencies import require_user
from nutrition_coach.api.onboarding import router as onboarding_router
from nutrition_coach.api.schemas import (
    AnalyzeRequest,
    MealCreateRequest,
    RefineRequest,
    TipRequest,
    WeightCreateRequest,
    dashboard_payload,
    meal_payload,
    summary_payload,
    trend_payload,
    weight_payload,
)
from nutrition_coach.app_logging import configure_logging
from nutrition_coach.containers import AppContainer
from nutrition_coach.domain.errors import StoreUnavailableError, ValidationError
from nutrition_coach.services.vision import decode_image


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)
    app.include_router(onboarding_router)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)}
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_error_handler(
        request: Request, exc: StoreUnavailableError
    ) -> JSONResponse:
        logger.warning("Store unavailable on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "Data store unavailable"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/meals", status_code=status.HTTP_201_CREATED)
    async def log_meal(
        body: MealCreateRequest, request: Request, user_id: str = Depends(require_user)
    ) -> dict[str, object]:
        """Log a meal, estimating calories when none were given."""
        state_container: AppContainer = request.app.state.container
        logged = await state_container.meal_log_service.log_meal(
            user_id=user_id,
            meal_type=body.meal_type,
            description=body.description,
            timezone_name=body.timezone,
            calories=body.calories,
            consumed_at=body.consumed_at,
        )
        return {
            "success": True,
            "meal": meal_payload(logged.meal),
            "calories_source": logged.calories_source,
            "message": "Meal logged successfully",
        }

    @app.get("/meals/history")
    async def meal_history(
        request: Request,
        timezone: str | None = None,
        date: str | None = None,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Return meals consumed on a local date, newest first."""
        state_container: AppContainer = request.app.state.container
        meals = state_container.meal_log_service.history(user_id, timezone, date)
        return {
            "success": True,
            "meals": [meal_payload(meal) for meal in meals],
            "date": date or "today",
            "count": len(meals),
        }

    @app.get("/meals/summaries")
    async def meal_summaries(
        request: Request,
        timezone: str | None = None,
        limit: int = 30,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Return per-day meal summaries, most recent first."""
        state_container: AppContainer = request.app.state.container
        summaries = state_container.stats_service.daily_summaries(
            user_id, timezone, limit
        )
        return {
            "success": True,
            "summaries": [summary_payload(summary) for summary in summaries],
            "count": len(summaries),
        }

    @app.post("/weight", status_code=status.HTTP_201_CREATED)
    async def log_weight(
        body: WeightCreateRequest,
        request: Request,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Log a weight snapshot."""
        state_container: AppContainer = request.app.state.container
        snapshot = state_container.weight_service.log_weight(
            user_id=user_id,
            weight_value=body.weight_value,
            unit_hint=body.weight_unit_hint,
            timezone_name=body.timezone,
            recorded_at=body.recorded_at,
        )
        return {
            "success": True,
            "weight": weight_payload(snapshot),
            "message": "Weight logged successfully",
        }

    @app.get("/weight/trend")
    async def weight_trend(
        request: Request,
        timezone: str | None = None,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Return the trailing seven-day weight trend."""
        state_container: AppContainer = request.app.state.container
        summary = state_container.weight_service.trend(user_id, timezone)
        return {"success": True, **trend_payload(summary)}

    @app.get("/streak")
    async def streak(
        request: Request, user_id: str = Depends(require_user)
    ) -> dict[str, int]:
        """Return the caller's current logging streak."""
        state_container: AppContainer = request.app.state.container
        current = state_container.streak_service.current_streak(user_id)
        return {"current_streak": current}

    @app.get("/dashboard/metrics")
    async def dashboard_metrics(
        request: Request,
        timezone: str | None = None,
        user_id: str = Depends(require_user),
    ) -> dict[str, object]:
        """Return the dashboard metrics, degrading per metric."""
        state_container: AppContainer = request.app.state.container
        metrics = await state_container.dashboard_service.get_metrics(
            user_id, timezone
        )
        return {
            "success": True,
            "metrics": dashboard_payload(metrics),
            "timestamp": state_container.resolver.now().isoformat(),
        }

    @app.post("/tips")
    async def generate_tip(
        body: TipRequest, request: Request, user_id: str = Depends(require_user)
    ) -> dict[str, str]:
        """Return a short nutrition tip, defaulting to the stored primary goal."""
        state_container: AppContainer = request.app.state.container
        health_goal = body.health_goal
        if health_goal is None:
            primary = state_container.profile_service.primary_goal(user_id)
            if primary is None:
                raise ValidationError("Health goal is required")
            health_goal = primary.display_name
        tip = await state_container.coach_service.generate_tip(health_goal)
        return {"tip": tip}

    @app.post("/food-detection/analyze")
    async def analyze_food(
        body: AnalyzeRequest, request: Request, user_id: str = Depends(require_user)
    ) -> dict[str, object]:
        """Detect food items in a base64 encoded photo."""
        state_container: AppContainer = request.app.state.container
        image_bytes = decode_image(body.image_base64)
        result = await state_container.food_detection_service.analyze(image_bytes)
        return result.model_dump(mode="json")

    @app.post("/food-detection/refine")
    async def refine_food(
        body: RefineRequest, request: Request, user_id: str = Depends(require_user)
    ) -> dict[str, object]:
        """Turn detected items into a meal description."""
        state_container: AppContainer = request.app.state.container
        if not body.items:
            raise ValidationError("At least one item is required")
        current_time = body.current_time or state_container.resolver.now()
        if body.timezone is not None:
            current_time = current_time.astimezone(
                state_container.resolver.zone(body.timezone)
            )
        refined = await state_container.coach_service.refine_detection(
            body.items, current_time
        )
        return {"success": True, **refined.model_dump(mode="json")}

    return app
