"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from nutrition_coach.adapters.fdc_client import FdcClient
from nutrition_coach.config import Settings
from nutrition_coach.containers import AppContainer
from nutrition_coach.domain.errors import StoreUnavailableError
from nutrition_coach.domain.meals import MealEntry, MealType
from nutrition_coach.domain.profile import (
    DietaryRestrictions,
    HealthGoal,
    HealthProfile,
)
from nutrition_coach.domain.streaks import StreakCounter, StreakState
from nutrition_coach.domain.weight import WeightSnapshot, WeightUnit
from nutrition_coach.services.cache import InMemoryCache
from nutrition_coach.services.coach import ChatClient, CoachService
from nutrition_coach.services.dashboard import DashboardService
from nutrition_coach.services.meals import MealLogService, MealRepository
from nutrition_coach.services.nutrition import NutritionService
from nutrition_coach.services.profile import ProfileRepository, ProfileService
from nutrition_coach.services.stats import StatsService
from nutrition_coach.services.streaks import StreakRepository, StreakService
from nutrition_coach.services.timezones import TimezoneResolver
from nutrition_coach.services.vision import FoodDetectionService, VisionClient
from nutrition_coach.services.weight import WeightRepository, WeightService

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def fixed_resolver(now: datetime = NOW) -> TimezoneResolver:
    """Resolver whose clock always reports ``now``."""
    return TimezoneResolver(clock=lambda: now)


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: list[MealEntry] = field(default_factory=list)
    now: datetime = NOW
    fail: bool = False
    page_requests: list[int] = field(default_factory=list)

    def insert_meal(
        self,
        user_id: str,
        meal_type: MealType,
        description: str,
        calories: int | None,
        consumed_at: datetime | None = None,
    ) -> MealEntry:
        if self.fail:
            raise StoreUnavailableError("meal store down")
        meal = MealEntry(
            id=uuid4(),
            user_id=user_id,
            meal_type=meal_type,
            description=description,
            calories=calories,
            consumed_at=consumed_at or self.now,
            created_at=self.now,
        )
        self.meals.append(meal)
        return meal

    def list_meals_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealEntry]:
        if self.fail:
            raise StoreUnavailableError("meal store down")
        meals = [
            meal
            for meal in self.meals
            if meal.user_id == user_id and start <= meal.consumed_at < end
        ]
        return sorted(meals, key=lambda meal: meal.consumed_at)

    def list_recent_meals(
        self, user_id: str, limit: int, offset: int = 0
    ) -> list[MealEntry]:
        if self.fail:
            raise StoreUnavailableError("meal store down")
        self.page_requests.append(offset)
        meals = sorted(
            (meal for meal in self.meals if meal.user_id == user_id),
            key=lambda meal: meal.consumed_at,
            reverse=True,
        )
        return meals[offset : offset + limit]

    def add(
        self,
        user_id: str,
        consumed_at: datetime,
        calories: int | None = 500,
        meal_type: MealType = MealType.LUNCH,
    ) -> MealEntry:
        return self.insert_meal(
            user_id, meal_type, "Test meal", calories, consumed_at=consumed_at
        )


@dataclass
class InMemoryWeightRepository(WeightRepository):
    """In-memory weight repository for tests."""

    weights: list[WeightSnapshot] = field(default_factory=list)
    now: datetime = NOW
    fail: bool = False

    def insert_weight(
        self,
        user_id: str,
        weight_value: float,
        unit_hint: WeightUnit,
        recorded_at: datetime | None = None,
    ) -> WeightSnapshot:
        if self.fail:
            raise StoreUnavailableError("weight store down")
        snapshot = WeightSnapshot(
            id=uuid4(),
            user_id=user_id,
            weight_value=weight_value,
            unit_hint=unit_hint,
            recorded_at=recorded_at or self.now,
        )
        self.weights.append(snapshot)
        return snapshot

    def list_weights_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[WeightSnapshot]:
        if self.fail:
            raise StoreUnavailableError("weight store down")
        return [
            weight
            for weight in self.weights
            if weight.user_id == user_id and start <= weight.recorded_at < end
        ]


@dataclass
class InMemoryStreakRepository(StreakRepository):
    """In-memory streak repository for tests."""

    counters: dict[str, StreakCounter] = field(default_factory=dict)
    saves: int = 0
    fail: bool = False

    def get_counter(self, user_id: str) -> StreakCounter | None:
        if self.fail:
            raise StoreUnavailableError("streak store down")
        return self.counters.get(user_id)

    def create_counter(self, user_id: str, state: StreakState) -> StreakCounter | None:
        if user_id in self.counters:
            return None
        return self.save_counter(user_id, state)

    def replace_counter(
        self, user_id: str, expected: StreakState, state: StreakState
    ) -> StreakCounter | None:
        current = self.counters.get(user_id)
        if current is None or current.state != expected:
            return None
        return self.save_counter(user_id, state)

    def save_counter(self, user_id: str, state: StreakState) -> StreakCounter:
        if self.fail:
            raise StoreUnavailableError("streak store down")
        self.saves += 1
        counter = StreakCounter(user_id=user_id, state=state, updated_at=NOW)
        self.counters[user_id] = counter
        return counter


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory onboarding repository for tests."""

    profiles: dict[str, HealthProfile] = field(default_factory=dict)
    goals: dict[str, list[HealthGoal]] = field(default_factory=dict)
    restrictions: dict[str, DietaryRestrictions] = field(default_factory=dict)
    tutorials: dict[str, bool] = field(default_factory=dict)

    def get_profile(self, user_id: str) -> HealthProfile | None:
        return self.profiles.get(user_id)

    def save_profile(self, profile: HealthProfile) -> HealthProfile:
        stored = replace(profile, updated_at=NOW)
        self.profiles[profile.user_id] = stored
        return stored

    def list_goals(self, user_id: str) -> list[HealthGoal]:
        return sorted(self.goals.get(user_id, []), key=lambda g: g.priority_rank)

    def replace_goals(self, user_id: str, goals: list[HealthGoal]) -> list[HealthGoal]:
        self.goals[user_id] = list(goals)
        return list(goals)

    def get_primary_goal(self, user_id: str) -> HealthGoal | None:
        return next(
            (goal for goal in self.goals.get(user_id, []) if goal.is_primary), None
        )

    def get_restrictions(self, user_id: str) -> DietaryRestrictions | None:
        return self.restrictions.get(user_id)

    def save_restrictions(
        self, user_id: str, restrictions: DietaryRestrictions
    ) -> DietaryRestrictions:
        self.restrictions[user_id] = restrictions
        return restrictions

    def record_tutorial(self, user_id: str, completed: bool) -> None:
        self.tutorials[user_id] = completed

    def has_tutorial_record(self, user_id: str) -> bool:
        return user_id in self.tutorials


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "upsert": [],
            "update": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, str, object]] = field(default_factory=list)
    last_orders: list[tuple[str, bool]] = field(default_factory=list)
    last_range: tuple[int, int] | None = None
    on_conflict: str | None = None
    ignore_duplicates: bool = False
    error: Exception | None = None
    executed: list[tuple[str, list[tuple[str, str, object]]]] = field(
        default_factory=list
    )

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def _start(self, action: str) -> "FakeTable":
        self._action = action
        self.last_filters = []
        self.last_orders = []
        self.last_range = None
        return self

    def select(self, *_args) -> "FakeTable":
        return self._start("select")

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_payload = payload
        return self._start("insert")

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_payload = payload
        return self._start("update")

    def delete(self) -> "FakeTable":
        return self._start("delete")

    def upsert(  # type: ignore[no-untyped-def]
        self, payload, on_conflict: str = "", ignore_duplicates: bool = False
    ) -> "FakeTable":
        self.last_payload = payload
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self._start("upsert")

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("eq", column, value))
        return self

    def is_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("is", column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("gte", column, value))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("lt", column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.last_range = (start, end)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_orders.append((column, desc))
        return self

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        action = getattr(self, "_action", "select")
        self.executed.append((action, list(self.last_filters)))
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


@dataclass
class FakeChatClient(ChatClient):
    """Fake chat client returning a fixed reply or raising."""

    reply: str = "Eat more vegetables."
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


@dataclass
class FakeVisionClient(VisionClient):
    """Fake vision client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "items": [
                {"name": "rice", "confidence": 0.92},
                {"name": "chicken breast", "confidence": 0.81},
                {"name": "napkin", "confidence": 0.3},
            ]
        }
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def extract(
        self, *, image_data_url: str, schema: dict[str, object], prompt: str
    ) -> dict[str, object]:
        self.calls.append({"image_data_url": image_data_url, "schema": schema})
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with in-memory responses."""

    calories: dict[str, float] = field(
        default_factory=lambda: {"rice": 130, "chicken breast": 165}
    )
    search_calls: list[str] = field(default_factory=list)

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        self.search_calls.append(query)
        if query not in self.calories:
            return {"foods": []}
        return {
            "foods": [
                {
                    "fdcId": 1,
                    "description": query,
                    "foodNutrients": [
                        {"nutrientId": 1008, "value": self.calories[query]},
                        {"nutrientId": 1003, "value": 2.7},
                        {"nutrientId": 1004, "value": 0.3},
                        {"nutrientId": 1005, "value": 28.2},
                    ],
                }
            ]
        }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
        openai_api_key="openai-key",
        openrouter_api_key="openrouter-key",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def resolver() -> TimezoneResolver:
    return fixed_resolver()


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def weight_repository() -> InMemoryWeightRepository:
    return InMemoryWeightRepository()


@pytest.fixture
def streak_repository() -> InMemoryStreakRepository:
    return InMemoryStreakRepository()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    resolver: TimezoneResolver,
    meal_repository: InMemoryMealRepository,
    weight_repository: InMemoryWeightRepository,
    streak_repository: InMemoryStreakRepository,
    profile_repository: InMemoryProfileRepository,
    chat_client: FakeChatClient,
    vision_client: FakeVisionClient,
) -> AppContainer:
    coach_service = CoachService(
        client=chat_client,
        tip_model=settings.openrouter_tip_model,
        meal_model=settings.openrouter_meal_model,
    )
    streak_service = StreakService(streak_repository, resolver)
    meal_log_service = MealLogService(
        repository=meal_repository,
        estimator=coach_service,
        streak_recorder=streak_service,
        resolver=resolver,
    )
    stats_service = StatsService(meal_repository, resolver)
    weight_service = WeightService(weight_repository, resolver)
    dashboard_service = DashboardService(
        stats_service=stats_service,
        streak_service=streak_service,
        weight_service=weight_service,
        metric_timeout_seconds=settings.dashboard_metric_timeout_seconds,
    )
    nutrition_service = NutritionService(
        fdc_client=FakeFdcClient(),
        cache=InMemoryCache(),
    )
    food_detection_service = FoodDetectionService(
        client=vision_client, nutrition_service=nutrition_service
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        resolver=resolver,
        meal_log_service=meal_log_service,
        stats_service=stats_service,
        streak_service=streak_service,
        weight_service=weight_service,
        dashboard_service=dashboard_service,
        coach_service=coach_service,
        nutrition_service=nutrition_service,
        food_detection_service=food_detection_service,
        profile_service=ProfileService(profile_repository),
        close_resources=close_resources,
    )
