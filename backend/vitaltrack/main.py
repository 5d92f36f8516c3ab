"""VitalTrack API Server - Entry point.

Serves the health metrics, recommendations and water intake JSON API with
Starlette under uvicorn.
"""

import logging
import os
from typing import Any

import uvicorn
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .core.calculator import bmi_category
from .core.errors import InvalidInputError, VitalTrackError
from .core.hydration import DEFAULT_WATER_TARGET_LITERS, resolve_timezone
from .core.models import MetricsUpdate, NewUser, RecommendationKind, User
from .core.units import cm_to_feet_inches, kg_to_lb, round_half_up
from .shell.firestore_client import FirestoreConfig, FirestoreRepository
from .shell.generator import DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS, GeneratorConfig, OpenAIRecommendationGenerator
from .shell.health_service import HealthService
from .shell.recommendation_cache import RecommendationCache
from .shell.repository import InMemoryRepository, Repository, seed_demo_user
from .shell.water_tracker import WaterTracker


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ==================== Service Wiring ====================


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def build_repository() -> Repository:
    """Create the storage backend selected by STORAGE_BACKEND."""
    backend = os.environ.get("STORAGE_BACKEND", "memory").lower()
    if backend == "firestore":
        config = FirestoreConfig(
            project_id=os.environ.get("FIRESTORE_PROJECT"),
            database=os.environ.get("FIRESTORE_DATABASE", "vitaltrack"),
        )
        return FirestoreRepository(config)
    if backend != "memory":
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")

    repository = InMemoryRepository()
    if _env_flag("SEED_DEMO_USER", True):
        seed_demo_user(repository)
    return repository


def build_service() -> HealthService:
    """Create the health service from environment configuration."""
    repository = build_repository()
    generator = OpenAIRecommendationGenerator(
        GeneratorConfig(
            api_key=os.environ.get("OPENAI_API_KEY"),
            model=os.environ.get("OPENAI_MODEL", DEFAULT_MODEL),
            timeout_seconds=float(
                os.environ.get("GENERATOR_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
            ),
        )
    )
    water = WaterTracker(
        repository,
        tz=resolve_timezone(os.environ.get("VITALTRACK_TIMEZONE", "UTC")),
        default_target=float(os.environ.get("WATER_TARGET_LITERS", DEFAULT_WATER_TARGET_LITERS)),
    )
    return HealthService(repository, RecommendationCache(repository, generator), water)


# ==================== Request Helpers ====================


def _service(request: Request) -> HealthService:
    return request.app.state.service


def _user_id(request: Request) -> int:
    try:
        return int(request.path_params["user_id"])
    except ValueError:
        raise InvalidInputError("Invalid user ID") from None


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInputError("Request body must be valid JSON") from None
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")
    return body


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "Validation error: " + "; ".join(parts)


def _profile(user: User) -> dict[str, Any]:
    data = user.public_dict()
    feet, inches = cm_to_feet_inches(user.height)
    data["display"] = {
        "weight_lb": round_half_up(kg_to_lb(user.weight)),
        "target_weight_lb": round_half_up(kg_to_lb(user.target_weight)),
        "height_feet": feet,
        "height_inches": inches,
    }
    return data


# ==================== Route Handlers ====================


async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "ok", "service": "vitaltrack"})


async def create_user(request: Request) -> JSONResponse:
    """Create a user profile."""
    body = await _json_body(request)
    try:
        profile = NewUser.model_validate(body)
    except ValidationError as e:
        raise InvalidInputError(_validation_message(e)) from None

    user = _service(request).create_user(profile)
    return JSONResponse(_profile(user), status_code=201)


async def get_user(request: Request) -> JSONResponse:
    """Return a user's profile without the password."""
    user = _service(request).get_user(_user_id(request))
    return JSONResponse(_profile(user))


async def update_metrics(request: Request) -> JSONResponse:
    """Record new biometrics and refresh both recommendation kinds."""
    service = _service(request)
    user = service.get_user(_user_id(request))

    body = await _json_body(request)
    try:
        update = MetricsUpdate.model_validate(body)
    except ValidationError as e:
        raise InvalidInputError(_validation_message(e)) from None

    result = await service.update_metrics(user, update)
    return JSONResponse({
        "user": _profile(result.user),
        "message": "Metrics updated successfully",
        "health_metric": result.health_metric.model_dump(mode="json"),
        "fitness_recommendations": result.fitness.model_dump(mode="json"),
        "nutrition_recommendations": result.nutrition.model_dump(mode="json"),
    })


async def get_health_metrics(request: Request) -> JSONResponse:
    """Latest health metric (bootstrapped from the profile when absent)."""
    metric = _service(request).current_health_metric(_user_id(request))
    data = metric.model_dump(mode="json")
    data["bmi_category"] = bmi_category(metric.bmi)
    return JSONResponse(data)


async def get_health_metric_history(request: Request) -> JSONResponse:
    """Every recorded health metric, oldest first."""
    history = _service(request).health_metric_history(_user_id(request))
    return JSONResponse([m.model_dump(mode="json") for m in history])


async def get_fitness_recommendations(request: Request) -> JSONResponse:
    recommendation = await _service(request).recommendation(
        _user_id(request), RecommendationKind.FITNESS
    )
    return JSONResponse(recommendation.model_dump(mode="json"))


async def get_nutrition_recommendations(request: Request) -> JSONResponse:
    recommendation = await _service(request).recommendation(
        _user_id(request), RecommendationKind.NUTRITION
    )
    return JSONResponse(recommendation.model_dump(mode="json"))


async def get_water_intake(request: Request) -> JSONResponse:
    """Today's water intake against the target (optional ?target=liters)."""
    user_id = _user_id(request)
    target = None
    if "target" in request.query_params:
        try:
            target = float(request.query_params["target"])
        except ValueError:
            raise InvalidInputError("Invalid water target") from None

    status = _service(request).water_status(user_id, target)
    return JSONResponse(status.model_dump(mode="json"))


async def add_water_intake(request: Request) -> JSONResponse:
    """Record a drink and return today's updated status."""
    service = _service(request)
    user = service.get_user(_user_id(request))

    body = await _json_body(request)
    amount = body.get("amount", body.get("amount_liters"))
    status = service.record_water(user, amount)
    return JSONResponse(status.model_dump(mode="json"))


async def get_water_history(request: Request) -> JSONResponse:
    """Per-day totals for the last N days (?days=7)."""
    user_id = _user_id(request)
    try:
        days = int(request.query_params.get("days", 7))
    except ValueError:
        raise InvalidInputError("Invalid number of days") from None

    history = _service(request).water_history(user_id, days)
    return JSONResponse([d.model_dump(mode="json") for d in history])


# ==================== Error Handling ====================


async def handle_vitaltrack_error(request: Request, exc: VitalTrackError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


# ==================== Create ASGI App ====================


def create_app(service: HealthService | None = None) -> Starlette:
    """Create the Starlette application.

    Args:
        service: Health service to serve (built from the environment if None)
    """
    routes = [
        Route("/api/health", health_check, methods=["GET"]),
        Route("/api/user", create_user, methods=["POST"]),
        Route("/api/user/{user_id}", get_user, methods=["GET"]),
        Route("/api/user/{user_id}/metrics", update_metrics, methods=["POST"]),
        Route("/api/user/{user_id}/health-metrics", get_health_metrics, methods=["GET"]),
        Route(
            "/api/user/{user_id}/health-metrics/history",
            get_health_metric_history,
            methods=["GET"],
        ),
        Route(
            "/api/user/{user_id}/fitness-recommendations",
            get_fitness_recommendations,
            methods=["GET"],
        ),
        Route(
            "/api/user/{user_id}/nutrition-recommendations",
            get_nutrition_recommendations,
            methods=["GET"],
        ),
        Route("/api/user/{user_id}/water-intake", get_water_intake, methods=["GET"]),
        Route("/api/user/{user_id}/water-intake", add_water_intake, methods=["POST"]),
        Route("/api/user/{user_id}/water-intake/history", get_water_history, methods=["GET"]),
    ]

    origins = os.environ.get("CORS_ORIGINS", "http://localhost:5173")

    app = Starlette(
        routes=routes,
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
        ],
        exception_handlers={VitalTrackError: handle_vitaltrack_error},
    )
    app.state.service = service or build_service()
    return app


# Create app at module level for uvicorn
app = create_app()


def main() -> None:
    """Run the server."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "0.0.0.0")

    logger.info("Starting VitalTrack API on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
