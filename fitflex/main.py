"""FastAPI application entry point."""
from fastapi import FastAPI

from fitflex.logging_config import configure_logging
from fitflex.routers import ai, chat, health, preferences, strava, training_plans


configure_logging()

app = FastAPI(title="Fitflex Coach API")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(health.router)
app.include_router(strava.router)
app.include_router(preferences.router)
app.include_router(training_plans.router)
app.include_router(chat.router)
app.include_router(ai.router)
