import logging

from fastapi import FastAPI

from .config import LOG_LEVEL
from .database import Base, engine
from .routes import schedule, settings

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title="ScheduleX API",
    description="Deadline-aware task scheduling: assigns tasks to free calendar time and reports conflicts and workload",
    version="1.0.0"
)

# Include routers
app.include_router(schedule.router, prefix="/schedule", tags=["schedule"])
app.include_router(settings.router, prefix="/settings", tags=["settings"])


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to ScheduleX API",
        "version": "1.0.0",
        "endpoints": {
            "optimize": "POST /schedule/optimize - Optimize tasks supplied in the request body",
            "optimize_stored": "POST /schedule/{user_key}/optimize - Optimize saved tasks and cache the result",
            "latest": "GET /schedule/{user_key}/latest - Latest cached result",
            "apply": "POST /schedule/{user_key}/apply - Create calendar events for the latest result",
            "preferences": "GET|PUT /settings/{user_key}/preferences",
            "tasks": "GET|PUT /settings/{user_key}/tasks",
            "calendar_tokens": "GET|PUT|DELETE /settings/{user_key}/calendar-tokens - Connect Google or Outlook calendars",
        },
        "swagger_ui": "/docs - Interactive API documentation",
        "redoc": "/redoc - Alternative API documentation"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}


# This allows running the app directly with: python -m schedulex.main
if __name__ == "__main__":
    import uvicorn
    print("🚀 Starting ScheduleX API...")
    print("📖 API Documentation: http://localhost:8000/docs")
    uvicorn.run("schedulex.main:app", host="0.0.0.0", port=8000, reload=True)
