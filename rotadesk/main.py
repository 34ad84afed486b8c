from fastapi import FastAPI
from rotadesk.api.routes import schedules
from rotadesk.core.logging_config import setup_logging

setup_logging()

app = FastAPI(title="Rotadesk API", version="0.1.0")

app.include_router(schedules.router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {"status": "ok"}
