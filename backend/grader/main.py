import logging

from fastapi import FastAPI

from .db import init_schema
from .settings import settings
from .routers import health
from .routers import scoring
from .routers import holistic
from .routers import planning

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Answer Grading API")
app.include_router(health.router)
app.include_router(scoring.router)
app.include_router(holistic.router)
app.include_router(planning.router)


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	init_schema()
