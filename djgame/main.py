import logging

from fastapi import FastAPI

from djgame.api.routes import router
from djgame.config import load_settings

app = FastAPI(title="dj-of-the-day", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=load_settings().log_level)
logger = logging.getLogger(__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "dj-of-the-day", "version": "0.1.0"}
