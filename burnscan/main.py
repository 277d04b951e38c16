import logging
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI

from burnscan.routers.api import router as api_router
from burnscan.routers.burns import router as burns_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Burn Severity Scan",
    description="FastAPI application for burn severity classification with open-set rejection",
    version="1.0.0"
)

app.include_router(api_router)
app.include_router(burns_router)
