# Run from project root: uvicorn nutella_agent.main:app --reload

import logging

from fastapi import FastAPI

from nutella_agent.api.routes import router
from nutella_agent.mcp.server import mcp_router

logging.basicConfig(level=logging.INFO)


app = FastAPI(title="Nutella Agent")
app.include_router(router)
app.include_router(mcp_router, prefix="/mcp")
