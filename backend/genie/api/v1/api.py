from fastapi import APIRouter
from genie.api.v1.endpoints import projects, estimation, chat

api_router = APIRouter()
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(estimation.router, prefix="/estimation", tags=["estimation"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
