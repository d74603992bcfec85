from fastapi import APIRouter

from auto_mute.web.routes.jobs import router as jobs_router
from auto_mute.web.routes.system import router as system_router
from auto_mute.web.routes.upload import router as upload_router

api_router = APIRouter()
api_router.include_router(upload_router)
api_router.include_router(jobs_router)
api_router.include_router(system_router)
