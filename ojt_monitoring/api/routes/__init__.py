"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from ojt_monitoring.api.routes.announcement_routes import router as announcement_router
from ojt_monitoring.api.routes.archive_routes import router as archive_router
from ojt_monitoring.api.routes.auth_routes import router as auth_router
from ojt_monitoring.api.routes.company_routes import router as company_router
from ojt_monitoring.api.routes.conversation_routes import router as conversation_router
from ojt_monitoring.api.routes.document_routes import router as document_router
from ojt_monitoring.api.routes.dtr_routes import router as dtr_router
from ojt_monitoring.api.routes.message_routes import router as message_router
from ojt_monitoring.api.routes.requirement_routes import router as requirement_router
from ojt_monitoring.api.routes.server_routes import router as server_router
from ojt_monitoring.api.routes.task_routes import router as task_router
from ojt_monitoring.api.routes.user_routes import router as user_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(server_router)
api_router.include_router(auth_router)
api_router.include_router(user_router)
api_router.include_router(company_router)
api_router.include_router(dtr_router)
api_router.include_router(document_router)
api_router.include_router(task_router)
api_router.include_router(announcement_router)
api_router.include_router(requirement_router)
api_router.include_router(conversation_router)
api_router.include_router(message_router)
api_router.include_router(archive_router)
