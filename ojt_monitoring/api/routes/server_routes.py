"""
Server Routes

GET /  - Welcome message and database status
"""

from fastapi import APIRouter

from ojt_monitoring.db.mongodb import test_mongo_connection

router = APIRouter(tags=["Server"])

WELCOME_MESSAGE = "You're successfully connected to OJT MONITORING SYSTEM API."


@router.get("/")
async def welcome():
    """API welcome message with a live database check."""
    return {
        "message": WELCOME_MESSAGE,
        "database_status": "connected" if test_mongo_connection() else "disconnected",
    }
