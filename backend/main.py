import logging
import uvicorn
from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from config import CORS_ORIGINS, RESET_DB_ON_STARTUP, SEED_TEST_DATA
from database import create_tables, delete_tables
from router.auth import router as auth_router
from router.user import router as user_router
from router.event import router as event_router
from router.application import router as application_router
from router.organization import router as organization_router
from router.notification import router as notification_router
from router.admin import router as admin_router
from router.functions import router as functions_router
from init_test_data import init_all_test_data
from utils.log import setup_logging




logger = logging.getLogger(__name__)

# reachable without a bearer token
PUBLIC_PATHS = {
    ("/auth/login", "post"),
    ("/events", "get"),
    ("/events/{event_id}", "get"),
    ("/user/{user_id}/public", "get"),
    ("/functions/process-expired-events", "post"),
    ("/functions/send-event-reminders", "post"),
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if RESET_DB_ON_STARTUP:
        await delete_tables()
        logger.info("Database cleared")
    await create_tables()
    logger.info("Database ready")
    if SEED_TEST_DATA:
        await init_all_test_data()
    yield
    logger.info("Shutting down")


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="ImpactoLocal API",
        version="1.0.0",
        description="Backend for ImpactoLocal - volunteers, organizations and events",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "Bearer": {
            "type": "http",
            "scheme": "bearer"
        }
    }
    
    for path, operations in openapi_schema["paths"].items():
        for method, operation in operations.items():
            if (path, method) not in PUBLIC_PATHS:
                operation["security"] = [{"Bearer": []}]
    
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app = FastAPI(lifespan=lifespan)
app.openapi = custom_openapi

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(event_router)
app.include_router(application_router)
app.include_router(organization_router)
app.include_router(notification_router)
app.include_router(admin_router)
app.include_router(functions_router)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)



if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        reload=True,
        port=3001,
        host="0.0.0.0"
    )
