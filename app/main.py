from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import configure_logging

from app.api.v1.competency.router import router as competency_router
from app.api.v1.students.router import router as students_router


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Enrollment Admin Backend")

    # CORS: the admin SPA is served from a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["health"])
    async def health() -> dict:
        return {"ok": True, "env": settings.app_env}

    # Routers (competency first: its static paths share the /students prefix)
    app.include_router(competency_router)
    app.include_router(students_router)

    return app


app = create_app()
