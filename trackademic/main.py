# trackademic/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trackademic.api import activities, attendance, courses, exam_scores, grades, notifications, parents, sessions
from trackademic.core.config import settings
from trackademic.db.backend import BackendError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Trackademic")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    # Сообщение бэкенда, если есть, иначе общее
    logger.error(f"❌ [Backend] {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content={"detail": exc.message or "Something went wrong. Please try again."},
    )


app.include_router(courses.router, prefix="/api", tags=["courses"])
app.include_router(grades.router, prefix="/api", tags=["grades"])
app.include_router(attendance.router, prefix="/api", tags=["attendance"])
app.include_router(sessions.router, prefix="/api", tags=["sessions"])
app.include_router(activities.router, prefix="/api", tags=["activities"])
app.include_router(parents.router, prefix="/api", tags=["parents"])
app.include_router(exam_scores.router, prefix="/api", tags=["exam-scores"])
app.include_router(notifications.router, prefix="/api", tags=["notifications"])
