import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasktrail import config
from tasktrail.database import Base, engine
from tasktrail.models import audit, task, user  # noqa: F401  (register tables)
from tasktrail.routers import audit as audit_router, auth, tasks
from tasktrail.utils.upload_limit import UploadSizeLimitMiddleware

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

config.validate_settings()

Base.metadata.create_all(bind=engine)

app = FastAPI(title="TaskTrail API", description="Task management with audit trail and attachments")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

app.add_middleware(UploadSizeLimitMiddleware)

app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(audit_router.router)


@app.get("/")
def read_root():
    return {"message": "TaskTrail API"}


@app.get("/health")
def health():
    return {"status": "ok"}


# Generic error handler to return JSON errors for unexpected exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def run():
    import uvicorn

    uvicorn.run("tasktrail.main:app", host="0.0.0.0", port=config.PORT)
