import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .database import Database
from .errors import LingoQuizError
from .globals import database as default_database
from .log_handler import SQLiteHandler
from .models import QuizKind
from .quiz_store import QuizStore
from .router import router
from .vocabulary import VocabularyManager

logger = logging.getLogger(__name__)


# --- Logging Setup ---
def setup_logging(database: Optional[Database] = None):
    app_logger = logging.getLogger(settings.PROJECT_NAME)
    app_logger.setLevel(logging.INFO)
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")

    if not any(isinstance(h, RotatingFileHandler) for h in app_logger.handlers):
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        log_path = os.path.join(settings.LOG_DIR, settings.LOG_FILE)
        file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3)
        file_handler.setFormatter(formatter)
        app_logger.addHandler(file_handler)

    if database is not None:
        for handler in [h for h in app_logger.handlers if isinstance(h, SQLiteHandler)]:
            app_logger.removeHandler(handler)
        db_handler = SQLiteHandler(database)
        db_handler.setFormatter(formatter)
        app_logger.addHandler(db_handler)

    # Also configure root logger to see logs from other libraries
    logging.basicConfig(level=logging.INFO)


# --- Lifecycle ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.database.init_db()
    logger.info(f"Database ready at {app.state.database.path}")
    yield


# --- Error handlers ---
async def lingoquiz_error_handler(request: Request, exc: LingoQuizError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "Invalid input", "details": jsonable_encoder(exc.errors())},
        status_code=400,
    )


# --- App Factory ---
def create_app(database: Optional[Database] = None) -> FastAPI:
    database = database or default_database
    setup_logging(database)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
        root_path=settings.ROOT_PATH,
    )
    app.state.database = database
    app.state.vocab_manager = VocabularyManager(database)
    app.state.vocab_quiz_store = QuizStore(database, QuizKind.VOCABULARY)
    app.state.practice_store = QuizStore(database, QuizKind.PRACTICE)

    app.add_exception_handler(LingoQuizError, lingoquiz_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(router)

    return app
