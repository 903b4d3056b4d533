from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from motor.motor_asyncio import AsyncIOMotorClient
import logging

from quizrank.config import MONGO_URL, MONGO_DB_NAME, CORS_ORIGINS, ENVIRONMENT
from quizrank.logging_config import configure_logging
from quizrank.quiz.app import setup_quiz_routes, startup_quiz_system
from quizrank.quiz.errors import QuizError

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Quiz Ranking Service")

# MongoDB Configuration
client = AsyncIOMotorClient(MONGO_URL)
db = client[MONGO_DB_NAME]


@app.on_event("startup")
async def startup_event():
    await startup_quiz_system(db)
    logger.info("Quiz Ranking Service started (%s)", ENVIRONMENT)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== ERROR HANDLERS ====================

@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={
        "message": "Missing or invalid fields",
        "errors": jsonable_encoder(exc.errors())
    })


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = f"Not Found - {request.url.path}"
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)

# ==================== ROUTER REGISTRATION ====================

setup_quiz_routes(app)


@app.get("/")
async def root():
    return {"message": "Quiz Ranking API is running..."}


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
