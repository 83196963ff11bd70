import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import database, db_models, schemas, crud
from config import Config

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ------------------- Startup -------------------
def init_db():
    db_models.Base.metadata.create_all(bind=database.engine)
    db = database.SessionLocal()
    try:
        crud.seed_defaults(db, seed_training_data=Config.SEED_TRAINING_DATA)
    finally:
        db.close()
    logger.info("Database is ready.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Data-Entry Training API", lifespan=lifespan)
get_db = database.get_db

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------- Errors: always {"error": ...} -------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request body: {location} {first.get('msg', '')}".strip()
    else:
        message = "Invalid request body"
    return JSONResponse({"error": message}, status_code=400)


def store_error(action: str, exc: Exception) -> JSONResponse:
    logger.exception("Failed to %s", action)
    return JSONResponse({"error": str(exc)}, status_code=500)


# ------------------- Bootstrap data -------------------
@app.get("/api/data", response_model=schemas.AppData)
def get_data(db: Session = Depends(get_db)):
    try:
        return crud.get_app_data(db)
    except Exception as e:
        return store_error("load application data", e)


# ------------------- Login -------------------
@app.post("/api/login", response_model=schemas.UserOut)
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    if not credentials.username or not credentials.password:
        raise HTTPException(status_code=400, detail="Username and password are required")
    try:
        user = crud.authenticate_user(db, credentials.username, credentials.password)
    except Exception as e:
        return store_error("look up credentials", e)
    if not user:
        logger.info("Failed login for %r", credentials.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return user


# ------------------- Users -------------------
@app.post("/api/users", response_model=List[schemas.UserOut])
def save_users(users: List[schemas.UserIn], db: Session = Depends(get_db)):
    try:
        return crud.replace_users(db, users)
    except Exception as e:
        return store_error("save users", e)


# ------------------- Training data -------------------
@app.post("/api/training-data", response_model=schemas.Message)
def save_training_data(images: List[schemas.TrainingImageSchema], db: Session = Depends(get_db)):
    try:
        crud.replace_training_data(db, images)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        return store_error("save training data", e)
    return {"message": "Training data saved successfully."}


# ------------------- Attempts -------------------
@app.post("/api/attempts", response_model=schemas.TrainingAttemptOut, status_code=201)
def save_attempt(attempt: schemas.TrainingAttemptCreate, db: Session = Depends(get_db)):
    try:
        return crud.create_attempt(db, attempt)
    except Exception as e:
        return store_error("save training attempt", e)


# ------------------- Export / Import -------------------
@app.get("/api/export", response_model=schemas.AppBackup)
def export_data(db: Session = Depends(get_db)):
    try:
        return crud.export_backup(db)
    except Exception as e:
        return store_error("export data", e)


@app.post("/api/import", response_model=schemas.Message)
def import_data(backup: schemas.AppBackup, db: Session = Depends(get_db)):
    try:
        crud.import_backup(db, backup)
    except Exception as e:
        return store_error("import data", e)
    return {"message": "Data imported successfully."}


@app.get("/")
def read_root():
    return {"status": "ok", "message": "API is running"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=Config.HOST, port=Config.PORT, reload=True)
