import json
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True, alias_generator=to_camel)


class Role(str, Enum):
    ADMIN = "Admin"
    EXAMINER = "Examiner"
    TRAINEE = "Trainee"


# Users
class UserOut(CamelModel):
    id: int
    username: str
    role: Role


class UserIn(CamelModel):
    # No id: create. With id: update.
    id: Optional[int] = None
    username: str
    password: Optional[str] = None
    role: Role


class BackupUser(UserOut):
    password: str


class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


# Training data
class TrainingItemSchema(CamelModel):
    prompt: str
    correct_answer: str


class TrainingImageSchema(CamelModel):
    id: int
    image_url: str
    items: List[TrainingItemSchema] = []


# Attempts
class UserResultItem(CamelModel):
    prompt: str
    user_input: str
    is_correct: bool


class UserResult(CamelModel):
    image_id: int
    items: List[UserResultItem]
    time_taken: int  # seconds


class TrainingAttemptCreate(CamelModel):
    username: str
    timestamp: int
    results: List[UserResult]
    total_time: int
    total_items: int
    correct_items: int
    accuracy: float

    @field_validator("results", mode="before")
    @classmethod
    def load_results_blob(cls, value):
        # The store keeps results as a JSON string
        if isinstance(value, (str, bytes)):
            return json.loads(value)
        return value


class TrainingAttemptOut(TrainingAttemptCreate):
    id: int


# Payloads
class AppData(CamelModel):
    users: List[UserOut]
    training_data: List[TrainingImageSchema]
    all_attempts: List[TrainingAttemptOut]


class AppBackup(CamelModel):
    users: List[BackupUser]
    training_data: List[TrainingImageSchema]
    attempts: List[TrainingAttemptOut]


class Message(BaseModel):
    message: str
