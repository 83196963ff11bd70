"""HTTP client and application state for the training front end.

``TrainingClient`` wraps the JSON API. ``TrainingApp`` owns the state the
screens render from (current user, cached collections, active view) and
reconciles it after every call.
"""
import json
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

import requests

import schemas
from config import Config
from scoring import summarize_results

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class View(Enum):
    LOGIN = "login"
    DASHBOARD = "dashboard"
    TRAINING = "training"
    RESULTS = "results"
    EXAMINER_SETUP = "examiner_setup"
    ADMIN_DASHBOARD = "admin_dashboard"


def _dump(model):
    return model.model_dump(by_alias=True, mode="json")


class TrainingClient:
    def __init__(self, base_url=None, session=None, timeout=None):
        self.base_url = (base_url or Config.API_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or Config.REQUEST_TIMEOUT

    def _request(self, method, path, payload=None):
        url = f"{self.base_url}{path}"
        if method == "GET":
            response = self.session.get(url, timeout=self.timeout)
        else:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        try:
            body = response.json()
        except ValueError:
            body = None
        if response.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            raise ApiError(message or f"Request failed with status {response.status_code}", response.status_code)
        return body

    def fetch_data(self) -> schemas.AppData:
        return schemas.AppData.model_validate(self._request("GET", "/api/data"))

    def login(self, username, password) -> schemas.UserOut:
        body = self._request("POST", "/api/login", {"username": username, "password": password})
        return schemas.UserOut.model_validate(body)

    def save_users(self, users: List[schemas.UserIn]) -> List[schemas.UserOut]:
        payload = [user.model_dump(by_alias=True, mode="json", exclude_none=True) for user in users]
        return [schemas.UserOut.model_validate(u) for u in self._request("POST", "/api/users", payload)]

    def save_training_data(self, images: List[schemas.TrainingImageSchema]) -> str:
        return self._request("POST", "/api/training-data", [_dump(image) for image in images])["message"]

    def save_attempt(self, attempt: schemas.TrainingAttemptCreate) -> schemas.TrainingAttemptOut:
        return schemas.TrainingAttemptOut.model_validate(self._request("POST", "/api/attempts", _dump(attempt)))

    def export_backup(self) -> dict:
        return self._request("GET", "/api/export")

    def import_backup(self, backup: dict) -> str:
        return self._request("POST", "/api/import", backup)["message"]


@dataclass
class Notification:
    text: str
    kind: str  # "success" | "error"
    expires_at: float

    def is_expired(self, now=None):
        return (now if now is not None else time.time()) >= self.expires_at


@dataclass
class AppState:
    view: View = View.LOGIN
    current_user: Optional[schemas.UserOut] = None
    users: List[schemas.UserOut] = field(default_factory=list)
    training_data: List[schemas.TrainingImageSchema] = field(default_factory=list)
    all_attempts: List[schemas.TrainingAttemptOut] = field(default_factory=list)
    results: List[schemas.UserResult] = field(default_factory=list)
    notification: Optional[Notification] = None
    login_error: Optional[str] = None
    is_loading: bool = True


class TrainingApp:
    """State container the screens read from and call back into.

    Failed calls never raise to the caller: they leave a notification (or a
    login error) on the state and the call is not retried.
    """

    def __init__(self, api: TrainingClient = None, clock=time.time):
        self.api = api or TrainingClient()
        self.clock = clock
        self.state = AppState()

    def notify(self, text, kind):
        self.state.notification = Notification(text, kind, self.clock() + Config.NOTIFICATION_SECONDS)
        log = logger.error if kind == "error" else logger.info
        log(text)

    @property
    def notification(self):
        current = self.state.notification
        if current is not None and current.is_expired(self.clock()):
            self.state.notification = None
            return None
        return current

    def dismiss_notification(self):
        self.state.notification = None

    def load_initial_data(self):
        self.state.is_loading = True
        try:
            data = self.api.fetch_data()
            self.state.users = data.users
            self.state.training_data = data.training_data
            self.state.all_attempts = data.all_attempts
        except (ApiError, requests.RequestException) as e:
            logger.error("Failed to load initial data: %s", e)
            self.notify(str(e) or "Could not connect to the server.", "error")
        finally:
            self.state.is_loading = False

    def login(self, username, password) -> bool:
        self.state.login_error = None
        try:
            user = self.api.login(username, password)
        except (ApiError, requests.RequestException) as e:
            self.state.login_error = str(e) or "Invalid username or password."
            return False
        self.state.current_user = user
        self.state.view = View.DASHBOARD
        return True

    def logout(self):
        self.state.current_user = None
        self.state.view = View.LOGIN

    def set_view(self, view: View):
        if self.state.current_user is None and view is not View.LOGIN:
            raise ValueError("Log in before leaving the login screen")
        self.state.view = view

    def complete_training(self, results: List[schemas.UserResult]) -> bool:
        if self.state.current_user is None:
            return False
        attempt = summarize_results(self.state.current_user.username, int(self.clock() * 1000), results)
        try:
            saved = self.api.save_attempt(attempt)
        except (ApiError, requests.RequestException) as e:
            self.notify(str(e) or "Could not save results.", "error")
            return False
        self.state.all_attempts.append(saved)
        self.state.results = list(results)
        self.state.view = View.RESULTS
        return True

    def save_training_data(self, images: List[schemas.TrainingImageSchema]) -> bool:
        try:
            self.api.save_training_data(images)
        except (ApiError, requests.RequestException) as e:
            self.notify(str(e) or "Failed to save data.", "error")
            return False
        self.state.training_data = list(images)
        self.notify("Training data saved successfully!", "success")
        return True

    def save_users(self, users: List[schemas.UserIn]) -> bool:
        try:
            self.state.users = self.api.save_users(users)
        except (ApiError, requests.RequestException) as e:
            self.notify(str(e) or "Failed to save user data.", "error")
            return False
        return True

    def back_to_dashboard(self):
        self.state.view = View.DASHBOARD

    def restart_training(self):
        self.state.results = []
        self.state.view = View.DASHBOARD

    def export_data(self, directory="."):
        """Download the backup into ``directory``; returns the file path or None."""
        try:
            backup = self.api.export_backup()
        except (ApiError, requests.RequestException) as e:
            self.notify(str(e) or "An unexpected error occurred during export.", "error")
            return None
        date = datetime.fromtimestamp(self.clock(), tz=timezone.utc).date().isoformat()
        path = os.path.join(directory, f"{Config.BACKUP_FILE_PREFIX}-{date}.json")
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(backup, f, indent=2, ensure_ascii=False)
        except OSError as e:
            self.notify(f"Could not write backup file: {e}", "error")
            return None
        self.notify("Data exported successfully!", "success")
        return path

    def import_data(self, json_string) -> bool:
        try:
            data = json.loads(json_string)
        except ValueError:
            self.notify("Failed to import data. The file might be corrupted.", "error")
            return False
        if not isinstance(data, dict) or not all(
            isinstance(data.get(key), list) for key in ("users", "trainingData", "attempts")
        ):
            self.notify("Invalid backup file structure.", "error")
            return False
        try:
            self.api.import_backup(data)
        except (ApiError, requests.RequestException) as e:
            self.notify(str(e) or "Failed to import data on the server.", "error")
            return False
        self.notify("Data imported successfully! Reloading application...", "success")
        self.load_initial_data()
        return True
