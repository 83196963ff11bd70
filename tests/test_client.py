import json
import os

import pytest
import requests

import schemas
from client import ApiError, TrainingApp, TrainingClient, View

NOW = 1700000000.0  # 2023-11-14 UTC


@pytest.fixture
def app(client):
    api = TrainingClient(base_url="http://testserver", session=client)
    training_app = TrainingApp(api, clock=lambda: NOW)
    training_app.load_initial_data()
    return training_app


class OfflineSession:
    def get(self, url, **kwargs):
        raise requests.ConnectionError("Could not connect to the server.")

    post = get


def test_initial_load_fills_state(app):
    state = app.state
    assert not state.is_loading
    assert state.view is View.LOGIN
    assert [u.username for u in state.users] == ["admin"]
    assert [image.id for image in state.training_data] == [1, 2, 3]
    assert state.all_attempts == []


def test_initial_load_failure_leaves_empty_state():
    training_app = TrainingApp(TrainingClient(base_url="http://offline", session=OfflineSession()), clock=lambda: NOW)
    training_app.load_initial_data()
    state = training_app.state
    assert not state.is_loading
    assert state.users == [] and state.training_data == [] and state.all_attempts == []
    assert training_app.notification.kind == "error"
    assert "connect" in training_app.notification.text


def test_login_and_logout_switch_views(app):
    assert not app.login("admin", "wrong")
    assert app.state.login_error == "Invalid credentials"
    assert app.state.view is View.LOGIN

    assert app.login("admin", "admin")
    assert app.state.login_error is None
    assert app.state.current_user.username == "admin"
    assert app.state.view is View.DASHBOARD

    app.logout()
    assert app.state.current_user is None
    assert app.state.view is View.LOGIN


def test_set_view_requires_login(app):
    with pytest.raises(ValueError):
        app.set_view(View.ADMIN_DASHBOARD)
    app.login("admin", "admin")
    app.set_view(View.ADMIN_DASHBOARD)
    assert app.state.view is View.ADMIN_DASHBOARD


def test_complete_training_scores_and_stores_attempt(app):
    from scoring import score_image

    app.login("admin", "admin")
    app.set_view(View.TRAINING)
    image = app.state.training_data[2]
    answers = [item.correct_answer for item in image.items]
    answers[0] = "wrong"
    results = [score_image(image, answers, time_taken=20)]

    assert app.complete_training(results)
    assert app.state.view is View.RESULTS
    attempt = app.state.all_attempts[-1]
    assert attempt.id == 1
    assert attempt.username == "admin"
    assert attempt.timestamp == int(NOW * 1000)
    assert (attempt.total_items, attempt.correct_items, attempt.accuracy) == (5, 4, 80.0)
    assert app.state.results == results

    app.restart_training()
    assert app.state.results == []
    assert app.state.view is View.DASHBOARD


def test_complete_training_without_user_is_ignored(app):
    assert not app.complete_training([])
    assert app.state.all_attempts == []


def test_save_users_uses_server_ids(app):
    admin = app.state.users[0]
    ok = app.save_users([
        schemas.UserIn(id=admin.id, username="admin", role=schemas.Role.ADMIN),
        schemas.UserIn(username="tina", password="pw", role=schemas.Role.TRAINEE),
    ])
    assert ok
    tina = [u for u in app.state.users if u.username == "tina"][0]
    assert tina.id is not None and tina.role is schemas.Role.TRAINEE


def test_save_users_failure_notifies_and_keeps_state(app):
    before = list(app.state.users)
    ok = app.save_users([
        schemas.UserIn(username="dup", password="a", role=schemas.Role.TRAINEE),
        schemas.UserIn(username="dup", password="b", role=schemas.Role.TRAINEE),
    ])
    assert not ok
    assert app.state.users == before
    assert app.notification.kind == "error"


def test_save_training_data_is_optimistic(app):
    images = [schemas.TrainingImageSchema(id=8, image_url="https://example.com/8.png", items=[
        schemas.TrainingItemSchema(prompt="1", correct_answer="A"),
    ])]
    assert app.save_training_data(images)
    assert app.state.training_data == images
    assert app.notification.text == "Training data saved successfully!"


def test_notification_expires():
    now = [NOW]
    training_app = TrainingApp(TrainingClient(session=OfflineSession()), clock=lambda: now[0])
    training_app.notify("boom", "error")
    assert training_app.notification is not None
    now[0] += 5
    assert training_app.notification is None


def test_export_writes_dated_backup_file(app, tmp_path):
    path = app.export_data(str(tmp_path))
    assert os.path.basename(path) == "edms-fdf-training-backup-2023-11-14.json"
    with open(path, encoding="utf-8") as f:
        backup = json.load(f)
    assert backup["users"][0]["password"] == "admin"
    assert len(backup["trainingData"]) == 3


def test_export_to_missing_directory_notifies(app, tmp_path):
    path = app.export_data(str(tmp_path / "does-not-exist"))
    assert path is None
    assert app.notification.kind == "error"
    assert "Could not write backup file" in app.notification.text


def test_import_round_trip_reloads_state(app, tmp_path):
    path = app.export_data(str(tmp_path))
    with open(path, encoding="utf-8") as f:
        backup = json.load(f)
    backup["users"].append({"id": 7, "username": "imported", "password": "pw", "role": "Examiner"})

    assert app.import_data(json.dumps(backup))
    assert [u.username for u in app.state.users] == ["admin", "imported"]
    assert app.notification.kind == "success"


@pytest.mark.parametrize("payload", [
    "not json",
    json.dumps([]),
    json.dumps({"users": [], "trainingData": []}),
])
def test_import_rejects_bad_files_client_side(app, payload):
    assert not app.import_data(payload)
    assert app.notification.kind == "error"
    assert [u.username for u in app.state.users] == ["admin"]


def test_api_error_carries_status(client):
    api = TrainingClient(base_url="http://testserver", session=client)
    with pytest.raises(ApiError) as excinfo:
        api.login("admin", "nope")
    assert excinfo.value.status_code == 401
    assert str(excinfo.value) == "Invalid credentials"
