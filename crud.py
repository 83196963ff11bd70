import json
import logging
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

import db_models, schemas, auth
from config import Config
from database import transaction, reset_sequences
from seed_data import DEFAULT_TRAINING_DATA

logger = logging.getLogger(__name__)

ALL_TABLES = ["users", "training_images", "training_items", "training_attempts"]


# Users
def get_user_by_username(db: Session, username: str):
    return db.query(db_models.User).filter(db_models.User.username == username).first()


def get_users(db: Session):
    return db.query(db_models.User).order_by(db_models.User.id).all()


def authenticate_user(db: Session, username: str, password: str) -> Optional[db_models.User]:
    """Return the user whose username and password both match exactly, else None."""
    user = get_user_by_username(db, username)
    if not user or not auth.verify_password(password, user.password):
        return None
    return user


def replace_users(db: Session, users: List[schemas.UserIn]):
    """Reconcile the users table with the full list sent by the admin screen.

    Entries carrying an id update that row (the password only when a
    non-empty one is given), entries without an id are created, and stored
    rows missing from the list are deleted, except the ``admin`` account.
    The whole reconciliation is a single transaction.
    """
    with transaction(db):
        existing = {user.id: user for user in db.query(db_models.User).all()}
        payload_ids = {user.id for user in users if user.id}

        for user_id, row in existing.items():
            if user_id in payload_ids:
                continue
            if row.username == Config.DEFAULT_ADMIN_USERNAME:
                logger.info("Refusing to delete protected user %r", row.username)
                continue
            db.delete(row)
        # Deletes go first so a freed username can be reused in the same save
        db.flush()

        for user in users:
            if not user.id:
                continue
            row = existing.get(user.id)
            if row is None:
                logger.warning("Ignoring update for unknown user id %s", user.id)
                continue
            row.username = user.username
            row.role = user.role.value
            if user.password:
                row.password = auth.hash_password(user.password)
        db.flush()

        for user in users:
            if user.id:
                continue
            db.add(db_models.User(
                username=user.username,
                password=auth.hash_password(user.password) if user.password is not None else None,
                role=user.role.value,
            ))

    logger.info("Users saved (%d in payload)", len(users))
    return get_users(db)


# Training data
def get_training_data(db: Session):
    return (
        db.query(db_models.TrainingImage)
        .options(selectinload(db_models.TrainingImage.items))
        .order_by(db_models.TrainingImage.id)
        .all()
    )


def _build_items(image: schemas.TrainingImageSchema):
    return [
        db_models.TrainingItem(prompt=item.prompt, correct_answer=item.correct_answer)
        for item in image.items
    ]


def replace_training_data(db: Session, images: List[schemas.TrainingImageSchema]):
    """Make the stored training set exactly ``images``.

    Applied as a diff: images missing from the payload are deleted with
    their items, kept images are updated in place and get a fresh item
    list, new images are inserted under the caller's id.
    """
    seen = set()
    for image in images:
        if image.id in seen:
            raise ValueError(f"Duplicate training image id: {image.id}")
        seen.add(image.id)

    with transaction(db):
        existing = {image.id: image for image in get_training_data(db)}
        for image_id, row in existing.items():
            if image_id not in seen:
                db.delete(row)
        db.flush()

        for image in images:
            row = existing.get(image.id)
            if row is None:
                row = db_models.TrainingImage(id=image.id)
                db.add(row)
            row.image_url = image.image_url
            row.items = _build_items(image)
        db.flush()
        reset_sequences(db, ["training_images", "training_items"])

    logger.info("Training data replaced with %d images", len(images))


# Attempts
def get_attempts(db: Session):
    return db.query(db_models.TrainingAttempt).order_by(db_models.TrainingAttempt.id).all()


def _dump_results(results: List[schemas.UserResult]) -> str:
    return json.dumps([result.model_dump(by_alias=True) for result in results], ensure_ascii=False)


def create_attempt(db: Session, attempt: schemas.TrainingAttemptCreate):
    # Totals and accuracy are stored as sent; the client computes them
    with transaction(db):
        db_attempt = db_models.TrainingAttempt(
            **attempt.model_dump(exclude={"results"}),
            results=_dump_results(attempt.results),
        )
        db.add(db_attempt)
    db.refresh(db_attempt)
    logger.info("Attempt %s recorded for %s (%.1f%%)", db_attempt.id, db_attempt.username, db_attempt.accuracy)
    return db_attempt


# Bootstrap / backup
def get_app_data(db: Session):
    return {
        "users": get_users(db),
        "training_data": get_training_data(db),
        "all_attempts": get_attempts(db),
    }


def export_backup(db: Session):
    # Passwords are included so a restore is exact
    return {
        "users": get_users(db),
        "training_data": get_training_data(db),
        "attempts": get_attempts(db),
    }


def import_backup(db: Session, backup: schemas.AppBackup):
    """Wipe every table and restore ``backup`` with its ids preserved."""
    with transaction(db):
        db.query(db_models.TrainingItem).delete()
        db.query(db_models.TrainingImage).delete()
        db.query(db_models.TrainingAttempt).delete()
        db.query(db_models.User).delete()

        db.add_all(
            db_models.User(
                id=user.id,
                username=user.username,
                password=auth.hash_password(user.password),
                role=user.role.value,
            )
            for user in backup.users
        )
        for image in backup.training_data:
            row = db_models.TrainingImage(id=image.id, image_url=image.image_url)
            row.items = _build_items(image)
            db.add(row)
        db.add_all(
            db_models.TrainingAttempt(
                **attempt.model_dump(exclude={"results"}),
                results=_dump_results(attempt.results),
            )
            for attempt in backup.attempts
        )
        db.flush()
        reset_sequences(db, ALL_TABLES)

    logger.info(
        "Backup imported: %d users, %d images, %d attempts",
        len(backup.users), len(backup.training_data), len(backup.attempts),
    )


def seed_defaults(db: Session, seed_training_data: bool = True):
    """Create the admin account and the sample training set on an empty store."""
    with transaction(db):
        if not get_user_by_username(db, Config.DEFAULT_ADMIN_USERNAME):
            db.add(db_models.User(
                username=Config.DEFAULT_ADMIN_USERNAME,
                password=auth.hash_password(Config.DEFAULT_ADMIN_PASSWORD),
                role=schemas.Role.ADMIN.value,
            ))
            logger.info("Default admin user created.")

        if seed_training_data and db.query(db_models.TrainingImage.id).first() is None:
            for raw in DEFAULT_TRAINING_DATA:
                image = schemas.TrainingImageSchema.model_validate(raw)
                row = db_models.TrainingImage(id=image.id, image_url=image.image_url)
                row.items = _build_items(image)
                db.add(row)
            logger.info("Initial training data seeded.")
