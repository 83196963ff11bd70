import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import crud, database, db_models, main


@pytest.fixture
def engine():
    engine = database.make_engine("sqlite://", poolclass=StaticPool)
    db_models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    crud.seed_defaults(db)
    return db


@pytest.fixture
def client(session_factory, seeded):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[database.get_db] = override_get_db
    # No context manager: the lifespan would initialise the configured database
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def user_rows(session_factory):
    """Snapshot of the users table, read through a fresh session."""
    def read():
        session = session_factory()
        try:
            return sorted(
                (u.id, u.username, u.password, u.role)
                for u in session.query(db_models.User).all()
            )
        finally:
            session.close()
    return read
