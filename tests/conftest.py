"""Shared fixtures: a throwaway SQLite store and a Flask test app over it."""

import pytest

from app import create_app
from config import TestConfig
from service import DocumentService
from storage import SQLiteRecordStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cv_builder.db")


@pytest.fixture
def store(db_path):
    s = SQLiteRecordStore(db_path)
    yield s
    s.close()


@pytest.fixture
def service(store):
    return DocumentService(store)


@pytest.fixture
def app(db_path):
    app = create_app(TestConfig, overrides={"SQLITE_PATH": db_path})
    yield app
    app.extensions["cv_store"].close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sample_cv():
    return {
        "personalInfo": {"fullName": "Ana Pérez", "email": "ana@example.com", "photo": "data:image/png;base64,iVBORw0KGgo="},
        "professionalProfile": "Contadora con 5 años de experiencia.",
        "experience": [
            {"id": "e1", "company": "ACME", "position": "Auxiliar Contable", "current": True, "description": ""},
        ],
        "skills": [{"id": "s1", "name": "Manejo de SAP", "level": "Intermedio", "category": "Técnica"}],
        "otherInterests": {"availability": "Inmediata", "mobility": True, "license": "B", "other": ""},
        "design": {"fontPairing": "lato-roboto"},
    }
