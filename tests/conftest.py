import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from brewpos.db import get_session_dep, make_engine, require_schema
from brewpos.main import app
from brewpos.schema import SchemaProvisioner


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'brewpos-test.db'}")
    yield eng
    eng.dispose()


@pytest.fixture()
def provisioner(engine):
    return SchemaProvisioner(engine)


@pytest.fixture()
def session(engine, provisioner):
    provisioner.ensure_ready()
    with Session(engine, expire_on_commit=False) as s:
        yield s


@pytest.fixture()
def client(engine, provisioner):
    def _session():
        with Session(engine, expire_on_commit=False) as s:
            yield s

    app.dependency_overrides[get_session_dep] = _session
    app.dependency_overrides[require_schema] = provisioner.ensure_ready
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
