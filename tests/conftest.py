import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AI_KILL_SWITCH"] = "false"

from app.database import Base, get_db
from app.main import app
from app.routers.deps import get_scoring_client
from fakes import FakeScorer
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    # Use sessionmaker with the active connection
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def fake_scorer():
    return FakeScorer(scores={"Quality": 8, "Speed": 5})

@pytest.fixture(scope="function")
def org(db_session):
    """Create a default organization for tests."""
    from app.models.organization import Organization
    import uuid
    org = Organization(name=f"Alpha Corp {uuid.uuid4()}", selected_metrics=[])
    db_session.add(org)
    db_session.commit()
    return org

@pytest.fixture(scope="function")
def make_employee(db_session, org):
    """Factory for employees of the default organization."""
    from app.models.employee import Employee, EmployeeRole
    import uuid

    def _make(name, manager=None, role=EmployeeRole.EMPLOYEE, **kwargs):
        employee = Employee(
            organization_id=org.id,
            name=name,
            email=f"{name.lower().replace(' ', '.')}.{uuid.uuid4().hex[:8]}@alphacorp.com",
            role=role,
            manager_id=manager.id if manager is not None else None,
            **kwargs,
        )
        db_session.add(employee)
        db_session.commit()
        return employee
    return _make

@pytest.fixture(scope="function")
def team(make_employee):
    """
    owner
    ├── lead (manager)
    │   ├── alice
    │   ├── bob
    │   └── sub_lead (manager)
    │       └── carol
    │           └── dave   (three levels below lead)
    └── other_lead (manager)
        └── erin
    """
    from app.models.employee import EmployeeRole

    owner = make_employee("Owner", role=EmployeeRole.MANAGER, is_account_owner=True)
    lead = make_employee("Lead", manager=owner, role=EmployeeRole.MANAGER)
    alice = make_employee("Alice", manager=lead)
    bob = make_employee("Bob", manager=lead)
    sub_lead = make_employee("Sub Lead", manager=lead, role=EmployeeRole.MANAGER)
    carol = make_employee("Carol", manager=sub_lead)
    dave = make_employee("Dave", manager=carol)
    other_lead = make_employee("Other Lead", manager=owner, role=EmployeeRole.MANAGER)
    erin = make_employee("Erin", manager=other_lead)
    return {
        "owner": owner, "lead": lead, "alice": alice, "bob": bob, "sub_lead": sub_lead,
        "carol": carol, "dave": dave, "other_lead": other_lead, "erin": erin,
    }

@pytest.fixture(scope="function")
def project(db_session, org, team):
    from app.models.project import Project
    project = Project(
        organization_id=org.id,
        name="Checkout Revamp",
        report_frequency="weekly",
        assignees=[{"id": team["alice"].id, "type": "employee"}, {"id": team["lead"].id, "type": "manager"}],
        knowledge_base="Payments team rebuilding checkout on the new API.",
        created_by=team["lead"].id,
    )
    db_session.add(project)
    db_session.commit()
    return project

@pytest.fixture(scope="function")
def make_goal(db_session, project, team):
    from app.models.goal import Goal

    def _make(name="Ship checkout", criteria=None, deadline=None, created_by=None):
        goal = Goal(
            project_id=project.id,
            name=name,
            criteria=criteria or [
                {"id": "crit-quality", "name": "Quality", "weight": 60},
                {"id": "crit-speed", "name": "Speed", "weight": 40},
            ],
            instructions="Describe what shipped and how it was tested.",
            deadline=deadline,
            manager_id=(created_by or team["lead"]).id,
            created_by=(created_by or team["lead"]).id,
        )
        db_session.add(goal)
        db_session.commit()
        return goal
    return _make

@pytest.fixture(scope="function")
def headers():
    """Request headers naming the acting employee."""
    def _headers(employee):
        return {"X-Employee-ID": str(employee.id)}
    return _headers

@pytest.fixture(scope="function")
def client(db_session, fake_scorer):
    """Get a TestClient that uses the test database session and fake scorer via dependency overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scoring_client] = lambda: fake_scorer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
