"""
OpsFinder - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, List
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['ADMIN_PASSWORD'] = ''

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, create_access_token
from app.models.user import User, UserRole
from app.models.tech_message import TechMessage, ActionLevel, Severity
from app.services.pattern_matcher import pattern_cache

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

TEST_PASSWORD = 'testpassword123'


@pytest.fixture(autouse=True)
def clear_pattern_cache():
    """Compiled patterns are process-wide; start every test cold"""
    pattern_cache.clear()
    yield
    pattern_cache.clear()


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, role: UserRole, is_active: bool = True) -> User:
    user = User(
        username=fake.unique.user_name()[:50],
        hashed_password=get_password_hash(TEST_PASSWORD),
        full_name=fake.name(),
        role=role,
        is_active=is_active,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _auth_headers(user: User) -> dict:
    token_data = {
        'sub': str(user.id),
        'username': user.username,
        'role': user.role.value
    }
    return {'Authorization': f'Bearer {create_access_token(token_data)}'}


@pytest.fixture
async def operator_user(db_session: AsyncSession) -> User:
    """Create an operator (non-admin) test user"""
    return await _create_user(db_session, UserRole.OPERATOR)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin test user"""
    return await _create_user(db_session, UserRole.ADMIN)


@pytest.fixture
async def inactive_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, UserRole.VIEWER, is_active=False)


@pytest.fixture
def auth_headers(operator_user: User) -> dict:
    """Generate authentication headers for the operator user"""
    return _auth_headers(operator_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return _auth_headers(admin_user)


@pytest.fixture
async def catalog(db_session: AsyncSession) -> List[TechMessage]:
    """
    Sample catalog:
    1. Database / HIGH   - timeout regex with a named group, tiers 1-5 and 6+ (escalate)
    2. Network  / CRITICAL - link down regex, single open-ended tier
    3. Disk     / LOW    - no tiers
    """
    database = TechMessage(
        category='Database',
        severity=Severity.HIGH,
        pattern=r'connection timeout after (?<seconds>\d+)s',
        description='Database connection timeout',
        created_by='tester',
    )
    database.action_levels = [
        ActionLevel(occurrence_min=1, occurrence_max=5, action_text='check connection pool', priority=1),
        ActionLevel(occurrence_min=6, occurrence_max=None, action_text='escalate', priority=1),
    ]

    network = TechMessage(
        category='Network',
        severity=Severity.CRITICAL,
        pattern=r'link (?P<interface>\S+) down',
        description='Interface link failure',
        created_by='tester',
    )
    network.action_levels = [
        ActionLevel(occurrence_min=1, occurrence_max=None, action_text='fail over to standby link', priority=1),
    ]

    disk = TechMessage(
        category='Disk',
        severity=Severity.LOW,
        pattern=r'disk usage \d+%',
        description='Filesystem nearly full',
        created_by='tester',
    )

    db_session.add_all([database, network, disk])
    await db_session.commit()
    return [database, network, disk]
