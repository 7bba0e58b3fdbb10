"""
Test configuration and fixtures for Ballot Core tests.
"""
import os
import pytest
import pytest_asyncio
from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator, Optional, Sequence
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from ballotcore.main import app
from ballotcore.db.base import Base, get_db
from ballotcore.core.security import create_access_token
from ballotcore.models.user import User
from ballotcore.models.role import Role
from ballotcore.models.category import Category
from ballotcore.models.ballot import Ballot, BallotType
from ballotcore.models.voting_option import VotingOption, TEXT_OPTION_TITLE


# Use a file-based SQLite DB to avoid :memory: multiple-connection issues
# with SQLAlchemy + aiosqlite (each new connection would see an empty DB).
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    # Clean up test database file
    try:
        os.remove("./test.db")
    except OSError:
        pass


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================================
# ROLES AND USERS
# ============================================================================

@pytest_asyncio.fixture
async def admin_role(db_session: AsyncSession) -> Role:
    role = Role(name="admin", is_admin=True)
    db_session.add(role)
    await db_session.flush()
    return role


@pytest_asyncio.fixture
async def voter_role(db_session: AsyncSession) -> Role:
    role = Role(name="voter", is_admin=False)
    db_session.add(role)
    await db_session.flush()
    return role


async def _make_user(db_session: AsyncSession, email: str, name: str, roles: list[Role]) -> User:
    user = User(email=email, name=name, is_active=True)
    user.roles = roles
    db_session.add(user)
    await db_session.flush()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession, admin_role: Role) -> User:
    """Ballot creator with the admin capability."""
    return await _make_user(db_session, "admin@example.com", "Admin User", [admin_role])


@pytest_asyncio.fixture
async def other_admin(db_session: AsyncSession, admin_role: Role) -> User:
    """Second administrator, never the owner of fixture ballots."""
    return await _make_user(db_session, "admin2@example.com", "Other Admin", [admin_role])


@pytest_asyncio.fixture
async def voter_user(db_session: AsyncSession, voter_role: Role) -> User:
    return await _make_user(db_session, "voter@example.com", "Voter One", [voter_role])


@pytest_asyncio.fixture
async def second_voter(db_session: AsyncSession, voter_role: Role) -> User:
    return await _make_user(db_session, "voter2@example.com", "Voter Two", [voter_role])


@pytest_asyncio.fixture
async def outsider_user(db_session: AsyncSession) -> User:
    """User without any role: sees no category."""
    return await _make_user(db_session, "outsider@example.com", "Outsider", [])


def _headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return _headers(admin_user)


@pytest.fixture
def other_admin_headers(other_admin: User) -> dict:
    return _headers(other_admin)


@pytest.fixture
def voter_headers(voter_user: User) -> dict:
    return _headers(voter_user)


@pytest.fixture
def second_voter_headers(second_voter: User) -> dict:
    return _headers(second_voter)


@pytest.fixture
def outsider_headers(outsider_user: User) -> dict:
    return _headers(outsider_user)


# ============================================================================
# CATEGORIES AND BALLOTS
# ============================================================================

@pytest_asyncio.fixture
async def test_category(db_session: AsyncSession, voter_role: Role) -> Category:
    """Category visible to the voter role."""
    category = Category(name="Student Council", description="Council elections")
    category.roles = [voter_role]
    db_session.add(category)
    await db_session.flush()
    return category


@pytest_asyncio.fixture
async def hidden_category(db_session: AsyncSession) -> Category:
    """Category no role is attached to."""
    category = Category(name="Board", description="Board only")
    category.roles = []
    db_session.add(category)
    await db_session.flush()
    return category


@pytest.fixture
def make_ballot(db_session: AsyncSession, admin_user: User, test_category: Category):
    """Factory inserting a ballot with its options straight into the database."""
    async def _make(
        ballot_type: BallotType = BallotType.SINGLE_CHOICE,
        titles: Optional[Sequence[str]] = None,
        limit_date: Optional[datetime] = None,
        is_suspended: bool = False,
        time_left: Optional[int] = None,
        category: Optional[Category] = None,
        title: str = "Test Ballot",
    ) -> Ballot:
        if titles is None:
            if ballot_type == BallotType.TEXT_INPUT:
                titles = [TEXT_OPTION_TITLE]
            elif ballot_type == BallotType.YES_NO:
                titles = ["Yes", "No"]
            elif ballot_type == BallotType.LINEAR_CHOICE:
                titles = ["1,Poor", "2", "3,Good"]
            else:
                titles = ["Red", "Green", "Blue"]

        ballot = Ballot(
            title=title,
            description="A test ballot",
            ballot_type=ballot_type,
            category_id=(category or test_category).id,
            admin_id=admin_user.id,
            limit_date=limit_date or datetime.now(timezone.utc) + timedelta(days=1),
            is_suspended=is_suspended,
            time_left=time_left,
        )
        ballot.options = [
            VotingOption(
                title=option_title,
                is_text=ballot_type == BallotType.TEXT_INPUT,
                position=position,
            )
            for position, option_title in enumerate(titles)
        ]
        db_session.add(ballot)
        await db_session.flush()
        return ballot

    return _make
