import os
import tempfile
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

# Point the application at a throwaway SQLite file before worksite is imported
_DB_DIR = tempfile.mkdtemp(prefix="worksite-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.pop("POSTGRES_URL", None)
os.environ.pop("NEON_DATABASE_URL", None)
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["TIMEZONE"] = "Asia/Seoul"

import pytest
from httpx import ASGITransport, AsyncClient

from worksite.core.security import create_access_token, get_password_hash, token_data_for
from worksite.models import (
    Base, Deployment, DeploymentStatus, User, UserRole, Worker, WorkZone, ZoneType
)
from worksite.models.database import async_session_maker, engine

SEOUL_CITY_HALL = (37.5665, 126.9780)


class Seeder:
    """Creates and commits fixture rows"""

    def __init__(self, session):
        self.session = session

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def user(
        self,
        role: UserRole = UserRole.WORKER,
        company_id: Optional[uuid.UUID] = None,
        email: Optional[str] = None,
        password: str = "password123",
        is_active: bool = True
    ) -> User:
        return await self._save(User(
            email=email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com",
            hashed_password=get_password_hash(password),
            full_name=f"Test {role.value}",
            role=role,
            company_id=company_id,
            is_active=is_active,
        ))

    async def worker(self, name: str = "Kim Operator", user: Optional[User] = None) -> Worker:
        if user is None:
            user = await self.user(UserRole.WORKER)
        return await self._save(Worker(user_id=user.id, name=name))

    async def deployment(
        self,
        worker: Worker,
        issuing_company_id: uuid.UUID,
        partner_company_id: Optional[uuid.UUID] = None,
        guide_worker: Optional[Worker] = None,
        status: DeploymentStatus = DeploymentStatus.ACTIVE,
        created_at: Optional[datetime] = None
    ) -> Deployment:
        deployment = Deployment(
            worker_id=worker.id,
            guide_worker_id=guide_worker.id if guide_worker else None,
            issuing_company_id=issuing_company_id,
            partner_company_id=partner_company_id,
            status=status,
            equipment_id="EXC-001",
        )
        if created_at:
            deployment.created_at = created_at
        return await self._save(deployment)

    async def circle_zone(
        self,
        company_id: uuid.UUID,
        center: Tuple[float, float] = SEOUL_CITY_HALL,
        radius: float = 100,
        name: str = "Site A",
        is_active: bool = True
    ) -> WorkZone:
        return await self._save(WorkZone(
            name=name,
            zone_type=ZoneType.CIRCLE,
            center_latitude=center[0],
            center_longitude=center[1],
            radius_meters=radius,
            company_id=company_id,
            is_active=is_active,
        ))

    async def polygon_zone(
        self,
        company_id: uuid.UUID,
        coordinates: List[dict],
        name: str = "Site P",
        is_active: bool = True
    ) -> WorkZone:
        return await self._save(WorkZone(
            name=name,
            zone_type=ZoneType.POLYGON,
            polygon_coordinates=coordinates,
            company_id=company_id,
            is_active=is_active,
        ))


@pytest.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        yield session

    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest.fixture
def seed(db) -> Seeder:
    return Seeder(db)


@pytest.fixture
async def client(db):
    from worksite.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(token_data_for(user))}"}
    return _headers
