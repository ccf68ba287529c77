"""Shared fixtures for API tests: in-memory SQLite database, fresh rate limiter, seed helpers."""

import unittest
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_login_rate_limiter
from app.core.access_policy import Role
from app.core.database import get_db
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models import POI, Base, City, User
from app.services.rate_limiter import InMemoryLoginAttemptStore, LoginRateLimiter

DEFAULT_PASSWORD = "secret123"


class ApiTestCase(unittest.TestCase):
    """Runs the app against a private in-memory database per test."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.limiter = LoginRateLimiter(
            InMemoryLoginAttemptStore(),
            max_attempts=5,
            window=timedelta(minutes=15),
        )

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_login_rate_limiter] = lambda: self.limiter
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def create_user(
        self,
        email: str,
        password: str = DEFAULT_PASSWORD,
        role: Role = Role.ADMIN,
        firstname: str = "Ada",
        lastname: str = "Lovelace",
    ) -> int:
        with self.Session() as db:
            user = User(
                email=email,
                password_hash=hash_password(password),
                role=role.value,
                firstname=firstname,
                lastname=lastname,
            )
            db.add(user)
            db.commit()
            return user.id

    def create_city(
        self,
        name: str = "Lyon",
        admin_id: int | None = None,
        latitude: float = 45.76,
        longitude: float = 4.84,
        radius: float = 5000.0,
    ) -> int:
        with self.Session() as db:
            city = City(
                name=name,
                latitude=latitude,
                longitude=longitude,
                radius=radius,
                admin_id=admin_id,
            )
            db.add(city)
            db.commit()
            return city.id

    def create_poi(self, city_id: int, name: str = "Fourvière") -> int:
        with self.Session() as db:
            poi = POI(
                name=name,
                description="Basilique",
                latitude=45.762,
                longitude=4.822,
                city_id=city_id,
            )
            db.add(poi)
            db.commit()
            return poi.id

    def auth_headers(self, user_id: int, email: str, role: Role) -> dict[str, str]:
        token = create_access_token({"id": user_id, "email": email, "role": role.value})
        return {"Authorization": f"Bearer {token}"}

    def super_admin(self, email: str = "root@example.com") -> tuple[int, dict[str, str]]:
        user_id = self.create_user(email, role=Role.SUPER_ADMIN)
        return user_id, self.auth_headers(user_id, email, Role.SUPER_ADMIN)

    def admin(self, email: str = "admin@example.com") -> tuple[int, dict[str, str]]:
        user_id = self.create_user(email, role=Role.ADMIN)
        return user_id, self.auth_headers(user_id, email, Role.ADMIN)
