import itertools
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Before `main` is imported: keep static mounts out of the repo and pin the signing key.
_STATIC_ROOT = tempfile.mkdtemp(prefix="car-catalog-static-")
os.environ.setdefault("PUBLIC_DIR", os.path.join(_STATIC_ROOT, "public"))
os.environ.setdefault("UPLOADS_DIR", os.path.join(_STATIC_ROOT, "uploads"))
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256"

from fastapi.testclient import TestClient  # noqa: E402

import main  # noqa: E402
from auth import repository as auth_repository  # noqa: E402
from cars import repository as cars_repository  # noqa: E402
from cars.dependencies import get_media_client  # noqa: E402
from core.errors import ConflictError  # noqa: E402
from core.media import MediaError, public_id_from_url  # noqa: E402

EPOCH = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeStore:
    """
    In-memory stand-in for the users/cars tables, with the same owner filtering as the SQL.
    """

    def __init__(self):
        self.users = {}
        self.cars = {}
        self._ids = itertools.count(1)
        self.fail_insert = False

    def _stamp(self, row_id):
        return EPOCH + timedelta(seconds=row_id)

    async def create_user(self, *, name, email, password_hash):
        email = auth_repository.normalize_email(email)
        if any(u["email"] == email for u in self.users.values()):
            raise ConflictError("User already exists")
        user_id = next(self._ids)
        row = {
            "id": user_id,
            "name": name,
            "email": email,
            "password_hash": password_hash,
            "created_at": self._stamp(user_id),
            "updated_at": self._stamp(user_id),
        }
        self.users[user_id] = row
        return dict(row)

    async def get_user_by_email(self, email):
        email = auth_repository.normalize_email(email)
        for row in self.users.values():
            if row["email"] == email:
                return dict(row)
        return None

    async def get_user_by_id(self, user_id):
        row = self.users.get(user_id)
        return dict(row) if row else None

    async def insert_car(self, *, user_id, title, description, tags, images):
        if self.fail_insert:
            raise RuntimeError("connection reset")
        car_id = next(self._ids)
        row = {
            "id": car_id,
            "user_id": user_id,
            "title": title,
            "description": description,
            "tags": list(tags),
            "images": list(images),
            "created_at": self._stamp(car_id),
            "updated_at": self._stamp(car_id),
        }
        self.cars[car_id] = row
        return dict(row)

    def _owned(self, user_id):
        rows = [r for r in self.cars.values() if r["user_id"] == user_id]
        return sorted(rows, key=lambda r: (r["created_at"], r["id"]), reverse=True)

    async def list_cars(self, *, user_id):
        return [dict(r) for r in self._owned(user_id)]

    async def search_cars(self, *, user_id, keyword, limit, offset):
        needle = keyword.lower()

        def matches(row):
            fields = [row["title"], row["description"], *row["tags"]]
            return any(needle in field.lower() for field in fields)

        hits = [dict(r) for r in self._owned(user_id) if matches(r)]
        return hits[offset : offset + limit], len(hits)

    async def get_car(self, car_id, *, user_id):
        row = self.cars.get(car_id)
        if row is None or row["user_id"] != user_id:
            return None
        return dict(row)

    async def update_car(self, car_id, *, user_id, title, description, tags, images):
        row = self.cars.get(car_id)
        if row is None or row["user_id"] != user_id:
            return None
        row.update(
            title=title,
            description=description,
            tags=list(tags),
            images=list(images),
            updated_at=row["updated_at"] + timedelta(minutes=1),
        )
        return dict(row)

    async def delete_car(self, car_id, *, user_id):
        row = self.cars.get(car_id)
        if row is None or row["user_id"] != user_id:
            return False
        del self.cars[car_id]
        return True


class FakeMedia:
    """
    Records uploads and deletes instead of calling Cloudinary. Like Cloudinary with
    `asset_folder`, the delivery URL carries the bare public id.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.uploaded = []
        self.destroyed = []
        self.assets = set()
        self.fail_upload_at = None
        self.fail_destroy = False

    async def upload_image(self, data, *, filename, content_type=None):
        n = next(self._ids)
        if self.fail_upload_at is not None and n >= self.fail_upload_at:
            raise MediaError("Cloudinary upload failed: 500 boom")
        url = f"https://res.cloudinary.com/demo/image/upload/v1712/img{n}.jpg"
        self.uploaded.append(url)
        self.assets.add(f"img{n}")
        return url

    async def destroy_url(self, url):
        if self.fail_destroy:
            raise MediaError("Cloudinary destroy failed: 502 bad gateway")
        public_id = public_id_from_url(url)
        self.destroyed.append(public_id)
        if public_id not in self.assets:
            return False
        self.assets.discard(public_id)
        return True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store(monkeypatch):
    fake = FakeStore()
    for name in ("create_user", "get_user_by_email", "get_user_by_id"):
        monkeypatch.setattr(auth_repository, name, getattr(fake, name))
    for name in ("insert_car", "list_cars", "search_cars", "get_car", "update_car", "delete_car"):
        monkeypatch.setattr(cars_repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def client(store, media):
    main.app.dependency_overrides[get_media_client] = lambda: media
    # No `with`: the lifespan (real DB pool, real Cloudinary client) is skipped.
    yield TestClient(main.app, raise_server_exceptions=False)
    main.app.dependency_overrides.clear()


def register(client, email="alice@example.com", name="Alice", password="s3cret-pass"):
    resp = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()["token"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def jpeg(size_bytes=1024 * 1024, name="car.jpg"):
    return ("images", (name, b"\xff" * size_bytes, "image/jpeg"))


def add_car(client, token, *, title="Civic", description="Clean title", tags="honda, sedan", images=None):
    resp = client.post(
        "/api/cars",
        headers=auth_header(token),
        data={"title": title, "description": description, "tags": tags},
        files=images if images is not None else [jpeg()],
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["car"]
