# tests/conftest.py
import json
import sys
from pathlib import Path

import pytest

# Make "signage" importable without installing
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import signage.settings as settings
from signage import create_app, storage
from signage.editor import ApiClient

ADMIN_KEY = "admin-key"
ADMIN = {"X-Api-Key": ADMIN_KEY}

ALL_FEATURES = [
    "folder.add", "folder.modify",
    "dataset.add", "dataset.modify",
    "layout.add", "layout.modify",
]


@pytest.fixture
def data_path(tmp_path, monkeypatch):
    path = tmp_path / "data.json"
    monkeypatch.setattr(settings, "DATA_PATH", path)
    monkeypatch.setattr(settings, "ADMIN_KEY", ADMIN_KEY)
    monkeypatch.delenv("SIGNAGE_DISABLE_AUTH", raising=False)
    storage.load_db()  # seed (admin gets ADMIN_KEY)
    return path


@pytest.fixture
def app(data_path):
    return create_app(testing=True)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def users(data_path):
    with storage.transaction() as db:
        homes = {
            name: storage.insert_folder(db, {"parentId": 1, "text": name, "ownerId": 1})["folderId"]
            for name in ("alice", "bob")
        }
    alice = storage.add_user(
        "alice", api_key="alice-key", home_folder_id=homes["alice"], features=ALL_FEATURES
    )
    bob = storage.add_user("bob", api_key="bob-key", home_folder_id=homes["bob"])
    return {"alice": alice, "bob": bob}


def key(name):
    return {"X-Api-Key": f"{name}-key"}


class _Response:
    def __init__(self, resp):
        self.status_code = resp.status_code
        self.content = resp.data

    def json(self):
        return json.loads(self.content)


class FlaskSession:
    """Stand-in for requests.Session that routes ApiClient calls into the Flask test client."""

    def __init__(self, test_client):
        self.client = test_client
        self.headers = {}

    def request(self, method, url, json=None, params=None, timeout=None):
        resp = self.client.open(
            url, method=method, json=json, query_string=params, headers=dict(self.headers)
        )
        return _Response(resp)


@pytest.fixture
def api(client):
    return ApiClient(api_key=ADMIN_KEY, session=FlaskSession(client))


def make_layout(client, name="Lobby", width=1920, height=1080):
    r = client.post("/layout", json={"name": name, "width": width, "height": height}, headers=ADMIN)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["data"]


def checkout(client, layout_id):
    r = client.put(f"/layout/checkout/{layout_id}", headers=ADMIN)
    assert r.status_code == 200, r.get_json()
    return r.get_json()["data"]


def add_widget(client, playlist_id, duration=10, **extra):
    body = {"type": "text", "duration": duration, **extra}
    r = client.post(f"/playlist/widget/{playlist_id}", json=body, headers=ADMIN)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["data"]
