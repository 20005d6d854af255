"""
Shared fixtures: an application bound to in-memory SQLite and assets.
"""

import pytest

from app import create_app
from assets import MemoryAssetStore
from config import TestConfig


PAGES = {
    "index.html": "<h1>Home</h1>",
    "404.html": "<h1>Missing</h1>",
    "about.html": "<h1>About</h1>",
    "cert.html": "<h1>Cert</h1>",
    "new-post.html": "<h1>New post</h1>",
    "post.html": "<h1>Post</h1>",
    "posts.html": "<h1>Posts</h1>",
    "contact.html": "<h1>Contact</h1>",
}


@pytest.fixture
def app():
    return create_app(TestConfig, assets=MemoryAssetStore(PAGES))


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def post_payload():
    return {
        "title": "First post",
        "category": "notes",
        "excerpt": "A short excerpt",
        "content": "Body of the first post",
        "delete_password": "s3cret",
    }


@pytest.fixture
def create_post(client, post_payload):
    def _create(**overrides):
        response = client.post("/api/posts", json={**post_payload, **overrides})
        assert response.status_code == 200
        return response.get_json()["data"]["id"]
    return _create


@pytest.fixture
def create_comment(client):
    def _create(post_id, **overrides):
        payload = {
            "author": "reader",
            "email": "reader@example.com",
            "content": "Nice write-up",
            "delete_password": "c0mment",
            **overrides,
        }
        return client.post(f"/api/posts/{post_id}/comments", json=payload)
    return _create
