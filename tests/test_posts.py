"""
Tests for the post endpoints.
"""

from models import Comment, db


def test_create_post_is_listed_and_retrievable(client, create_post):
    """Test that a created post shows up in the list and by id."""
    post_id = create_post()

    listing = client.get("/api/posts").get_json()
    assert listing["success"] is True
    assert [post["id"] for post in listing["data"]] == [post_id]

    response = client.get(f"/api/posts/{post_id}")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["title"] == "First post"
    assert data["category"] == "notes"
    assert data["cover_image"] is None
    assert data["created_at"]
    assert data["updated_at"]


def test_create_post_returns_success_message(client, post_payload):
    response = client.post("/api/posts", json=post_payload)
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "Created"


def test_list_posts_newest_first(client, create_post):
    first = create_post(title="one")
    second = create_post(title="two")
    third = create_post(title="three")

    data = client.get("/api/posts").get_json()["data"]
    assert [post["id"] for post in data] == [third, second, first]


def test_get_missing_post_returns_404(client):
    response = client.get("/api/posts/999")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "message": "Post not found"}


def test_create_post_escapes_markup(client, create_post):
    """Test that HTML in post fields is stored without executable markup."""
    post_id = create_post(
        title="<script>alert(1)</script>Hello",
        content='<img src=x onerror="alert(1)">',
    )
    data = client.get(f"/api/posts/{post_id}").get_json()["data"]
    assert "<script>" not in data["title"]
    assert "&lt;script&gt;" in data["title"]
    assert "<img" not in data["content"]


def test_create_post_requires_all_fields(client, post_payload):
    payload = dict(post_payload, excerpt="   ")
    del payload["category"]
    response = client.post("/api/posts", json=payload)
    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert "category" in body["message"]
    assert "excerpt" in body["message"]
    assert client.get("/api/posts").get_json()["data"] == []


def test_create_post_rejects_non_object_body(client):
    response = client.post("/api/posts", data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_delete_post_with_wrong_password(client, create_post):
    """Test that a wrong password is rejected and the post survives."""
    post_id = create_post()
    response = client.delete(f"/api/posts/{post_id}", json={"deletePassword": "nope"})
    assert response.status_code == 403
    assert response.get_json()["success"] is False
    assert client.get(f"/api/posts/{post_id}").status_code == 200


def test_delete_post_without_password_is_forbidden(client, create_post):
    post_id = create_post()
    response = client.delete(f"/api/posts/{post_id}", json={})
    assert response.status_code == 403


def test_delete_post_with_correct_password_cascades(app, client, create_post, create_comment):
    """Test that deleting a post removes it and its comments."""
    post_id = create_post()
    assert create_comment(post_id).status_code == 200
    assert create_comment(post_id, author="other").status_code == 200

    response = client.delete(f"/api/posts/{post_id}", json={"deletePassword": "s3cret"})
    assert response.status_code == 200
    assert response.get_json() == {"success": True, "message": "Deleted"}

    assert client.get(f"/api/posts/{post_id}").status_code == 404
    assert client.get(f"/api/posts/{post_id}/comments").get_json()["data"] == []
    with app.app_context():
        assert db.session.query(Comment).count() == 0


def test_delete_missing_post_returns_404(client):
    response = client.delete("/api/posts/42", json={"deletePassword": "x"})
    assert response.status_code == 404


def test_password_with_markup_characters_still_matches(client, create_post):
    post_id = create_post(delete_password="a<b&c")
    response = client.delete(f"/api/posts/{post_id}", json={"deletePassword": "a<b&c"})
    assert response.status_code == 200


def test_categories_count_posts(client, create_post):
    create_post(category="notes")
    create_post(category="notes")
    create_post(category="travel")

    response = client.get("/api/categories")
    assert response.status_code == 200
    assert response.get_json()["data"] == [
        {"category": "notes", "count": 2},
        {"category": "travel", "count": 1},
    ]


def test_out_of_range_post_id_returns_json_404(client):
    """Test that ids beyond the 64-bit range are reported as missing posts."""
    huge = 99999999999999999999999
    response = client.get(f"/api/posts/{huge}")
    assert response.status_code == 404
    assert response.get_json() == {"success": False, "message": "Post not found"}

    response = client.delete(f"/api/posts/{huge}", json={"deletePassword": "x"})
    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_posts_do_not_expose_delete_password(client, create_post):
    post_id = create_post()
    assert "delete_password" not in client.get(f"/api/posts/{post_id}").get_json()["data"]
    assert all("delete_password" not in post for post in client.get("/api/posts").get_json()["data"])
