import io
import re
from datetime import datetime, timedelta
from types import SimpleNamespace

from sqlalchemy.exc import SQLAlchemyError

import store as store_module
from errors import PersistenceError
from models import Post, db


def create(client, **fields):
    data = {"title": "Hello", "summary": "Short", "content": "Body", "tags": "go, rust"}
    data.update(fields)
    return client.post("/post", data=data, content_type="multipart/form-data")


def test_index_banner(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True)


def test_create_then_fetch_post(client):
    resp = create(client)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["message"] == "Post created successfully"
    post_id = body["postId"]

    resp = client.get(f"/posts/{post_id}")
    assert resp.status_code == 200
    post = resp.get_json()
    assert post["id"] == post_id
    assert post["tags"] == ["go", "rust"]
    assert post["cover"] == ""
    assert post["author"] == "Rohan"
    assert post["title"] == "Hello"
    assert post["createdAt"] and post["updatedAt"]


def test_tags_are_trimmed(client):
    post_id = create(client, tags="a, b ,c").get_json()["postId"]
    assert client.get(f"/posts/{post_id}").get_json()["tags"] == ["a", "b", "c"]


def test_missing_tags_store_empty_list(client):
    resp = client.post("/post", data={"title": "No tags"}, content_type="multipart/form-data")
    post_id = resp.get_json()["postId"]
    assert client.get(f"/posts/{post_id}").get_json()["tags"] == []


def test_cover_upload_is_served_back(client, settings):
    payload = b"\x89PNG fake image bytes"
    resp = create(client, file=(io.BytesIO(payload), "holiday.png"))
    post_id = resp.get_json()["postId"]

    cover = client.get(f"/posts/{post_id}").get_json()["cover"]
    assert re.match(r"^photo-\d+-\d+\.png$", cover)

    served = client.get(f"/uploads/{cover}")
    assert served.status_code == 200
    assert served.data == payload


def test_unknown_upload_is_404(client):
    assert client.get("/uploads/photo-0-0.png").status_code == 404


def fake_db(get):
    return SimpleNamespace(session=SimpleNamespace(get=get, rollback=lambda: None))


def test_invalid_post_id_is_400(client, monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("database should not be queried")

    monkeypatch.setattr(store_module, "db", fake_db(boom))
    resp = client.get("/posts/not-an-id")
    assert resp.status_code == 400
    assert resp.get_json() == {"message": "Invalid post ID"}


def test_unknown_post_is_404(client):
    resp = client.get("/posts/" + "a" * 24)
    assert resp.status_code == 404
    assert resp.get_json() == {"message": "Post not found"}


def test_create_post_store_failure_is_500(client, store, monkeypatch):
    def fail(fields):
        raise PersistenceError("Failed to create post")

    monkeypatch.setattr(store, "create_post", fail)
    resp = create(client)
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Failed to create post"}


def test_fetch_post_store_failure_is_500(client, monkeypatch):
    def fail(*args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(store_module, "db", fake_db(fail))
    resp = client.get("/posts/" + "b" * 24)
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Failed to fetch post"}


def seed(app, count):
    base = datetime(2024, 1, 1)
    ids = []
    with app.app_context():
        for i in range(count):
            post = Post(title=f"Post {i}", tags=[f"t{i % 3}"], created_at=base + timedelta(minutes=i))
            db.session.add(post)
            db.session.flush()
            ids.append(post.id)
        db.session.commit()
    # newest first
    return list(reversed(ids))


def test_latest_posts_pages_newest_first(app, client):
    ordered = seed(app, 12)

    for page in (1, 2, 3):
        resp = client.get(f"/latest-posts?page={page}")
        assert resp.status_code == 200
        got = [p["id"] for p in resp.get_json()]
        assert got == ordered[(page - 1) * 5 : page * 5]

    assert client.get("/latest-posts?page=4").get_json() == []


def test_latest_posts_defaults_and_clamps_page(app, client):
    ordered = seed(app, 7)
    first_page = ordered[:5]

    for query in ("", "?page=0", "?page=-3", "?page=abc"):
        got = [p["id"] for p in client.get("/latest-posts" + query).get_json()]
        assert got == first_page


def test_tags_are_distinct(app, client):
    seed(app, 9)
    create(client, tags="t0, python")
    resp = client.get("/tags")
    assert resp.status_code == 200
    tags = resp.get_json()
    assert sorted(tags) == ["python", "t0", "t1", "t2"]
    assert len(tags) == len(set(tags))


def test_tags_store_failure_is_500(client, store, monkeypatch):
    def fail():
        raise PersistenceError("Failed to fetch unique tags")

    monkeypatch.setattr(store, "list_distinct_tags", fail)
    resp = client.get("/tags")
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Failed to fetch unique tags"}


def test_blank_tag_segments_are_kept(client):
    post_id = create(client, tags="a,,b").get_json()["postId"]
    assert client.get(f"/posts/{post_id}").get_json()["tags"] == ["a", "", "b"]


def test_huge_page_number_returns_empty_list(app, client):
    seed(app, 3)
    resp = client.get("/latest-posts?page=99999999999999999999")
    assert resp.status_code == 200
    assert resp.get_json() == []
