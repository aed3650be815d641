from french_notes.infrastructure.models import ContentORM


def create_content(client, headers, title="Les verbes", type="writing", text="Conjugaison", files=None):
    return client.post(
        "/api/content",
        data={"title": title, "type": type, "text": text},
        files=files,
        headers=headers,
    )


def test_list_content_requires_token(client):
    assert client.get("/api/content").status_code == 401


def test_list_content_empty(client, student_headers):
    response = client.get("/api/content", headers=student_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_create_content_with_media(client, admin_headers, media):
    response = create_content(client, admin_headers, files={
        "image": ("cover.png", b"png-bytes", "image/png"),
        "audio": ("lesson.mp3", b"mp3-bytes", "audio/mpeg"),
    })
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Les verbes"
    assert data["type"] == "writing"
    assert data["imageUrl"].startswith("https://media.test/content/image/")
    assert data["audioUrl"].startswith("https://media.test/content/audio/")
    assert data["videoUrl"] is None
    assert media.objects[data["imageUrl"]] == b"png-bytes"
    assert media.objects[data["audioUrl"]] == b"mp3-bytes"


def test_create_content_without_media(client, admin_headers, media):
    response = create_content(client, admin_headers)
    assert response.status_code == 201
    assert response.json()["imageUrl"] is None
    assert media.objects == {}


def test_create_content_validation(client, admin_headers):
    response = client.post("/api/content", data={"title": "x", "type": "writing"}, headers=admin_headers)
    assert response.status_code == 422
    response = create_content(client, admin_headers, type="poetry")
    assert response.status_code == 422


def test_student_cannot_create_content(client, student_headers):
    assert create_content(client, student_headers).status_code == 403


def test_upload_failure_writes_nothing(client, admin_headers, media, db_session):
    media.fail_upload = True
    response = create_content(client, admin_headers, files={"image": ("a.png", b"x", "image/png")})
    assert response.status_code == 502
    assert response.json()["detail"] == "File upload failed."
    assert db_session.query(ContentORM).count() == 0


def test_list_content_filter_by_type(client, admin_headers, student_headers):
    create_content(client, admin_headers, title="Essay", type="writing")
    create_content(client, admin_headers, title="Dialogue", type="listening")
    create_content(client, admin_headers, title="Mock exam", type="exam-based")

    everything = client.get("/api/content", headers=student_headers).json()
    assert [c["title"] for c in everything] == ["Mock exam", "Dialogue", "Essay"]

    listening = client.get("/api/content", params={"type": "listening"}, headers=student_headers).json()
    assert [c["title"] for c in listening] == ["Dialogue"]

    exams = client.get("/api/content", params={"type": "exam-based"}, headers=student_headers).json()
    assert [c["title"] for c in exams] == ["Mock exam"]

    assert client.get("/api/content", params={"type": "poetry"}, headers=student_headers).status_code == 422


def test_update_replaces_media(client, admin_headers, media):
    created = create_content(client, admin_headers, files={"image": ("old.png", b"old", "image/png")}).json()
    old_url = created["imageUrl"]

    response = client.put(
        f"/api/content/{created['id']}",
        data={"title": "Les verbes irréguliers"},
        files={"image": ("new.png", b"new", "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Les verbes irréguliers"
    assert data["text"] == "Conjugaison"
    assert data["imageUrl"] != old_url
    assert media.deleted == [old_url]
    assert media.objects[data["imageUrl"]] == b"new"


def test_update_missing_content(client, admin_headers, media):
    response = client.put("/api/content/999", data={"title": "x"},
                          files={"image": ("a.png", b"x", "image/png")}, headers=admin_headers)
    assert response.status_code == 404
    assert media.objects == {}


def test_delete_content_removes_media(client, admin_headers, media, db_session):
    created = create_content(client, admin_headers, files={
        "image": ("a.png", b"x", "image/png"),
        "video": ("clip.mp4", b"y", "video/mp4"),
    }).json()

    response = client.delete(f"/api/content/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert sorted(media.deleted) == sorted([created["imageUrl"], created["videoUrl"]])
    assert db_session.query(ContentORM).count() == 0


def test_delete_content_survives_media_failure(client, admin_headers, media, db_session):
    created = create_content(client, admin_headers, files={"image": ("a.png", b"x", "image/png")}).json()
    media.fail_delete = True

    response = client.delete(f"/api/content/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert db_session.query(ContentORM).count() == 0


def test_delete_missing_content(client, admin_headers):
    assert client.delete("/api/content/999", headers=admin_headers).status_code == 404
