from taxsurvey.tests.factories import ADMIN, FIELD_EXEC, OTHER_FIELD_EXEC, JPEG_BYTES, PNG_BYTES, auth, make_survey

API = "/api/v1"


def _upload(client, image_type="owner_photo", content=JPEG_BYTES, name="owner.jpg", mime="image/jpeg", principal=FIELD_EXEC):
    return client.post(
        f"{API}/images/upload",
        data={"propertyId": "P-1", "imageType": image_type},
        files={"image": (name, content, mime)},
        headers=auth(principal),
    )


def test_upload_fetch_and_url(client, db, gitlab):
    make_survey(db)

    r = _upload(client)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["cleanup"] == "nothing_to_clean"
    image_id = body["image"]["id"]

    r = client.get(f"{API}/images/{image_id}", headers=auth(FIELD_EXEC))
    assert r.status_code == 200
    assert r.content == JPEG_BYTES
    assert r.headers["content-type"] == "image/jpeg"

    r = client.get(f"{API}/images/{image_id}/url", headers=auth(ADMIN))
    assert r.status_code == 200
    assert r.json()["url"].endswith("/raw?ref=main")


def test_reupload_replaces_slot(client, db):
    make_survey(db)
    _upload(client, image_type="sketch_photo", content=PNG_BYTES, name="a.png", mime="image/png")

    r = _upload(client, image_type="sketch_photo", content=PNG_BYTES, name="b.png", mime="image/png")
    assert r.status_code == 201
    assert r.json()["cleanup"] == "cleaned"

    r = client.get(f"{API}/images/property/P-1", headers=auth(FIELD_EXEC))
    assert r.status_code == 200
    sketches = [i for i in r.json()["images"] if i["image_type"] == "sketch_photo"]
    assert [i["file_name"] for i in sketches] == ["b.png"]


def test_invalid_image_type_is_400(client, db):
    make_survey(db)

    r = _upload(client, image_type="selfie")

    assert r.status_code == 400
    assert r.json()["error"] == "invalid_asset"


def test_upload_failure_is_502_and_leaves_no_row(client, db, gitlab):
    make_survey(db)
    gitlab.fail_put = True

    r = _upload(client)

    assert r.status_code == 502
    assert r.json()["error"] == "upload_failed"
    assert "internal failure" not in r.json()["message"]

    r = client.get(f"{API}/images/property/P-1", headers=auth(FIELD_EXEC))
    assert r.json()["images"] == []


def test_missing_content_is_distinct_from_missing_image(client, db, gitlab):
    make_survey(db)
    image_id = _upload(client).json()["image"]["id"]
    gitlab.files.clear()

    r = client.get(f"{API}/images/{image_id}", headers=auth(FIELD_EXEC))
    assert r.status_code == 404
    assert r.json()["error"] == "remote_not_found"

    r = client.get(f"{API}/images/00000000-0000-0000-0000-000000000000", headers=auth(FIELD_EXEC))
    assert r.status_code == 404
    assert r.json()["error"] == "asset_not_found"


def test_delete_image(client, db, gitlab):
    make_survey(db)
    image_id = _upload(client).json()["image"]["id"]

    r = client.delete(f"{API}/images/{image_id}", headers=auth(OTHER_FIELD_EXEC))
    assert r.status_code == 403

    gitlab.fail_delete = True
    r = client.delete(f"{API}/images/{image_id}", headers=auth(FIELD_EXEC))
    assert r.status_code == 502
    assert r.json()["error"] == "remote_delete_error"

    gitlab.fail_delete = False
    r = client.delete(f"{API}/images/{image_id}", headers=auth(FIELD_EXEC))
    assert r.status_code == 200
    assert r.json() == {"status": "deleted", "id": image_id, "remoteMissing": False}

    r = client.get(f"{API}/images/{image_id}/url", headers=auth(FIELD_EXEC))
    assert r.status_code == 404
