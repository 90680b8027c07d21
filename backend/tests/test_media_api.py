"""Tests for /api/media endpoints: uploads, listing, folders, download."""

from atelier.core.config import settings
from tests.conftest import create_folder, upload_file


class TestUpload:

    def test_upload_records_owner_and_urls(self, client):
        item = upload_file(client, "photo.jpg")
        assert item["owner_id"] == "anonymous"
        assert item["name"] == "photo"
        assert item["size"] == len(b"jpeg-bytes")
        assert item["url"] == f"/api/media/{item['id']}/download"
        assert item["preview_url"] == item["url"]

    def test_non_image_has_no_preview(self, client):
        item = upload_file(client, "report.pdf", b"%PDF", "application/pdf")
        assert item["preview_url"] is None

    def test_upload_into_folder(self, client):
        folder = create_folder(client, "Images")
        item = upload_file(client, folder_id=folder["id"])
        assert item["folder_id"] == folder["id"]

    def test_upload_into_missing_folder_returns_400(self, client):
        resp = client.post(
            "/api/media",
            files={"file": ("a.jpg", b"x", "image/jpeg")},
            data={"folder_id": "999"},
        )
        assert resp.status_code == 400

    def test_oversized_upload_rejected_and_not_stored(self, client, monkeypatch, media_root):
        monkeypatch.setattr(settings, "media_max_upload_mb", 0)
        resp = client.post("/api/media", files={"file": ("big.bin", b"12345", "application/octet-stream")})
        assert resp.status_code == 400
        assert client.get("/api/media").json()["total"] == 0
        assert not any(p.is_file() for p in media_root.rglob("*"))

    def test_download_returns_payload(self, client):
        item = upload_file(client, "notes.txt", b"hello media", "text/plain")
        resp = client.get(item["url"])
        assert resp.status_code == 200
        assert resp.content == b"hello media"
        assert "notes.txt" in resp.headers["content-disposition"]

    def test_download_missing_payload_returns_404(self, client, media_root):
        item = upload_file(client, "gone.jpg")
        for path in media_root.rglob("gone.jpg"):
            path.unlink()
        assert client.get(item["url"]).status_code == 404

    def test_unknown_conversion_returns_400(self, client):
        item = upload_file(client, "photo.jpg")
        resp = client.get(item["url"], params={"conversion": "thumb"})
        assert resp.status_code == 400


class TestMediaItems:

    def test_delete_removes_record_and_file(self, client, media_root):
        item = upload_file(client, "photo.jpg")
        assert list(media_root.rglob("photo.jpg"))

        resp = client.delete(f"/api/media/{item['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/media/{item['id']}").status_code == 404
        assert not list(media_root.rglob("photo.jpg"))

    def test_move_between_folders(self, client):
        folder = create_folder(client, "Images")
        item = upload_file(client)

        resp = client.post(f"/api/media/{item['id']}/move", json={"folder_id": folder["id"]})
        assert resp.status_code == 200
        assert resp.json()["folder_id"] == folder["id"]

        resp = client.post(f"/api/media/{item['id']}/move", json={"folder_id": None})
        assert resp.json()["folder_id"] is None

    def test_move_to_missing_folder_returns_400(self, client):
        item = upload_file(client)
        resp = client.post(f"/api/media/{item['id']}/move", json={"folder_id": 999})
        assert resp.status_code == 400


class TestListing:

    def test_root_lists_folders_and_files_together(self, client):
        create_folder(client, "Banners")
        upload_file(client, "avatar.png", mime="image/png")
        upload_file(client, "zebra.jpg")

        data = client.get("/api/media").json()
        assert data["total"] == 3
        assert [(e["type"], e["name"]) for e in data["items"]] == [
            ("file", "avatar"), ("folder", "Banners"), ("file", "zebra"),
        ]
        assert data["current_folder"] is None
        assert data["breadcrumbs"] == []

    def test_type_sort_puts_folders_first(self, client):
        upload_file(client, "doc.pdf", b"%PDF", "application/pdf")
        create_folder(client, "Banners")
        items = client.get("/api/media", params={"order_by": "type"}).json()["items"]
        assert [e["type"] for e in items] == ["folder", "file"]

    def test_size_sort_desc(self, client):
        upload_file(client, "small.jpg", b"1")
        upload_file(client, "large.jpg", b"1234567890")
        items = client.get("/api/media", params={"order_by": "size", "order_dir": "desc"}).json()["items"]
        assert [e["name"] for e in items] == ["large", "small"]

    def test_type_filter_narrows_files_and_keeps_folders(self, client):
        create_folder(client, "Banners")
        upload_file(client, "photo.jpg")
        upload_file(client, "doc.pdf", b"%PDF", "application/pdf")

        items = client.get("/api/media", params={"type": "image"}).json()["items"]
        assert [(e["type"], e["name"]) for e in items] == [("folder", "Banners"), ("file", "photo")]

    def test_search_filters_files_by_name(self, client):
        create_folder(client, "Archive")
        create_folder(client, "Holiday")
        upload_file(client, "holiday-beach.jpg")
        upload_file(client, "office.jpg")

        items = client.get("/api/media", params={"search": "holiday"}).json()["items"]
        assert sorted(e["name"] for e in items) == ["Archive", "Holiday", "holiday-beach"]

    def test_folder_listing_has_breadcrumbs(self, client):
        images = create_folder(client, "Images")
        year = create_folder(client, "2024", images["id"])
        upload_file(client, "inside.jpg", folder_id=year["id"])

        data = client.get("/api/media", params={"folder": year["id"]}).json()
        assert [e["name"] for e in data["items"]] == ["inside"]
        assert data["current_folder"]["path"] == "Images/2024"
        assert [c["name"] for c in data["breadcrumbs"]] == ["Images", "2024"]

    def test_missing_folder_returns_404(self, client):
        resp = client.get("/api/media", params={"folder": 999})
        assert resp.status_code == 404
        assert resp.json()["error"] == "FOLDER_NOT_FOUND"

    def test_invalid_sort_rejected(self, client):
        assert client.get("/api/media", params={"order_by": "colour"}).status_code == 422


class TestFolderEndpoints:

    def test_duplicate_folder_returns_409(self, client):
        create_folder(client, "Images")
        resp = client.post("/api/media/folders", json={"name": "Images"})
        assert resp.status_code == 409

    def test_slash_in_name_rejected(self, client):
        resp = client.post("/api/media/folders", json={"name": "a/b"})
        assert resp.status_code == 422

    def test_rename_updates_child_paths(self, client):
        images = create_folder(client, "Images")
        year = create_folder(client, "2024", images["id"])

        resp = client.put(f"/api/media/folders/{images['id']}", json={"name": "Media"})
        assert resp.status_code == 200
        assert resp.json()["path"] == "Media"

        descendants = client.get(f"/api/media/folders/{images['id']}/descendants").json()
        assert [(f["id"], f["path"]) for f in descendants] == [(year["id"], "Media/2024")]

    def test_move_into_descendant_returns_409(self, client):
        images = create_folder(client, "Images")
        year = create_folder(client, "2024", images["id"])
        resp = client.put(f"/api/media/folders/{images['id']}/move", json={"parent_id": year["id"]})
        assert resp.status_code == 409

    def test_breadcrumbs(self, client):
        images = create_folder(client, "Images")
        year = create_folder(client, "2024", images["id"])
        resp = client.get(f"/api/media/folders/{year['id']}/breadcrumbs")
        assert resp.json() == [
            {"id": images["id"], "name": "Images"},
            {"id": year["id"], "name": "2024"},
        ]

    def test_cascade_delete_reports_counts(self, client, media_root):
        trip = create_folder(client, "Trip")
        create_folder(client, "Empty", trip["id"])
        upload_file(client, "one.jpg", folder_id=trip["id"])
        upload_file(client, "two.jpg", folder_id=trip["id"])

        resp = client.delete(f"/api/media/folders/{trip['id']}")
        assert resp.status_code == 200
        assert resp.json() == {"deleted_folders": 2, "deleted_media": 2}
        assert client.get("/api/media").json()["total"] == 0
        assert not any(p.is_file() for p in media_root.rglob("*"))
