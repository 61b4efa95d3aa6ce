"""Tests for upload storage and gallery bookkeeping."""

from unittest.mock import AsyncMock

import pytest

from utm_connect.core.exceptions import FileUploadError, ForbiddenError, NotFoundError
from utm_connect.repositories import Post
from utm_connect.services import FileStorage, UploadService

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 32


@pytest.fixture
def storage(tmp_path):
    return FileStorage(tmp_path / "uploads", max_file_size=1024)


class TestFileStorage:
    async def test_save_png(self, storage):
        stored = await storage.save(PNG, "image/png")

        assert stored.filename.endswith(".png")
        assert stored.url == f"/uploads/{stored.filename}"
        assert stored.path.read_bytes() == PNG

    async def test_save_jpeg_uses_random_names(self, storage):
        first = await storage.save(JPEG, "image/jpeg")
        second = await storage.save(JPEG, "image/jpeg")

        assert first.filename.endswith(".jpg")
        assert first.filename != second.filename

    def test_rejects_empty(self, storage):
        with pytest.raises(FileUploadError, match="No file provided"):
            storage.validate(b"", "image/png")

    def test_rejects_unsupported_type(self, storage):
        with pytest.raises(FileUploadError, match="Only .jpeg and .png"):
            storage.validate(b"GIF89a", "image/gif")

    def test_rejects_oversized(self, storage):
        with pytest.raises(FileUploadError, match="exceeds"):
            storage.validate(PNG + b"\x00" * 2048, "image/png")

    def test_rejects_mismatched_content(self, storage):
        with pytest.raises(FileUploadError, match="does not match"):
            storage.validate(JPEG, "image/png")

    @pytest.mark.parametrize("filename", ["../secret.png", "a/b.png", "..\\x.png", ""])
    async def test_delete_rejects_traversal(self, storage, filename):
        with pytest.raises(FileUploadError, match="Invalid filename"):
            await storage.delete(filename)

    async def test_delete(self, storage):
        stored = await storage.save(PNG, "image/png")

        assert await storage.delete(stored.filename) is True
        assert not stored.path.exists()
        assert await storage.delete(stored.filename) is False

    def test_extract_filename(self):
        assert FileStorage.extract_filename("/uploads/abc.png") == "abc.png"
        assert FileStorage.extract_filename("https://cdn.example.com/abc.png") is None


class TestUploadService:
    @pytest.fixture
    def users(self):
        return AsyncMock()

    @pytest.fixture
    def posts(self):
        return AsyncMock()

    async def test_avatar_becomes_primary(self, storage, users, posts, make_user):
        users.get_by_id.return_value = make_user(id="u1")
        users.add_photo.side_effect = lambda user_id, url, make_primary=False: make_user(
            id=user_id, photo_urls=[url], primary_photo_url=url
        )

        result = await UploadService(storage, users, posts).upload_avatar("u1", PNG, "image/png")

        assert result["primary_photo_url"] == result["url"]
        assert users.add_photo.call_args.kwargs == {"make_primary": True}

    async def test_avatar_for_unknown_user_stores_nothing(self, storage, users, posts):
        users.get_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await UploadService(storage, users, posts).upload_avatar("ghost", PNG, "image/png")
        assert list(storage.uploads_dir.iterdir()) == []

    async def test_post_image_requires_author(self, storage, users, posts):
        posts.get_by_id.return_value = Post(id="p1", user_id="someone-else")

        with pytest.raises(ForbiddenError):
            await UploadService(storage, users, posts).upload_post_image(
                "u1", "p1", PNG, "image/png"
            )

    async def test_delete_foreign_image(self, storage, users, posts, make_user):
        users.get_by_id.return_value = make_user(id="u1", photo_urls=["/uploads/mine.png"])

        with pytest.raises(ForbiddenError, match="do not own"):
            await UploadService(storage, users, posts).delete_image("u1", "theirs.png")

    async def test_delete_primary_promotes_next_photo(self, storage, users, posts, make_user):
        stored = await storage.save(PNG, "image/png")
        photos = [stored.url, "/uploads/other.png"]
        users.get_by_id.return_value = make_user(
            id="u1", photo_urls=photos, primary_photo_url=stored.url
        )
        users.update.return_value = None

        result = await UploadService(storage, users, posts).delete_image("u1", stored.filename)

        users.update.assert_awaited_once_with(
            "u1", {"photo_urls": ["/uploads/other.png"], "primary_photo_url": "/uploads/other.png"}
        )
        posts.remove_photo_everywhere.assert_awaited_once_with("u1", stored.url)
        assert result["primary_photo_url"] == "/uploads/other.png"
        assert not stored.path.exists()

    async def test_gallery(self, storage, users, posts, make_user):
        users.get_by_id.return_value = make_user(id="u1", photo_urls=["/uploads/a.png"])

        gallery = await UploadService(storage, users, posts).get_gallery("u1")

        assert gallery["total_photos"] == 1
