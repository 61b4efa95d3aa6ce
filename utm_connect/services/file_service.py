"""Image upload storage and user/post gallery bookkeeping."""

import asyncio
import secrets
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Union

from loguru import logger

from utm_connect.core.exceptions import FileUploadError, ForbiddenError, NotFoundError
from utm_connect.repositories.post_repository import PostRepository
from utm_connect.repositories.user_repository import UserRepository

UPLOADS_URL_PREFIX = "/uploads/"
DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024

# content type -> (extension, leading magic bytes)
ALLOWED_FORMATS = {
    "image/jpeg": (".jpg", b"\xff\xd8\xff"),
    "image/png": (".png", b"\x89PNG\r\n\x1a\n"),
}


class StoredFile(NamedTuple):
    filename: str
    path: Path
    url: str
    size: int
    content_type: str


class FileStorage:
    """Stores uploaded images on local disk under random names."""

    def __init__(
        self, uploads_dir: Union[str, Path] = "uploads", max_file_size: int = DEFAULT_MAX_FILE_SIZE
    ):
        self.uploads_dir = Path(uploads_dir)
        self.max_file_size = max_file_size
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    def validate(self, data: bytes, content_type: Optional[str]) -> None:
        """
        Check format and size.

        Raises:
            FileUploadError: Empty, unsupported or oversized file
        """
        if not data:
            raise FileUploadError("No file provided")
        if content_type not in ALLOWED_FORMATS:
            raise FileUploadError("Only .jpeg and .png formats are allowed")
        if len(data) > self.max_file_size:
            raise FileUploadError(
                f"File size exceeds {self.max_file_size // (1024 * 1024)}MB limit"
            )
        _, magic = ALLOWED_FORMATS[content_type]
        if not data.startswith(magic):
            raise FileUploadError("File content does not match its declared type")

    def _write(self, path: Path, data: bytes) -> None:
        path.write_bytes(data)

    async def save(self, data: bytes, content_type: Optional[str]) -> StoredFile:
        """Validate and write a file; returns its public URL."""
        self.validate(data, content_type)
        extension, _ = ALLOWED_FORMATS[content_type]  # type: ignore[index]
        filename = f"{secrets.token_hex(8)}{extension}"
        path = self.uploads_dir / filename
        await asyncio.to_thread(self._write, path, data)
        logger.info(f"Stored upload {filename} ({len(data)} bytes)")
        return StoredFile(
            filename=filename,
            path=path,
            url=f"{UPLOADS_URL_PREFIX}{filename}",
            size=len(data),
            content_type=content_type,  # type: ignore[arg-type]
        )

    def _resolve(self, filename: str) -> Path:
        if not filename or ".." in filename or "/" in filename or "\\" in filename:
            raise FileUploadError("Invalid filename")
        root = self.uploads_dir.resolve()
        target = (root / filename).resolve()
        if target.parent != root:
            raise ForbiddenError("Access denied")
        return target

    async def delete(self, filename: str) -> bool:
        """
        Remove a stored file. Missing files are not an error.

        Raises:
            FileUploadError: Filename tries to escape the uploads directory
        """
        target = self._resolve(filename)
        if not target.exists():
            return False
        await asyncio.to_thread(target.unlink)
        return True

    @staticmethod
    def extract_filename(url: str) -> Optional[str]:
        if not url or not url.startswith(UPLOADS_URL_PREFIX):
            return None
        return url[len(UPLOADS_URL_PREFIX):]


class UploadService:
    """Attach uploaded images to user galleries and posts."""

    def __init__(self, storage: FileStorage, users: UserRepository, posts: PostRepository):
        self.storage = storage
        self.users = users
        self.posts = posts

    async def upload_avatar(self, user_id: str, data: bytes, content_type: Optional[str]) -> Dict[str, Any]:
        if await self.users.get_by_id(user_id) is None:
            raise NotFoundError("User not found")
        stored = await self.storage.save(data, content_type)
        user = await self.users.add_photo(user_id, stored.url, make_primary=True)
        if user is None:
            raise NotFoundError("User not found")
        return {
            "filename": stored.filename,
            "url": stored.url,
            "primary_photo_url": user.primary_photo_url,
            "all_photos": user.photo_urls,
        }

    async def upload_post_image(
        self, user_id: str, post_id: str, data: bytes, content_type: Optional[str]
    ) -> Dict[str, Any]:
        post = await self.posts.get_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.user_id != user_id:
            raise ForbiddenError("Cannot add images to posts of other users")

        stored = await self.storage.save(data, content_type)
        updated_post = await self.posts.add_photo(post_id, stored.url)
        user = await self.users.add_photo(user_id, stored.url)
        return {
            "filename": stored.filename,
            "url": stored.url,
            "post_photos": updated_post.photo_urls if updated_post else [],
            "user_photos": user.photo_urls if user else [],
        }

    async def delete_image(self, user_id: str, filename: str) -> Dict[str, Any]:
        """
        Delete one of the user's images.

        If it was the avatar, the first remaining photo becomes the new avatar.
        """
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")

        url = f"{UPLOADS_URL_PREFIX}{filename}"
        if url not in user.photo_urls:
            raise ForbiddenError("You do not own this image")

        await self.storage.delete(filename)

        remaining = [photo for photo in user.photo_urls if photo != url]
        primary = user.primary_photo_url
        if primary == url:
            primary = remaining[0] if remaining else None

        updated = await self.users.update(
            user_id, {"photo_urls": remaining, "primary_photo_url": primary}
        )
        await self.posts.remove_photo_everywhere(user_id, url)
        logger.info(f"User {user_id} deleted image {filename}")
        return {
            "deleted_url": url,
            "photo_urls": updated.photo_urls if updated else remaining,
            "primary_photo_url": updated.primary_photo_url if updated else primary,
        }

    async def get_gallery(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return {
            "id": user.id,
            "name": user.name,
            "primary_photo": user.primary_photo_url,
            "photos": user.photo_urls,
            "total_photos": len(user.photo_urls),
        }
