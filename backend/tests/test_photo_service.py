"""
DevCamper Backend: Photo Service Unit Tests
=============================================

What:  Validation, naming and storage of bootcamp photos.
How:   Storage tests write to a temporary directory.

Test Strategy:
    ✅ Only image content types are accepted
    ✅ Size limit boundary and its KB message, reported size checked first
    ✅ Stored name is photo_<id><ext>, with odd extensions dropped
    ✅ Store / serve / delete round trip, missing file tolerated on delete
    ✅ Keys escaping the storage root are rejected
"""

from unittest.mock import patch
from uuid import uuid4

import pytest

from devcamper.exceptions import FileStorageError, ValidationError
from devcamper.services.photo_service import PhotoStorage, photo_key, validate_photo


class TestValidatePhoto:

    def test_image_types_accepted(self):
        validate_photo("image/jpeg", 100, max_size=1000)
        validate_photo("image/png", 1000, max_size=1000)

    @pytest.mark.parametrize("content_type", [None, "", "application/pdf", "text/plain"])
    def test_non_images_rejected(self, content_type):
        with pytest.raises(ValidationError, match="File must be an image"):
            validate_photo(content_type, 10, max_size=1000)

    def test_size_limit_message(self):
        with pytest.raises(ValidationError, match="File cannot be more than 1000 KB"):
            validate_photo("image/jpeg", 1_000_001, max_size=1_000_000)

    def test_reported_size_rejected_before_reading(self):
        with pytest.raises(ValidationError, match="File cannot be more than 1000 KB"):
            validate_photo("image/jpeg", None, max_size=1_000_000, reported_size=2_000_000)

        validate_photo("image/jpeg", None, max_size=1_000_000, reported_size=None)


class TestPhotoKey:

    def test_keeps_extension(self):
        record_id = uuid4()
        assert photo_key(record_id, "Campus.JPG") == f"photo_{record_id}.jpg"

    def test_drops_missing_or_odd_extension(self):
        record_id = uuid4()
        assert photo_key(record_id, None) == f"photo_{record_id}"
        assert photo_key(record_id, "evil.j/pg") == f"photo_{record_id}"


class TestPhotoStorage:

    @pytest.mark.asyncio
    async def test_store_serve_delete(self, temp_storage, sample_image_bytes):
        storage = PhotoStorage(storage_root=temp_storage)

        key = await storage.store("photo_1.jpg", sample_image_bytes)

        path = storage.path_for(key)
        assert path is not None
        assert path.read_bytes() == sample_image_bytes

        await storage.delete(key)
        assert storage.path_for(key) is None

    @pytest.mark.asyncio
    async def test_delete_missing_file_is_not_an_error(self, temp_storage):
        storage = PhotoStorage(storage_root=temp_storage)
        await storage.delete("photo_never_stored.jpg")

    @pytest.mark.asyncio
    async def test_delete_failure_raises_storage_error(self, temp_storage, sample_image_bytes):
        storage = PhotoStorage(storage_root=temp_storage)
        await storage.store("photo_2.jpg", sample_image_bytes)

        with patch("devcamper.services.photo_service.os.remove", side_effect=PermissionError("denied")):
            with pytest.raises(FileStorageError, match="deleting the photo"):
                await storage.delete("photo_2.jpg")

    @pytest.mark.asyncio
    async def test_keys_outside_root_rejected(self, temp_storage):
        storage = PhotoStorage(storage_root=temp_storage)

        assert storage.path_for("../secrets.txt") is None
        with pytest.raises(ValidationError):
            await storage.store("../escape.jpg", b"x")
