import io
import logging
import os

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

from only4u.errors import FileTooLarge, InvalidFileType, TooManyFiles, ValidationError
from only4u.services.image_store import ImageStore

FIVE_MIB = 5 * 1024 * 1024


@pytest.fixture
def store(tmp_path):
    return ImageStore(root=str(tmp_path), logger=logging.getLogger("test.image_store"))


def _raw(size, name="big.jpg", content_type="image/jpeg"):
    return FileStorage(stream=io.BytesIO(b"\0" * size), filename=name, content_type=content_type)


def _files(store, owner):
    folder = os.path.join(store.root, store.bucket, owner)
    return sorted(os.listdir(folder)) if os.path.isdir(folder) else []


class TestUpload:
    def test_stores_webp_under_deterministic_path(self, store, make_image):
        stored = store.upload("admin", "g1", "v1", "main", make_image())
        assert stored.path == "g1/v1-main.webp"
        assert stored.url == "/media/product-images/g1/v1-main.webp"
        assert stored.created is True
        with Image.open(os.path.join(store.root, "product-images", "g1", "v1-main.webp")) as img:
            assert img.format == "WEBP"

    def test_reupload_overwrites_same_object(self, store, make_image):
        first = store.upload("admin", "g1", "v1", "main", make_image(color=(255, 0, 0)))
        second = store.upload("admin", "g1", "v1", "main", make_image(color=(0, 0, 255)))
        assert first.path == second.path
        assert second.created is False
        assert _files(store, "g1") == ["v1-main.webp"]

    def test_changed_extension_keeps_sibling_until_discarded(self, store, make_image):
        raw = store.upload("admin", "g1", "v1", "hover", _raw(128, name="scan.jpg"))
        assert raw.path == "g1/v1-hover.jpg"
        webp = store.upload("admin", "g1", "v1", "hover", make_image())
        assert webp.created is True
        assert webp.stale == ["g1/v1-hover.jpg"]
        assert _files(store, "g1") == ["v1-hover.jpg", "v1-hover.webp"]

        store.discard_stale(webp)
        assert _files(store, "g1") == ["v1-hover.webp"]

    def test_large_image_is_downscaled(self, store, make_image):
        stored = store.upload("admin", "g1", "v1", "main", make_image(size=(3200, 1000)))
        with Image.open(os.path.join(store.root, "product-images", stored.path)) as img:
            assert img.size == (1600, 500)

    def test_rejects_non_image(self, store):
        fs = FileStorage(stream=io.BytesIO(b"hello"), filename="notes.txt", content_type="text/plain")
        with pytest.raises(InvalidFileType) as exc:
            store.upload("admin", "g1", "v1", "main", fs)
        assert exc.value.message == "Only image files are allowed"
        assert _files(store, "g1") == []

    def test_exactly_five_mib_is_accepted(self, store):
        stored = store.upload("admin", "g1", "v1", "main", _raw(FIVE_MIB))
        assert store.exists(stored.path)

    def test_one_byte_over_five_mib_is_rejected(self, store):
        with pytest.raises(FileTooLarge) as exc:
            store.upload("admin", "g1", "v1", "main", _raw(FIVE_MIB + 1))
        assert exc.value.message == "Image size must be less than 5MB"

    def test_unsafe_owner_is_rejected(self, store, make_image):
        with pytest.raises(ValidationError):
            store.upload("admin", "../", "v1", "main", make_image())

    def test_unknown_role_is_rejected(self, store, make_image):
        with pytest.raises(ValidationError):
            store.upload("admin", "g1", "v1", "thumb", make_image())


class TestBatch:
    def test_eleven_files_fail_before_any_write(self, store, make_image):
        files = [make_image(name=f"img{i}.png") for i in range(11)]
        with pytest.raises(TooManyFiles) as exc:
            store.upload_batch("admin", "g1", files)
        assert exc.value.message == "Maximum 10 images allowed per request"
        assert _files(store, "g1") == []

    def test_one_bad_file_blocks_the_batch(self, store, make_image):
        bad = FileStorage(stream=io.BytesIO(b"%PDF"), filename="doc.pdf", content_type="application/pdf")
        with pytest.raises(InvalidFileType):
            store.upload_batch("admin", "g1", [make_image(), bad])
        assert _files(store, "g1") == []

    def test_asset_ids_name_the_objects(self, store, make_image):
        out = store.upload_batch("admin", "g1", [make_image(), make_image(name="b.png")], asset_ids=["v1", "v2"])
        assert [s.path for s in out] == ["g1/v1-main.webp", "g1/v2-main.webp"]

    def test_same_filename_twice_gets_two_objects(self, store, make_image):
        out = store.upload_batch("admin", "g1", [make_image(name="photo.png"), make_image(name="photo.png")])
        assert [s.path for s in out] == ["g1/photo-main.webp", "g1/photo-2-main.webp"]
        assert _files(store, "g1") == ["photo-2-main.webp", "photo-main.webp"]

    def test_duplicate_asset_ids_are_rejected(self, store, make_image):
        with pytest.raises(ValidationError):
            store.upload_batch("admin", "g1", [make_image(), make_image()], asset_ids=["v1", "v1"])
        assert _files(store, "g1") == []

    def test_batch_replaces_sibling_right_away(self, store, make_image):
        store.upload("admin", "g1", "v1", "main", _raw(128, name="scan.jpg"))
        store.upload_batch("admin", "g1", [make_image()], asset_ids=["v1"])
        assert _files(store, "g1") == ["v1-main.webp"]

    def test_filename_stem_used_without_ids(self, store, make_image):
        out = store.upload_batch("admin", "g1", [make_image(name="Blue Shirt.png")], role="hover")
        assert out[0].path == "g1/Blue_Shirt-hover.webp"

    def test_id_count_must_match(self, store, make_image):
        with pytest.raises(ValidationError):
            store.upload_batch("admin", "g1", [make_image()], asset_ids=["v1", "v2"])


class TestHousekeeping:
    def test_path_from_url_only_for_own_bucket(self, store):
        assert store.path_from_url("/media/product-images/g1/v1-main.webp") == "g1/v1-main.webp"
        assert store.path_from_url("https://cdn.example.com/x.webp") is None
        assert store.path_from_url(None) is None

    def test_delete_is_quiet_for_missing_objects(self, store, make_image):
        stored = store.upload("admin", "g1", "v1", "main", make_image())
        assert store.delete(stored.path) is True
        assert store.delete(stored.path) is False

    def test_delete_owner_drops_folder(self, store, make_image):
        store.upload("admin", "g1", "v1", "main", make_image())
        store.upload("admin", "g1", "v1", "hover", make_image())
        store.delete_owner("g1")
        assert not os.path.exists(os.path.join(store.root, "product-images", "g1"))

    def test_store_file_keeps_documents_raw(self, store):
        fs = FileStorage(stream=io.BytesIO(b"%PDF-1.4"), filename="license.pdf", content_type="application/pdf")
        stored = store.store_file("u1", "business-licenses", "u1/license-1.pdf", fs)
        assert stored.url == "/media/business-licenses/u1/license-1.pdf"
        with open(os.path.join(store.root, "business-licenses", "u1", "license-1.pdf"), "rb") as fh:
            assert fh.read() == b"%PDF-1.4"
