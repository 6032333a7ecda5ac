# only4u/services/image_store.py
"""
Object storage for product images and signup documents.

Objects live on disk under ``UPLOAD_FOLDER/<bucket>/<key>`` and are served
publicly under ``MEDIA_URL_PREFIX/<bucket>/<key>``. Product image keys are
deterministic (``<owner>/<asset>-<role>.<ext>``) so a re-upload overwrites
the previous object instead of piling up new files.
"""
from __future__ import annotations

import glob
import io
import mimetypes
import os
import uuid
from dataclasses import dataclass, field

from flask import current_app
from PIL import Image, ImageOps, UnidentifiedImageError
from werkzeug.utils import secure_filename

from only4u.errors import (
    FileTooLarge,
    InvalidFileType,
    StorageError,
    TooManyFiles,
    ValidationError,
)

ROLES = ("main", "hover")


@dataclass
class StoredImage:
    url: str
    path: str
    # False when an existing object was overwritten
    created: bool = True
    # same stem, other extension; still live until the caller discards them
    stale: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"url": self.url, "path": self.path}


def _file_mimetype(fs) -> str:
    mt = (getattr(fs, "mimetype", None) or "").lower()
    if not mt or mt == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(getattr(fs, "filename", None) or "")
        mt = (guessed or mt).lower()
    return mt


def file_ext(fs, default: str = ".bin") -> str:
    ext = os.path.splitext(getattr(fs, "filename", None) or "")[1].lower()
    ext = secure_filename(ext.lstrip("."))
    return f".{ext}" if ext else default


def _read_bytes(fs) -> bytes:
    stream = getattr(fs, "stream", fs)
    try:
        stream.seek(0)
    except (AttributeError, OSError):
        pass
    return stream.read()


class ImageStore:
    def __init__(
        self,
        root: str,
        url_prefix: str = "/media",
        bucket: str = "product-images",
        max_bytes: int = 5 * 1024 * 1024,
        max_batch: int = 10,
        max_side: int = 1600,
        quality: int = 85,
        logger=None,
    ):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")
        self.bucket = bucket
        self.max_bytes = max_bytes
        self.max_batch = max_batch
        self.max_side = max_side
        self.quality = quality
        self._logger = logger

    @classmethod
    def from_app(cls, app=None) -> "ImageStore":
        app = app or current_app
        cfg = app.config
        return cls(
            root=cfg["UPLOAD_FOLDER"],
            url_prefix=cfg.get("MEDIA_URL_PREFIX", "/media"),
            bucket=cfg.get("PRODUCT_IMAGES_BUCKET", "product-images"),
            max_bytes=cfg.get("MAX_IMAGE_BYTES", 5 * 1024 * 1024),
            max_batch=cfg.get("MAX_UPLOAD_BATCH", 10),
            max_side=cfg.get("IMAGE_MAX_SIDE", 1600),
            quality=cfg.get("IMAGE_WEBP_QUALITY", 85),
            logger=app.logger,
        )

    @property
    def logger(self):
        return self._logger or current_app.logger

    # ── paths ────────────────────────────────────────────────────────────────

    def public_url(self, path: str, bucket: str | None = None) -> str:
        return f"{self.url_prefix}/{bucket or self.bucket}/{path}"

    def _abs(self, path: str, bucket: str | None = None) -> str:
        return os.path.join(self.root, bucket or self.bucket, *path.split("/"))

    def exists(self, path: str, bucket: str | None = None) -> bool:
        return os.path.isfile(self._abs(path, bucket))

    @staticmethod
    def _segment(value, what: str) -> str:
        seg = secure_filename(str(value or ""))
        if not seg:
            raise ValidationError(f"Invalid {what} for storage path")
        return seg

    def image_stem(self, owner_id, asset_id, role: str) -> str:
        if role not in ROLES:
            raise ValidationError(f"Invalid image role: {role}")
        owner = self._segment(owner_id, "owner id")
        asset = self._segment(asset_id, "asset id")
        return f"{owner}/{asset}-{role}"

    # ── validation ───────────────────────────────────────────────────────────

    def check_batch_size(self, count: int) -> None:
        if count > self.max_batch:
            raise TooManyFiles(f"Maximum {self.max_batch} images allowed per request")

    def check_image(self, fs) -> bytes:
        """Validate type and size, return the raw bytes."""
        mt = _file_mimetype(fs)
        if not mt.startswith("image/"):
            raise InvalidFileType()
        data = _read_bytes(fs)
        if len(data) > self.max_bytes:
            raise FileTooLarge()
        return data

    # ── writing ──────────────────────────────────────────────────────────────

    def _normalize(self, data: bytes, fallback_ext: str) -> tuple[bytes, str]:
        """
        EXIF rotate, RGB, longest side <= max_side, WebP.
        Content Pillow cannot decode is kept as uploaded.
        """
        try:
            img = Image.open(io.BytesIO(data))
            img = ImageOps.exif_transpose(img)
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGB")
            img.thumbnail((self.max_side, self.max_side), Image.Resampling.LANCZOS)
            if img.mode == "RGBA":
                bg = Image.new("RGB", img.size, (255, 255, 255))
                bg.paste(img, mask=img.split()[-1])
                img = bg
            out = io.BytesIO()
            img.save(out, format="WEBP", quality=self.quality, method=6)
            return out.getvalue(), ".webp"
        except (UnidentifiedImageError, OSError, ValueError):
            return data, fallback_ext

    def _write(self, path: str, data: bytes, bucket: str | None = None) -> bool:
        """Write atomically; returns True when the object did not exist before."""
        target = self._abs(path, bucket)
        created = not os.path.exists(target)
        tmp = f"{target}.{uuid.uuid4().hex}.tmp"
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(tmp, "wb") as fh:
                fh.write(data)
            os.replace(tmp, target)
        except OSError as e:
            try:
                if os.path.exists(tmp):
                    os.remove(tmp)
            except OSError:
                pass
            raise StorageError(f"Failed to store {path}: {e}") from e
        return created

    def _siblings(self, stem: str, keep: str) -> list[str]:
        """Keys of `<stem>.*` objects other than `keep` (extension changed on re-upload)."""
        bucket_root = os.path.join(self.root, self.bucket)
        keep_abs = os.path.abspath(self._abs(keep))
        found = []
        for candidate in sorted(glob.glob(glob.escape(self._abs(stem)) + ".*")):
            if candidate.endswith(".tmp") or os.path.abspath(candidate) == keep_abs:
                continue
            found.append(os.path.relpath(candidate, bucket_root).replace(os.sep, "/"))
        return found

    def upload(self, identity, owner_id, asset_id, role: str, fs) -> StoredImage:
        """
        Upsert one image at the deterministic path for owner/asset/role.

        An older object under the same stem with another extension is left in
        place and reported in `stale`; call `discard_stale` once nothing
        references it any more.
        """
        stem = self.image_stem(owner_id, asset_id, role)
        raw = self.check_image(fs)
        data, ext = self._normalize(raw, file_ext(fs, ".img"))
        path = f"{stem}{ext}"
        stale = self._siblings(stem, keep=path)
        created = self._write(path, data)
        self.logger.info(
            "[UPLOAD] %s -> %s (%d bytes, by=%s, created=%s, stale=%s)",
            getattr(fs, "filename", None), path, len(data), identity, created, stale,
        )
        return StoredImage(url=self.public_url(path), path=path, created=created, stale=stale)

    def discard_stale(self, stored: StoredImage) -> None:
        for path in stored.stale:
            self.delete(path)

    def upload_batch(self, identity, owner_id, files, asset_ids=None, role: str = "main") -> list[StoredImage]:
        files = [f for f in (files or []) if f is not None]
        self.check_batch_size(len(files))
        if asset_ids is not None and len(asset_ids) != len(files):
            raise ValidationError("variantIds must match the number of images")
        if asset_ids is None:
            assets = self._assets_from_filenames(files)
        else:
            assets = [self._segment(a, "asset id") for a in asset_ids]
            if len(set(assets)) != len(assets):
                raise ValidationError("variantIds must be unique")
        # Validate everything before the first write so a bad file leaves no trace
        for fs in files:
            self.check_image(fs)

        stored = []
        for asset, fs in zip(assets, files):
            item = self.upload(identity, owner_id, asset, role, fs)
            # no transaction around the batch endpoint, the new object is live now
            self.discard_stale(item)
            stored.append(item)
        return stored

    @staticmethod
    def _assets_from_filenames(files) -> list[str]:
        """Filename stems, suffixed with a counter when two files share a name."""
        assets: list[str] = []
        seen: set[str] = set()
        for fs in files:
            base = os.path.splitext(secure_filename(fs.filename or ""))[0] or uuid.uuid4().hex
            asset, n = base, 1
            while asset in seen:
                n += 1
                asset = f"{base}-{n}"
            seen.add(asset)
            assets.append(asset)
        return assets

    def store_file(self, identity, bucket: str, path: str, fs) -> StoredImage:
        """Store an arbitrary document (no image checks, size limit still applies)."""
        data = _read_bytes(fs)
        if len(data) > self.max_bytes:
            raise FileTooLarge("File size must be less than 5MB")
        created = self._write(path, data, bucket)
        self.logger.info("[UPLOAD] document %s/%s (%d bytes, by=%s)", bucket, path, len(data), identity)
        return StoredImage(url=self.public_url(path, bucket), path=path, created=created)

    def delete(self, path: str, bucket: str | None = None) -> bool:
        target = self._abs(path, bucket)
        try:
            os.remove(target)
            return True
        except FileNotFoundError:
            return False
        except OSError:
            self.logger.exception("[UPLOAD] failed to remove %s", target)
            return False

    def delete_owner(self, owner_id, bucket: str | None = None) -> None:
        """Drop the whole folder of one owner (group delete)."""
        owner = self._segment(owner_id, "owner id")
        folder = self._abs(owner, bucket)
        if not os.path.isdir(folder):
            return
        for name in os.listdir(folder):
            self.delete(f"{owner}/{name}", bucket)
        try:
            os.rmdir(folder)
        except OSError:
            self.logger.warning("[UPLOAD] folder %s not empty, kept", folder)

    def path_from_url(self, url: str | None) -> str | None:
        """Key inside the product bucket for a URL this store produced, else None."""
        prefix = f"{self.url_prefix}/{self.bucket}/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None
