# only4u/errors.py
"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries a human readable message and the HTTP status the API
answers with. Nothing here is retried; the caller resubmits.
"""
from __future__ import annotations

from flask import jsonify


class ShopError(Exception):
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ── client mistakes ─────────────────────────────────────────────────────────

class ValidationError(ShopError):
    status_code = 400
    default_message = "Invalid input"


class Unauthenticated(ShopError):
    status_code = 401
    default_message = "Unauthorized"


class Unauthorized(ShopError):
    status_code = 403
    default_message = "Forbidden: Admin access required"


class DuplicateName(ShopError):
    status_code = 400
    default_message = "Product name must be unique"


class GroupNotFound(ShopError):
    status_code = 404
    default_message = "Product not found"


class InvalidVariant(ShopError):
    status_code = 400
    default_message = "All variants must have color, images, and stock"


class UserExists(ShopError):
    status_code = 400
    default_message = "User already exists"


# ── uploads ─────────────────────────────────────────────────────────────────

class UploadError(ShopError):
    status_code = 400
    default_message = "Image upload failed"


class InvalidFileType(UploadError):
    default_message = "Only image files are allowed"


class FileTooLarge(UploadError):
    default_message = "Image size must be less than 5MB"


class TooManyFiles(UploadError):
    default_message = "Maximum 10 images allowed per request"


class StorageError(UploadError):
    status_code = 500
    default_message = "Storage error"


# ── backend failures ────────────────────────────────────────────────────────

class PersistenceError(ShopError):
    status_code = 500
    default_message = "Failed to save product"


class SchemaError(PersistenceError):
    default_message = "Invalid column in write: check product_groups schema"


class VariantWriteError(PersistenceError):
    default_message = "Failed to save variant"


def error_response(err: ShopError):
    return jsonify({"error": err.message}), err.status_code


def register_error_handlers(app) -> None:
    app.register_error_handler(ShopError, error_response)
