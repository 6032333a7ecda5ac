# only4u/api/routes/media_routes.py
import os

from flask import Blueprint, abort, current_app, send_from_directory

media_bp = Blueprint("media", __name__)


@media_bp.get("/media/<bucket>/<path:filename>")
def media(bucket, filename):
    # only product pictures are public; licences stay private
    if bucket != current_app.config.get("PRODUCT_IMAGES_BUCKET", "product-images"):
        abort(404)
    root = os.path.join(current_app.config["UPLOAD_FOLDER"], bucket)
    return send_from_directory(root, filename)
