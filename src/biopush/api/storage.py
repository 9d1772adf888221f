import os

from flask import Blueprint, abort, send_from_directory

from biopush.shared.logger import app_logger
from biopush.storage import blob_store

bp = Blueprint('storage', __name__, url_prefix='/storage')


@bp.route('/<bucket>/<key>', methods=['GET'])
def get_public_object(bucket: str, key: str):
    """Serve a blob from a public bucket at the URL issued by BlobStore.get_public_url"""
    filepath = blob_store.public_path_for(bucket, key)
    if filepath is None:
        app_logger.warning(f"[STORAGE] Refused public read of {bucket!r}/{key!r}")
        abort(404)

    directory, filename = os.path.split(filepath)
    return send_from_directory(directory, filename)
