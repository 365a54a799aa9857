import logging
import os
import uuid

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from petstore.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def _upload_folder():
    return os.path.abspath(current_app.config['UPLOAD_FOLDER'])


def save_image(file_storage):
    """Store an uploaded image and return its public id."""
    if file_storage is None or not file_storage.filename or not allowed_file(file_storage.filename):
        raise ValidationError(f"Invalid image file. Allowed extensions: {', '.join(sorted(ALLOWED_EXTENSIONS))}")
    public_id = f"{uuid.uuid4().hex}_{secure_filename(file_storage.filename)}"
    folder = _upload_folder()
    os.makedirs(folder, exist_ok=True)
    file_storage.save(os.path.join(folder, public_id))
    logger.info(f"Image stored as {public_id}")
    return public_id


def delete_image(public_id):
    if not public_id:
        return False
    path = os.path.join(_upload_folder(), secure_filename(public_id))
    if not os.path.exists(path):
        return False
    os.remove(path)
    logger.info(f"Image {public_id} deleted")
    return True


def image_url(public_id):
    if not public_id:
        return None
    return url_for('uploaded_file', filename=public_id)
