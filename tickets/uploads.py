import datetime
import logging
import os

import requests
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


def store_photo(file_obj, folder, url_prefix="/uploads"):
    """Save an uploaded photo and return the URL to reference it by.

    Goes to Supabase storage when it is configured, otherwise to ``folder``.
    Returns None when the upload has no usable file name.
    """
    if file_obj is None:
        return None
    file_name = secure_filename(file_obj.filename or "")
    if not file_name:
        return None

    content = file_obj.read()
    unique_name = f"{datetime.datetime.utcnow().strftime('%Y%m%d%H%M%S%f')}_{file_name}"

    supabase_url = os.environ.get("SUPABASE_URL")
    service_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    bucket = os.environ.get("SUPABASE_STORAGE_BUCKET")

    if supabase_url and service_key and bucket:
        storage_path = f"tickets/{unique_name}"
        endpoint = f"{supabase_url}/storage/v1/object/{bucket}/{storage_path}"

        headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "x-upsert": "true",
            "Content-Type": file_obj.mimetype or "application/octet-stream",
        }

        try:
            response = requests.post(endpoint, headers=headers, data=content, timeout=40)
        except requests.RequestException as exc:
            logger.warning("Supabase upload failed, storing locally: %s", exc)
        else:
            if response.status_code in (200, 201):
                return f"{supabase_url}/storage/v1/object/public/{bucket}/{storage_path}"
            logger.warning("Supabase upload returned %s, storing locally", response.status_code)

    os.makedirs(folder, exist_ok=True)
    with open(os.path.join(folder, unique_name), "wb") as f:
        f.write(content)

    return f"{url_prefix}/{unique_name}"


def discard_photo(photo_url, folder, url_prefix="/uploads"):
    """Remove a locally stored photo that ended up unreferenced."""
    if not photo_url or not photo_url.startswith(f"{url_prefix}/"):
        return False
    path = os.path.join(folder, os.path.basename(photo_url))
    if not os.path.exists(path):
        return False
    os.remove(path)
    logger.info("Discarded unsaved photo %s", path)
    return True
