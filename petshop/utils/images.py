# petshop/utils/images.py
import shutil
import uuid
from pathlib import Path

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


def save_profile_image(source, images_dir) -> str:
    """Copy a picked image into the app's own storage and return the new path.

    The source may be a temporary location, so the customer record must only
    ever point at the copy.
    """
    source = Path(source)
    if not source.is_file():
        raise FileNotFoundError(f"Image not found: {source}")

    ext = source.suffix.lower() or ".jpg"
    if ext not in ALLOWED_EXTENSIONS:
        raise ValueError(f"Invalid file type: {ext}")

    target_dir = Path(images_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    save_path = target_dir / f"profile_{uuid.uuid4().hex}{ext}"

    with open(source, "rb") as src, open(save_path, "wb") as buffer:
        shutil.copyfileobj(src, buffer)
    return str(save_path.resolve())
