"""
Removal of photo rows whose stored object no longer exists.
"""
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.db.models.profile import Photo

logger = logging.getLogger(__name__)


def _keyed_photos(db: Session) -> list:
    # Rows without a key were never uploaded; they are not orphans
    photos = db.query(Photo).order_by(Photo.id).all()
    return [photo for photo in photos if photo.object_key and photo.object_key.strip()]


def find_orphan_photos(db: Session, storage, photos: Optional[list] = None) -> list:
    photos = _keyed_photos(db) if photos is None else photos
    return [photo for photo in photos if not storage.exists(photo.object_key)]


def cleanup_orphan_photos(db: Session, storage, dry_run: bool = False) -> Dict:
    """
    Delete every Photo row whose object_key has no backing object.

    Rows whose object exists are left untouched, so a second run finds
    nothing to remove.
    """
    photos = _keyed_photos(db)
    checked = len(photos)
    orphans = find_orphan_photos(db, storage, photos)
    orphan_ids = [photo.id for photo in orphans]

    for photo in orphans:
        logger.info(f"Orphan photo: id={photo.id}, profile_id={photo.profile_id}, key={photo.object_key}")
        if not dry_run:
            db.delete(photo)

    if not dry_run:
        db.commit()

    logger.info(f"Photo cleanup: checked={checked}, missing={len(orphans)}, dry_run={dry_run}")
    return {
        "checked": checked,
        "missing": len(orphans),
        "removed": 0 if dry_run else len(orphans),
        "missingPhotoIds": orphan_ids,
    }
