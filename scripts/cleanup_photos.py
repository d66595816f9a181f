"""
Remove photo rows whose uploaded file no longer exists.
Run: python -m scripts.cleanup_photos [--dry-run] [--upload-dir uploads]
"""
import argparse
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import UPLOAD_DIR
from app.db.session import SessionLocal
from app.services.photo_cleanup_service import cleanup_orphan_photos
from app.services.storage import LocalUploadStorage

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete Photo rows with no stored object")
    parser.add_argument("--dry-run", action="store_true", help="Only report missing objects")
    parser.add_argument("--upload-dir", default=UPLOAD_DIR, help="Upload root to check against")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        result = cleanup_orphan_photos(db, LocalUploadStorage(args.upload_dir), dry_run=args.dry_run)
    finally:
        db.close()

    logger.info(
        f"Checked {result['checked']} photo(s): {result['missing']} missing, {result['removed']} removed"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
