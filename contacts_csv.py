import io
import csv
import logging
from typing import Dict, Iterator, List

from errors import ValidationError
from validation import is_valid_email

logger = logging.getLogger(__name__)

def parse_contacts_csv(content: bytes) -> List[Dict[str, str]]:
    """
    Parse an uploaded contact list.

    The first row is the header; only ``email`` is required, ``name`` is
    optional. Rows with a missing or malformed email are skipped and emails
    are lower-cased and de-duplicated.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError(f"Error parsing CSV: file is not valid UTF-8 ({e.reason})")

    reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)

    # Normalize headers: lowercase and strip whitespace
    try:
        if reader.fieldnames:
            reader.fieldnames = [(f or "").lower().strip() for f in reader.fieldnames]
    except csv.Error as e:
        raise ValidationError(f"Error parsing CSV header: {e}")

    if not reader.fieldnames or "email" not in reader.fieldnames:
        raise ValidationError("Error parsing CSV: the file must have an 'email' column")

    contacts = []
    seen = set()
    skipped = 0

    try:
        for row in reader:
            email = (row.get("email") or "").strip().lower()
            if not is_valid_email(email):
                skipped += 1
                continue
            if email in seen:
                continue
            seen.add(email)
            contacts.append({
                "name": (row.get("name") or "").strip(),
                "email": email,
            })
    except csv.Error as e:
        raise ValidationError(f"Error parsing CSV: {e}")

    if skipped:
        logger.info(f"Skipped {skipped} CSV rows without a valid email")

    if not contacts:
        raise ValidationError("No valid contacts found in CSV")

    return contacts

def batched(items: List, size: int) -> Iterator[List]:
    if size < 1:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]
