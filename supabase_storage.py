import uuid
import logging
import requests
from datetime import datetime
from typing import Optional, Dict
from supabase_config import supabase_config, IMAGE_BUCKET

logger = logging.getLogger(__name__)

class SupabaseStorage:
    """
    Persists generated section images in Supabase Storage.
    Image URLs returned by the image model expire after about an hour, so
    anything emailed later must point at the bucket copy instead.
    """

    def __init__(self):
        # The bucket must exist in the Supabase project and be public
        self.bucket_name = IMAGE_BUCKET

    def upload_image_from_url(self, image_url: str, newsletter_id: str, section_number: int) -> Optional[Dict]:
        """
        Downloads an image from a source URL and uploads it to Supabase Storage.
        Returns None when either step fails.
        """
        try:
            logger.info(f"Starting image transfer for newsletter {newsletter_id}, section {section_number}")

            response = requests.get(image_url, timeout=60)
            response.raise_for_status()
            image_data = response.content

            # Path format: {newsletter_id}/section{n}_{timestamp}_{short_id}.png
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            unique_id = uuid.uuid4().hex[:8]
            filename = f"{newsletter_id}/section{section_number}_{timestamp}_{unique_id}.png"

            if not supabase_config.is_configured():
                logger.error("Supabase Storage transfer failed: Provider not configured")
                return None

            client = supabase_config.get_client()

            try:
                logger.info(f"Uploading to Supabase bucket '{self.bucket_name}': {filename}")
                client.storage.from_(self.bucket_name).upload(
                    path=filename,
                    file=image_data,
                    file_options={
                        "content-type": response.headers.get("Content-Type", "image/png"),
                        "upsert": "true",
                        "cache-control": "3600"
                    }
                )
            except Exception as upload_error:
                logger.error(f"Supabase Storage upload error: {upload_error}")
                return None

            logger.info(f"Stored section image: {filename}")
            return {
                "storage_path": filename,
                "public_url": supabase_config.get_storage_url(filename),
            }

        except requests.exceptions.RequestException as req_error:
            logger.error(f"Failed to download generated image: {req_error}")
            return None

# Global instance for app-wide use
storage = SupabaseStorage()
