import os
import logging
from supabase import create_client, Client
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

IMAGE_BUCKET = "newsletter-images"

class SupabaseConfig:
    """Supabase client holder (one per process)"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(SupabaseConfig, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.url = os.getenv("SUPABASE_URL")
        self.anon_key = os.getenv("SUPABASE_ANON_KEY")
        self.service_key = os.getenv("SUPABASE_SERVICE_KEY")

        logger.info(f"🔗 Supabase URL: {self.url}")

        # Service key bypasses RLS; contacts and newsletters are written server-side only
        if self.url and self.service_key:
            key, label = self.service_key, "SERVICE ROLE"
        elif self.url and self.anon_key:
            key, label = self.anon_key, "ANON"
            logger.warning("⚠️  Using ANON key (writes may be blocked by RLS)")
        else:
            logger.warning("⚠️  Supabase credentials not found")
            self.client = None
            return

        try:
            self.client = create_client(self.url, key)
            logger.info(f"✅ Supabase client initialized with {label} key")
        except Exception as e:
            logger.error(f"❌ Failed to initialize Supabase client: {e}")
            self.client = None

    def get_client(self) -> Client:
        return self.client

    def is_configured(self) -> bool:
        return self.client is not None

    def get_storage_url(self, path: str) -> str:
        """Get public URL for a file in the image bucket"""
        if not self.url:
            return f"local/{path}"
        return f"{self.url.rstrip('/')}/storage/v1/object/public/{IMAGE_BUCKET}/{path}"

# Global instance
supabase_config = SupabaseConfig()
