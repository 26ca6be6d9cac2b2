import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from postgrest.exceptions import APIError
from supabase_config import supabase_config
from contacts_csv import batched
from errors import ConflictError, DatabaseError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

NEWSLETTER_STATUSES = (
    "draft",
    "generating",
    "pending_approval",
    "revision_requested",
    "approved",
    "scheduled",
    "sent",
    "failed",
)

class NewsletterDB:
    """
    Database operations for companies, contact lists and newsletters in Supabase.
    Every write checks the returned rows; an empty response is a failed write.
    """

    def __init__(self):
        self.table_companies = "companies"
        self.table_uploads = "csv_uploads"
        self.table_contacts = "contacts"
        self.table_newsletters = "newsletters"
        self.table_sections = "newsletter_sections"

    def _get_client(self):
        if supabase_config and supabase_config.is_configured():
            return supabase_config.get_client()
        raise ConnectionError("Supabase is not configured. Check environment variables.")

    @staticmethod
    def _now() -> str:
        return datetime.now().isoformat()

    def _first(self, response, what: str) -> Dict:
        if not response.data:
            logger.error(f"Supabase returned no rows for {what}")
            raise DatabaseError(f"Failed to {what}")
        return response.data[0]

    # --- Companies ---

    def create_company(self, data: Dict) -> Dict:
        """Insert a company record; a duplicate contact email is a ConflictError"""
        record = {k: v for k, v in data.items() if v is not None}
        record.setdefault("status", "active")
        record.setdefault("contacts_count", 0)
        record["created_at"] = self._now()

        client = self._get_client()
        try:
            response = client.table(self.table_companies).insert(record).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError("A company with this email already exists")
            logger.error(f"Company insertion error: {e.message}")
            raise DatabaseError(f"Failed to insert company data: {e.message}")

        company = self._first(response, "create company")
        logger.info(f"Company persisted: {company.get('id')}")
        return company

    def get_company(self, company_id: str) -> Optional[Dict]:
        client = self._get_client()
        response = client.table(self.table_companies) \
            .select("*") \
            .eq("id", company_id) \
            .limit(1) \
            .execute()
        return response.data[0] if response.data else None

    def update_company_contacts_count(self, company_id: str, count: int) -> bool:
        client = self._get_client()
        response = client.table(self.table_companies) \
            .update({"contacts_count": count, "updated_at": self._now()}) \
            .eq("id", company_id) \
            .execute()
        return len(response.data) > 0

    # --- Contact lists ---

    def create_csv_upload(self, company_id: str, filename: str) -> Dict:
        data = {
            "company_id": company_id,
            "filename": filename,
            "status": "processing",
            "created_at": self._now(),
        }
        client = self._get_client()
        response = client.table(self.table_uploads).insert(data).execute()
        return self._first(response, "track CSV upload")

    def complete_csv_upload(self, upload_id: str, processed: int, failed: int) -> bool:
        data = {
            "status": "failed" if processed == 0 and failed > 0 else "completed",
            "processed_count": processed,
            "failed_count": failed,
            "error_message": f"Failed to insert {failed} contacts" if failed else None,
            "updated_at": self._now(),
        }
        client = self._get_client()
        response = client.table(self.table_uploads) \
            .update(data) \
            .eq("id", upload_id) \
            .execute()
        return len(response.data) > 0

    def fail_csv_upload(self, upload_id: str, error_message: str) -> bool:
        data = {
            "status": "failed",
            "error_message": str(error_message)[:500],
            "updated_at": self._now(),
        }
        client = self._get_client()
        response = client.table(self.table_uploads) \
            .update(data) \
            .eq("id", upload_id) \
            .execute()
        return len(response.data) > 0

    def insert_contacts(
        self,
        company_id: str,
        upload_id: Optional[str],
        contacts: List[Dict],
        batch_size: int = 100
    ) -> Tuple[int, int]:
        """
        Insert contacts in fixed-size batches.
        A rejected batch is counted as failed and the remaining batches still run.
        Returns (inserted, failed).
        """
        client = self._get_client()
        inserted = 0
        failed = 0

        for number, batch in enumerate(batched(contacts, batch_size), start=1):
            rows = [
                {
                    "company_id": company_id,
                    "csv_batch_id": upload_id,
                    "name": contact.get("name", ""),
                    "email": contact["email"],
                }
                for contact in batch
            ]
            logger.info(f"Inserting contact batch {number} ({len(rows)} rows)")
            try:
                response = client.table(self.table_contacts).insert(rows).execute()
            except APIError as e:
                logger.error(f"Error inserting contacts batch {number}: {e.message}")
                failed += len(rows)
                continue

            if response.data:
                inserted += len(rows)
            else:
                logger.error(f"Contacts batch {number} returned no rows")
                failed += len(rows)

        return inserted, failed

    def get_contacts(self, company_id: str) -> List[Dict]:
        client = self._get_client()
        response = client.table(self.table_contacts) \
            .select("id, name, email") \
            .eq("company_id", company_id) \
            .execute()
        return response.data or []

    # --- Newsletters ---

    def create_newsletter(self, company_id: str, title: str) -> Dict:
        data = {
            "company_id": company_id,
            "title": title,
            "status": "draft",
            "created_at": self._now(),
        }
        client = self._get_client()
        response = client.table(self.table_newsletters).insert(data).execute()
        newsletter = self._first(response, "create newsletter draft")
        logger.info(f"Newsletter draft created: {newsletter.get('id')}")
        return newsletter

    def get_newsletter(self, newsletter_id: str) -> Optional[Dict]:
        """Fetch a newsletter with its company and ordered sections"""
        client = self._get_client()
        response = client.table(self.table_newsletters) \
            .select("*") \
            .eq("id", newsletter_id) \
            .limit(1) \
            .execute()

        if not response.data:
            return None

        newsletter = response.data[0]
        newsletter["company"] = self.get_company(newsletter["company_id"])

        sections_response = client.table(self.table_sections) \
            .select("*") \
            .eq("newsletter_id", newsletter_id) \
            .order("section_number") \
            .execute()
        newsletter["sections"] = sections_response.data or []

        return newsletter

    def get_latest_newsletter(self, company_id: Optional[str] = None) -> Optional[Dict]:
        client = self._get_client()
        query = client.table(self.table_newsletters).select("id, company_id, title, status, created_at")
        if company_id:
            query = query.eq("company_id", company_id)
        response = query.order("created_at", desc=True).limit(1).execute()
        return response.data[0] if response.data else None

    def set_newsletter_status(self, newsletter_id: str, status: str) -> bool:
        if status not in NEWSLETTER_STATUSES:
            raise ValueError(f"Unknown newsletter status: {status}")
        client = self._get_client()
        response = client.table(self.table_newsletters) \
            .update({"status": status, "updated_at": self._now()}) \
            .eq("id", newsletter_id) \
            .execute()
        return len(response.data) > 0

    def save_newsletter_content(self, newsletter_id: str, industry_summary: str, sections: List[Dict]) -> List[Dict]:
        """Replace the newsletter's sections and mark it ready for review"""
        client = self._get_client()

        client.table(self.table_sections).delete().eq("newsletter_id", newsletter_id).execute()

        rows = [
            {
                "newsletter_id": newsletter_id,
                "section_number": section["section_number"],
                "heading": section["heading"][:255],
                "body": section["body"],
                "image_prompt": (section.get("image_prompt") or "")[:2000],
                "image_url": section.get("image_url"),
                "created_at": self._now(),
            }
            for section in sections
        ]
        sections_response = client.table(self.table_sections).insert(rows).execute()
        if not sections_response.data:
            raise DatabaseError("Failed to store newsletter sections")

        response = client.table(self.table_newsletters) \
            .update({
                "industry_summary": industry_summary,
                "status": "pending_approval",
                "error_message": None,
                "updated_at": self._now(),
            }) \
            .eq("id", newsletter_id) \
            .execute()
        self._first(response, "update newsletter")

        return sections_response.data

    def fail_newsletter(self, newsletter_id: str, error_message: str) -> bool:
        data = {
            "status": "failed",
            "error_message": str(error_message)[:500],
            "updated_at": self._now(),
        }
        client = self._get_client()
        response = client.table(self.table_newsletters) \
            .update(data) \
            .eq("id", newsletter_id) \
            .execute()
        return len(response.data) > 0

    def mark_draft_sent(self, newsletter_id: str) -> bool:
        now = self._now()
        client = self._get_client()
        response = client.table(self.table_newsletters) \
            .update({"status": "pending_approval", "draft_sent_at": now, "updated_at": now}) \
            .eq("id", newsletter_id) \
            .execute()
        return len(response.data) > 0

    def record_send_results(self, newsletter_id: str, sent: int, failed: int) -> Dict:
        if failed == 0:
            last_status = "success"
        elif sent == 0:
            last_status = "failed"
        else:
            last_status = "partial_failure"

        now = self._now()
        data = {
            "sent_count": sent,
            "failed_count": failed,
            "last_sent_status": last_status,
            "updated_at": now,
        }
        if sent > 0:
            data["status"] = "sent"
            data["sent_at"] = now

        client = self._get_client()
        client.table(self.table_newsletters) \
            .update(data) \
            .eq("id", newsletter_id) \
            .execute()
        return data

    def ping(self) -> bool:
        client = self._get_client()
        client.table(self.table_companies).select("id").limit(1).execute()
        return True

# Global instance for app-wide use
db = NewsletterDB()
