import time
import asyncio
import logging
from typing import Dict, List, Optional
from config import config
from errors import NotFoundError, ValidationError
from industry_insights import generate_industry_summary
from section_generator import generate_newsletter_sections
from image_generator import generate_section_images
from email_template import generate_email_html, generate_plain_text
from email_sender import send_email, send_bulk
from utils import parse_llm_json, normalize_sections
from supabase_db import db

logger = logging.getLogger(__name__)

def load_newsletter(newsletter_id: str) -> Dict:
    if not newsletter_id:
        raise ValidationError("newsletterId is required")
    newsletter = db.get_newsletter(newsletter_id)
    if not newsletter:
        raise NotFoundError("Newsletter not found")
    if not newsletter.get("company"):
        raise NotFoundError("Company data not found")
    return newsletter

def _view_url(newsletter_id: str) -> Optional[str]:
    return f"{config.BASE_URL}/newsletter/{newsletter_id}" if config.BASE_URL else None

def _require_content(newsletter: Dict) -> List[Dict]:
    sections = newsletter.get("sections") or []
    if not newsletter.get("industry_summary") or not sections:
        raise ValidationError("Newsletter content not fully generated yet")
    return sections

def generate_newsletter(newsletter_id: str) -> Dict:
    """
    Generate the industry summary, three sections and their images, and save them.
    On failure the newsletter is marked ``failed`` and the error propagates.
    """
    newsletter = load_newsletter(newsletter_id)
    company = newsletter["company"]

    logger.info("=" * 60)
    logger.info(f"🚀 NEWSLETTER GENERATION: {company.get('company_name')} ({newsletter_id})")
    logger.info("=" * 60)

    total_start = time.time()
    db.set_newsletter_status(newsletter_id, "generating")

    try:
        # 1. Industry summary
        summary_start = time.time()
        industry_summary = generate_industry_summary(company)
        logger.info(f"✅ Industry summary generated in {time.time()-summary_start:.1f}s")

        # 2. Sections with image prompts
        sections_start = time.time()
        sections = normalize_sections(parse_llm_json(generate_newsletter_sections(company, industry_summary)))
        logger.info(f"✅ {len(sections)} sections generated in {time.time()-sections_start:.1f}s")

        # 3. Images in parallel
        images_start = time.time()
        sections = generate_section_images(sections, newsletter_id, max_workers=config.IMAGE_MAX_WORKERS)
        images_time = time.time() - images_start

        # 4. Persist
        stored_sections = db.save_newsletter_content(newsletter_id, industry_summary, sections)
    except Exception as e:
        logger.error(f"❌ Generation failed for {newsletter_id}: {e}", exc_info=True)
        try:
            db.fail_newsletter(newsletter_id, str(e))
        except Exception as fail_error:
            logger.error(f"❌ Failed to mark newsletter as failed: {fail_error}")
        raise

    total_time = time.time() - total_start
    logger.info(f"🎯 GENERATION COMPLETE in {total_time:.1f}s")

    return {
        "newsletter_id": newsletter_id,
        "industry_summary": industry_summary,
        "sections": stored_sections,
        "performance": {
            "total_time": round(total_time, 2),
            "image_generation_time": round(images_time, 2),
            "images_generated": sum(1 for s in sections if s.get("image_url")),
        },
    }

async def generate_newsletter_stream(newsletter: Dict):
    """
    Streaming variant of generate_newsletter for a newsletter already loaded
    with load_newsletter. Yields events as each stage finishes.
    """
    newsletter_id = newsletter["id"]
    company = newsletter["company"]
    total_start = time.time()

    await asyncio.to_thread(db.set_newsletter_status, newsletter_id, "generating")

    try:
        industry_summary = await asyncio.to_thread(generate_industry_summary, company)
        yield {"type": "summary", "data": industry_summary, "timestamp": time.time()}

        sections_raw = await asyncio.to_thread(generate_newsletter_sections, company, industry_summary)
        sections = normalize_sections(parse_llm_json(sections_raw))
        yield {"type": "sections", "data": sections, "timestamp": time.time()}

        yield {"type": "image_start", "count": len(sections), "timestamp": time.time()}
        sections = await asyncio.to_thread(
            generate_section_images, sections, newsletter_id, config.IMAGE_MAX_WORKERS
        )
        for section in sections:
            yield {
                "type": "image",
                "data": {"section_number": section["section_number"], "image_url": section.get("image_url")},
                "timestamp": time.time(),
            }

        await asyncio.to_thread(db.save_newsletter_content, newsletter_id, industry_summary, sections)
    except Exception as e:
        logger.error(f"❌ Stream generation failed for {newsletter_id}: {e}", exc_info=True)
        try:
            await asyncio.to_thread(db.fail_newsletter, newsletter_id, str(e))
        except Exception as fail_error:
            logger.error(f"❌ Failed to mark newsletter as failed: {fail_error}")
        raise

    yield {
        "type": "complete",
        "newsletter_id": newsletter_id,
        "total_time": round(time.time() - total_start, 2),
        "timestamp": time.time(),
    }

def send_newsletter_draft(newsletter_id: str) -> Dict:
    """Email the generated draft to the company's own contact address for review"""
    newsletter = load_newsletter(newsletter_id)
    sections = _require_content(newsletter)
    company = newsletter["company"]
    company_name = company.get("company_name") or ""
    view_url = _view_url(newsletter_id)

    html = generate_email_html(company_name, newsletter["industry_summary"], sections, draft=True, view_url=view_url)
    text = generate_plain_text(company_name, newsletter["industry_summary"], sections, draft=True, view_url=view_url)

    result = send_email(company["contact_email"], f"Newsletter Draft - {company_name}", html, text)
    db.mark_draft_sent(newsletter_id)

    return {
        "email": company["contact_email"],
        "newsletter_id": newsletter_id,
        "message_id": result.get("message_id"),
    }

def send_newsletter(newsletter_id: str) -> Dict:
    """Send the newsletter to every contact of the company and record the outcome"""
    newsletter = load_newsletter(newsletter_id)
    sections = _require_content(newsletter)
    company = newsletter["company"]
    company_name = company.get("company_name") or ""

    contacts = db.get_contacts(newsletter["company_id"])
    if not contacts:
        raise ValidationError("No contacts to send the newsletter to")

    view_url = _view_url(newsletter_id)
    html = generate_email_html(company_name, newsletter["industry_summary"], sections, view_url=view_url)
    text = generate_plain_text(company_name, newsletter["industry_summary"], sections, view_url=view_url)

    results = send_bulk(
        contacts,
        f"{company_name} - Industry Newsletter",
        html,
        text,
        max_workers=config.EMAIL_MAX_WORKERS,
    )
    failed = [r for r in results if not r["success"]]
    sent = len(results) - len(failed)

    outcome = db.record_send_results(newsletter_id, sent, len(failed))

    return {
        "newsletter_id": newsletter_id,
        "totalSent": sent,
        "failedCount": len(failed),
        "status": outcome["last_sent_status"],
        "failed": [{"email": r["email"], "error": r.get("error")} for r in failed],
    }
