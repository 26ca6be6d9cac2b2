import json
import time
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, UploadFile, File, Form, HTTPException, Request
from fastapi.responses import StreamingResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from pydantic import BaseModel

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

# Suppress noisy logs
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("openai").setLevel(logging.WARNING)

from config import config
from errors import ApiError, NotFoundError, ValidationError
from supabase_db import db, NEWSLETTER_STATUSES
from contacts_csv import parse_contacts_csv
from validation import validate_onboarding_form, is_valid_email
from industry_templates import get_industry_names, get_industry_template
from main import (
    load_newsletter,
    generate_newsletter,
    generate_newsletter_stream,
    send_newsletter_draft,
    send_newsletter,
)

ENVIRONMENT = config.ENVIRONMENT
VERSION = "1.0.0"

app = FastAPI(
    title="Newsletter Onboarding API",
    description="Onboard companies, generate AI newsletters and email them to contact lists",
    version=VERSION,
    docs_url="/docs" if ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if ENVIRONMENT == "development" else None,
    openapi_url="/openapi.json" if ENVIRONMENT == "development" else None,
)

if ENVIRONMENT == "production":
    allowed_origins = config.get_cors_origins()
else:
    allowed_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


class NewsletterRequest(BaseModel):
    newsletterId: str


class StatusUpdate(BaseModel):
    status: str


class CompanySubmission(BaseModel):
    company_name: str
    contact_email: str
    website_url: Optional[str] = None
    industry: Optional[str] = None
    target_audience: Optional[str] = None
    audience_description: Optional[str] = None
    newsletter_objectives: Optional[str] = None
    primary_cta: Optional[str] = None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@app.get("/")
async def index():
    """Root endpoint with API information"""
    return {
        "message": "📰 Newsletter Onboarding API",
        "version": VERSION,
        "status": "running",
        "environment": ENVIRONMENT,
        "endpoints": {
            "POST /api/onboarding": "Create a company, import its contact list and open a newsletter draft",
            "POST /api/submit": "Create a company from JSON",
            "POST /api/newsletter/generate": "Generate newsletter copy and images",
            "POST /api/newsletter/generate-stream": "Stream newsletter generation progress (NDJSON)",
            "POST /api/newsletter/email": "Email the draft to the company for review",
            "POST /api/newsletter/send": "Send the newsletter to every contact",
            "GET /api/newsletter/{id}": "Get a newsletter with company and sections",
            "POST /api/newsletter/{id}/status": "Update a newsletter's status",
            "GET /api/newsletters/latest": "Most recent newsletter",
            "GET /api/company/{id}/latest-newsletter": "Most recent newsletter of a company",
            "GET /api/industries": "Industry templates for the onboarding form",
            "GET /health": "Health check",
        },
        "limits": {
            "max_csv_size": f"{config.CSV_FILE_SIZE_LIMIT // (1024 * 1024)}MB",
            "contact_batch_size": config.CONTACT_BATCH_SIZE,
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for production monitoring"""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "newsletter-onboarding",
        "version": VERSION,
        "environment": ENVIRONMENT,
        "components": {},
    }

    try:
        await asyncio.to_thread(db.ping)
        health_status["components"]["database"] = {"status": "healthy", "type": "supabase"}
    except Exception as db_error:
        health_status["components"]["database"] = {
            "status": "unhealthy",
            "error": str(db_error)[:200],
            "type": "supabase",
        }
        health_status["status"] = "unhealthy"

    health_status["components"]["email"] = {
        "status": "healthy" if config.BREVO_API_KEY and config.BREVO_SENDER_EMAIL else "unhealthy",
        "provider": "brevo",
    }

    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@app.get("/api/industries")
async def list_industries():
    return {"success": True, "data": get_industry_names()}


@app.get("/api/industries/{key}")
async def industry_template(key: str):
    return {"success": True, "data": get_industry_template(key)}


@app.post("/api/onboarding")
async def onboarding(
    company_name: Optional[str] = Form(None),
    website_url: Optional[str] = Form(None),
    contact_email: Optional[str] = Form(None),
    phone_number: Optional[str] = Form(None),
    industry: Optional[str] = Form(None),
    target_audience: Optional[str] = Form(None),
    audience_description: Optional[str] = Form(None),
    newsletter_objectives: Optional[List[str]] = Form(None),
    primary_cta: Optional[str] = Form(None),
    contact_list: Optional[UploadFile] = File(None),
):
    """
    Onboard a company: validate the form, store the company, import the
    optional CSV contact list in batches and open a draft newsletter.
    """
    objectives = "\n".join(o.strip() for o in (newsletter_objectives or []) if o and o.strip())
    fields = {
        "company_name": _clean(company_name),
        "website_url": _clean(website_url),
        "contact_email": _clean(contact_email),
        "phone_number": _clean(phone_number),
        "industry": _clean(industry),
        "target_audience": _clean(target_audience),
        "audience_description": _clean(audience_description),
        "newsletter_objectives": objectives or None,
        "primary_cta": _clean(primary_cta),
    }

    csv_filename = contact_list.filename if contact_list and contact_list.filename else None
    csv_content = await contact_list.read() if csv_filename else b""

    errors = validate_onboarding_form(
        fields,
        csv_filename=csv_filename,
        csv_size=len(csv_content),
        max_csv_size=config.CSV_FILE_SIZE_LIMIT,
    )
    if errors:
        logger.info(f"Onboarding form rejected: {', '.join(sorted(errors))}")
        raise ValidationError("Please correct the highlighted fields", errors)

    # Parse before writing anything so a bad file leaves no orphan company behind
    contacts = parse_contacts_csv(csv_content) if csv_content else []
    if contacts:
        logger.info(f"📇 Parsed {len(contacts)} contacts from {csv_filename}")

    fields["contact_email"] = fields["contact_email"].lower()
    company = await asyncio.to_thread(db.create_company, fields)
    company_id = company["id"]

    contacts_processed = 0
    contacts_failed = 0
    if contacts:
        upload = await asyncio.to_thread(db.create_csv_upload, company_id, csv_filename)
        try:
            contacts_processed, contacts_failed = await asyncio.to_thread(
                db.insert_contacts, company_id, upload["id"], contacts, config.CONTACT_BATCH_SIZE
            )
        except Exception as e:
            await asyncio.to_thread(db.fail_csv_upload, upload["id"], str(e))
            raise
        await asyncio.to_thread(db.complete_csv_upload, upload["id"], contacts_processed, contacts_failed)
        await asyncio.to_thread(db.update_company_contacts_count, company_id, contacts_processed)
        company["contacts_count"] = contacts_processed

    newsletter = await asyncio.to_thread(
        db.create_newsletter, company_id, f"{fields['company_name']} Newsletter Draft"
    )

    logger.info(
        f"✅ Onboarded {fields['company_name']} ({company_id}): "
        f"{contacts_processed} contacts, {contacts_failed} failed"
    )

    return {
        "success": True,
        "message": "Company and newsletter draft created successfully",
        "data": {
            "company": company,
            "newsletter": newsletter,
            "contacts_processed": contacts_processed,
            "contacts_failed": contacts_failed,
        },
    }


@app.post("/api/submit")
async def submit_company(payload: CompanySubmission):
    """Create a company from a JSON body, without a contact list"""
    data = {k: _clean(v) for k, v in payload.model_dump().items()}

    errors = {}
    if not data["company_name"]:
        errors["company_name"] = "Company name is required"
    if not is_valid_email(data["contact_email"]):
        errors["contact_email"] = "Please enter a valid email address"
    if errors:
        raise ValidationError("Please correct the highlighted fields", errors)

    data["contact_email"] = data["contact_email"].lower()
    company = await asyncio.to_thread(db.create_company, data)
    return {"success": True, "data": {"company_id": company["id"]}}


@app.post("/api/newsletter/generate")
async def generate_api(payload: NewsletterRequest):
    """Generate the industry summary, sections and images for a newsletter"""
    start_time = time.time()
    logger.info(f"🚀 Generation request for newsletter {payload.newsletterId}")

    results = await asyncio.to_thread(generate_newsletter, payload.newsletterId)

    logger.info(f"✅ Generation completed in {time.time() - start_time:.0f}s: {payload.newsletterId}")
    return {
        "success": True,
        "message": "Newsletter content generated successfully",
        "data": results,
    }


@app.post("/api/newsletter/generate-stream")
async def generate_stream_api(payload: NewsletterRequest):
    """Stream generation progress as newline-delimited JSON"""
    newsletter = await asyncio.to_thread(load_newsletter, payload.newsletterId)
    newsletter_id = newsletter["id"]
    logger.info(f"📡 Stream generation request for newsletter {newsletter_id}")

    async def generate():
        yield json.dumps({"type": "start", "timestamp": time.time(), "newsletter_id": newsletter_id}) + "\n"
        try:
            async for chunk in generate_newsletter_stream(newsletter):
                yield json.dumps(chunk) + "\n"
        except Exception as e:
            yield json.dumps({
                "type": "error",
                "timestamp": time.time(),
                "message": e.message if isinstance(e, ApiError) else "Generation failed",
                "newsletter_id": newsletter_id,
                "error_type": type(e).__name__,
            }) + "\n"

    return StreamingResponse(
        generate(),
        media_type="application/x-ndjson",
        headers={
            "X-Accel-Buffering": "no",
            "Cache-Control": "no-cache",
            "X-Newsletter-ID": newsletter_id,
        },
    )


@app.post("/api/newsletter/email")
async def email_draft_api(payload: NewsletterRequest):
    """Email the generated draft to the company contact for review"""
    result = await asyncio.to_thread(send_newsletter_draft, payload.newsletterId)
    return {"success": True, "message": "Newsletter draft sent successfully", "data": result}


@app.post("/api/newsletter/send")
async def send_api(payload: NewsletterRequest):
    """Send the newsletter to every contact of the company"""
    result = await asyncio.to_thread(send_newsletter, payload.newsletterId)
    return {"success": True, **result}


@app.get("/api/newsletter/{newsletter_id}")
async def get_newsletter(newsletter_id: str):
    newsletter = await asyncio.to_thread(db.get_newsletter, newsletter_id)
    if not newsletter:
        raise NotFoundError("Newsletter not found")
    return {"success": True, "data": newsletter}


@app.post("/api/newsletter/{newsletter_id}/status")
async def update_newsletter_status(newsletter_id: str, payload: StatusUpdate):
    if payload.status not in NEWSLETTER_STATUSES:
        raise ValidationError(
            f"Invalid status '{payload.status}'",
            {"status": f"Must be one of: {', '.join(NEWSLETTER_STATUSES)}"},
        )
    if not await asyncio.to_thread(db.set_newsletter_status, newsletter_id, payload.status):
        raise NotFoundError("Newsletter not found")
    return {"success": True, "data": {"id": newsletter_id, "status": payload.status}}


@app.get("/api/newsletters/latest")
async def latest_newsletter():
    newsletter = await asyncio.to_thread(db.get_latest_newsletter)
    if not newsletter:
        raise NotFoundError("No newsletters found")
    return {"success": True, "id": newsletter["id"], "data": newsletter}


@app.get("/api/company/{company_id}/latest-newsletter")
async def company_latest_newsletter(company_id: str):
    newsletter = await asyncio.to_thread(db.get_latest_newsletter, company_id)
    if not newsletter:
        raise NotFoundError("No newsletters found for this company")
    return {"success": True, "id": newsletter["id"], "data": newsletter}


# Error handlers
def _error_response(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error": message,
            "status_code": status_code,
            "timestamp": datetime.now().isoformat(),
            "path": request.url.path,
            **extra,
        },
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"❌ {type(exc).__name__} at {request.url.path}: {exc.message}")
    else:
        logger.warning(f"⚠️ HTTP {exc.status_code} at {request.url.path}: {exc.message}")
    extra = {"errors": exc.errors} if isinstance(exc, ValidationError) and exc.errors else {}
    return _error_response(request, exc.status_code, exc.message, **extra)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"⚠️ HTTP {exc.status_code} at {request.url.path}: {exc.detail}")
    return _error_response(request, exc.status_code, str(exc.detail))


@app.exception_handler(ConnectionError)
async def connection_error_handler(request: Request, exc: ConnectionError):
    logger.error(f"❌ Database unavailable at {request.url.path}: {exc}")
    return _error_response(request, 503, "Database service temporarily unavailable")


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Log internally, return a generic error"""
    logger.error(f"❌ Unhandled exception at {request.url.path}: {exc}", exc_info=True)
    return _error_response(request, 500, "Internal server error")


@app.on_event("startup")
async def startup_event():
    logger.info(f"📰 Newsletter Onboarding API starting (environment: {ENVIRONMENT})")
    if allowed_origins:
        logger.info(f"✅ CORS allowed origins: {allowed_origins}")


# For local development only
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host=config.HOST,
        port=config.PORT,
        reload=ENVIRONMENT == "development",
        log_level=config.LOG_LEVEL,
        timeout_keep_alive=config.REQUEST_TIMEOUT,
    )
