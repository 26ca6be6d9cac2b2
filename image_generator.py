import os
import time
import logging
import concurrent.futures
from typing import List, Dict, Optional
from openai import OpenAI, OpenAIError
from dotenv import load_dotenv
from supabase_storage import storage

load_dotenv()

logger = logging.getLogger(__name__)

client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3")
IMAGE_SIZE = os.getenv("IMAGE_SIZE", "1024x1024")

def generate_section_image(prompt: str) -> Optional[str]:
    """Generate one image and return its temporary URL, or None on failure"""
    if not prompt:
        return None

    try:
        logger.info(f"   → Generating image: {prompt[:40]}...")
        response = client.images.generate(
            model=IMAGE_MODEL,
            prompt=prompt,
            n=1,
            size=IMAGE_SIZE,
        )
    except OpenAIError as e:
        logger.error(f"   ❌ Image generation failed: {e}")
        return None

    if not response.data:
        logger.error("   ❌ Image API returned no data")
        return None
    return response.data[0].url

def process_section_image(section: Dict, newsletter_id: str) -> Dict:
    """Generate and persist the image for one section; never raises for image failures"""
    number = section["section_number"]
    start_time = time.time()
    result = dict(section, image_url=None)

    temporary_url = generate_section_image(section.get("image_prompt", ""))
    if not temporary_url:
        logger.warning(f"   ❌ No image for section {number} after {time.time() - start_time:.1f}s")
        return result

    stored = storage.upload_image_from_url(temporary_url, newsletter_id, number)
    if stored:
        result["image_url"] = stored["public_url"]
    else:
        logger.warning(f"   ⚠️ Storage upload failed for section {number}, keeping temporary URL")
        result["image_url"] = temporary_url

    logger.info(f"   ✅ Section {number} image ready in {time.time() - start_time:.1f}s")
    return result

def generate_section_images(sections: List[Dict], newsletter_id: str, max_workers: int = 3) -> List[Dict]:
    """
    Generate one image per section in parallel.
    Returns the sections (ordered by section_number) with ``image_url`` set or None.
    """
    if not sections:
        return []

    logger.info(f"🖼️  Generating {len(sections)} section images for newsletter {newsletter_id}")
    start_time = time.time()
    results = []

    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        future_to_section = {
            executor.submit(process_section_image, section, newsletter_id): section
            for section in sections
        }

        for future in concurrent.futures.as_completed(future_to_section):
            section = future_to_section[future]
            try:
                results.append(future.result())
            except Exception as e:
                logger.error(f"   ❌ Error processing image for section {section['section_number']}: {e}")
                results.append(dict(section, image_url=None))

    results.sort(key=lambda s: s["section_number"])
    with_images = sum(1 for s in results if s.get("image_url"))
    logger.info(f"✅ {with_images}/{len(results)} images ready in {time.time() - start_time:.1f}s")

    return results
