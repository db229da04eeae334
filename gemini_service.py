"""
Gemini face-centering client.

One generate_content call per image: the encoded photo plus a fixed
instruction to center the face in a circle-safe square and outpaint the
rest. The first inline image in the reply comes back as a data URI.
"""

import logging

from google import genai
from google.genai import types

from config import GEMINI_API_KEY, GEMINI_IMAGE_MODEL
from errors import NoImageReturnedError, UpstreamError
from image_utils import to_data_uri

logger = logging.getLogger(__name__)

_client = None

FACE_CENTER_PROMPT = """
Transform this image into a professional, high-resolution 1:1 square portrait specifically optimized for a circular crop (profile picture).

1. Detect the main face in the image.
2. Center the face perfectly within the square frame both horizontally and vertically.
3. POSITIONING FOR CIRCLE: Ensure the head is not too large. Leave a generous 'safe area' around the head so that when the square is cropped into a circle, no part of the hair or chin is cut off. The top of the head should have a small gap from the top edge.
4. If the image needs to be expanded to fit the square while keeping the face centered and appropriately sized, use generative AI to outpaint/fill the missing background, shoulders, and head parts seamlessly.
5. Maintain high quality, sharpness, and consistent lighting.
6. Return only the edited image.
""".strip()


def get_client():
    global _client
    if _client is None:
        logger.info("🚀 Creating Gemini client...")
        _client = genai.Client(api_key=GEMINI_API_KEY)
    return _client


def build_contents(image):
    return [
        types.Part.from_bytes(data=image.raw, mime_type=image.mime_type),
        FACE_CENTER_PROMPT,
    ]


def iter_parts(response):
    candidates = getattr(response, 'candidates', None) or []
    if not candidates:
        return
    content = getattr(candidates[0], 'content', None)
    for part in getattr(content, 'parts', None) or []:
        yield part


def extract_image(response):
    """Return the first inline image part as a data URI, or raise NoImageReturnedError."""
    for part in iter_parts(response):
        inline = getattr(part, 'inline_data', None)
        if inline is not None and inline.data:
            return to_data_uri(inline.mime_type or 'image/png', inline.data)
    raise NoImageReturnedError()


def process_image_with_ai(image, client=None):
    """
    Send an EncodedImage to Gemini and return the edited image as a data URI.

    No retries and no timeout. Failures of the call itself are logged and
    re-raised as UpstreamError with the upstream message untouched.
    """
    logger.info(f"🤖 Sending {image.mime_type} image to {GEMINI_IMAGE_MODEL}")
    try:
        client = client or get_client()
        response = client.models.generate_content(model=GEMINI_IMAGE_MODEL, contents=build_contents(image))
    except Exception as e:
        logger.error(f"❌ AI processing error: {e}")
        raise UpstreamError(str(e)) from e
    try:
        uri = extract_image(response)
    except NoImageReturnedError as e:
        logger.error(f"❌ AI processing error: {e}")
        raise
    logger.info("✅ AI returned an image")
    return uri
