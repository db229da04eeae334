"""Runtime settings read from the process environment at startup."""

import os
import logging

logger = logging.getLogger(__name__)

GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY') or os.environ.get('API_KEY', '')
GEMINI_IMAGE_MODEL = os.environ.get('GEMINI_IMAGE_MODEL', 'gemini-2.5-flash-image')

SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
PORT = int(os.environ.get('PORT', 8000))

MAX_UPLOAD_BYTES = int(os.environ.get('MAX_UPLOAD_MB', 50)) * 1024 * 1024
FETCH_TIMEOUT = float(os.environ.get('FETCH_TIMEOUT', 30))

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.bmp', '.gif'}
MAX_SESSIONS = int(os.environ.get('MAX_SESSIONS', 1000))
DOWNLOAD_FILENAME = 'processed-image.png'

if not GEMINI_API_KEY:
    logger.warning("⚠️ GEMINI_API_KEY not set, AI requests will be rejected upstream")
