"""
Image loading and data-URI helpers.

Turns a remote URL or a local file into an EncodedImage (base64 text plus
media type) for the AI client, and decodes data URIs for downloads.
"""

import io, base64, logging, mimetypes
from dataclasses import dataclass
from pathlib import Path

import requests
from PIL import Image, UnidentifiedImageError

from config import FETCH_TIMEOUT
from errors import NetworkError, ImageReadError

logger = logging.getLogger(__name__)

GENERIC_TYPES = {'', 'application/octet-stream', 'binary/octet-stream'}


@dataclass(frozen=True)
class EncodedImage:
    data: str
    mime_type: str

    @property
    def raw(self):
        return base64.b64decode(self.data)


def encode_bytes(raw, mime_type=''):
    return EncodedImage(base64.b64encode(raw).decode('utf-8'), resolve_mime_type(raw, mime_type))


def resolve_mime_type(raw, declared):
    """Keep the declared type when it names an image, otherwise sniff the bytes with Pillow."""
    declared = (declared or '').split(';')[0].strip().lower()
    if declared not in GENERIC_TYPES:
        return declared
    try:
        with Image.open(io.BytesIO(raw)) as img:
            sniffed = Image.MIME.get(img.format)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        sniffed = None
    return sniffed or declared or 'application/octet-stream'


def url_to_base64(url):
    """Fetch a remote image and encode it. Raises NetworkError on any fetch failure, 4xx/5xx included."""
    logger.info(f"🌐 Fetching {url}")
    try:
        resp = requests.get(url, timeout=FETCH_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"❌ Fetch failed: {e}")
        raise NetworkError(f"Failed to fetch image: {e}") from e
    image = encode_bytes(resp.content, resp.headers.get('Content-Type', ''))
    logger.info(f"✅ Fetched {len(resp.content)} bytes ({image.mime_type})")
    return image


def file_to_base64(file, mime_type=None):
    """
    Encode a local file. Accepts a werkzeug FileStorage, a binary file object
    or a filesystem path; the declared type comes from the upload, the
    explicit mime_type argument, or the file name.
    """
    try:
        if isinstance(file, (str, Path)):
            path = Path(file)
            raw = path.read_bytes()
            declared = mime_type or mimetypes.guess_type(path.name)[0]
        else:
            raw = file.read()
            name = getattr(file, 'filename', None) or getattr(file, 'name', None) or ''
            declared = mime_type or getattr(file, 'mimetype', None) or mimetypes.guess_type(str(name))[0]
    except OSError as e:
        raise ImageReadError(f"Failed to read file: {e}") from e
    return encode_bytes(raw, declared or '')


def to_data_uri(mime_type, data):
    if isinstance(data, (bytes, bytearray)):
        data = base64.b64encode(data).decode('utf-8')
    return f'data:{mime_type};base64,{data}'


def parse_data_uri(uri):
    """Split a base64 data URI into (mime_type, bytes)."""
    if not uri or not uri.startswith('data:') or ',' not in uri:
        raise ValueError("Not a data URI")
    header, payload = uri[5:].split(',', 1)
    if not header.endswith(';base64'):
        raise ValueError("Data URI is not base64 encoded")
    mime_type = header[:-len(';base64')] or 'application/octet-stream'
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except ValueError as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def image_dimensions(raw):
    try:
        with Image.open(io.BytesIO(raw)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return None
