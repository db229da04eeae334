import io, os
from types import SimpleNamespace

os.environ.setdefault('GEMINI_API_KEY', 'test-key')

import pytest
import requests
from PIL import Image


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new('RGB', (32, 24), (200, 120, 40)).save(buf, format='PNG')
    return buf.getvalue()


def make_response(status=200, content=b'', content_type='image/jpeg', url='https://x/photo.jpg'):
    resp = requests.Response()
    resp.status_code = status
    resp._content = content
    resp.headers['Content-Type'] = content_type
    resp.url = url
    resp.reason = 'OK' if status < 400 else 'Not Found'
    return resp


def inline_part(mime_type, data):
    return SimpleNamespace(inline_data=SimpleNamespace(mime_type=mime_type, data=data), text=None)


def text_part(text):
    return SimpleNamespace(inline_data=None, text=text)


def gemini_response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


class FakeGemini:
    """Stands in for genai.Client: records calls, returns or raises what it was given."""

    def __init__(self, response=None, error=None):
        self.calls = []
        self.response = response
        self.error = error
        self.models = self

    def generate_content(self, model, contents):
        self.calls.append({'model': model, 'contents': contents})
        if self.error:
            raise self.error
        return self.response


def oversized_png_header(width=30000, height=30000):
    """A PNG whose IHDR declares more pixels than Pillow will open."""
    import struct, zlib

    def chunk(kind, body):
        return struct.pack('>I', len(body)) + kind + body + struct.pack('>I', zlib.crc32(kind + body) & 0xffffffff)

    ihdr = struct.pack('>IIBBBBB', width, height, 8, 2, 0, 0, 0)
    return b'\x89PNG\r\n\x1a\n' + chunk(b'IHDR', ihdr) + chunk(b'IEND', b'')
