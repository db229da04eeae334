import io, base64
from unittest.mock import patch

import pytest
import requests
from werkzeug.datastructures import FileStorage

import image_utils
from errors import NetworkError, ImageReadError
from conftest import make_response


def test_file_round_trip_preserves_length(tmp_path):
    raw = bytes(range(256)) * 40
    path = tmp_path / 'photo.jpg'
    path.write_bytes(raw)
    image = image_utils.file_to_base64(path)
    assert len(base64.b64decode(image.data)) == len(raw)
    assert image.mime_type == 'image/jpeg'


def test_file_storage_uses_declared_type(png_bytes):
    upload = FileStorage(stream=io.BytesIO(png_bytes), filename='me.png', content_type='image/png')
    image = image_utils.file_to_base64(upload)
    assert image.mime_type == 'image/png'
    assert image.raw == png_bytes


def test_missing_type_is_sniffed(png_bytes):
    image = image_utils.file_to_base64(io.BytesIO(png_bytes), mime_type='application/octet-stream')
    assert image.mime_type == 'image/png'


def test_missing_file_raises_read_error(tmp_path):
    with pytest.raises(ImageReadError):
        image_utils.file_to_base64(tmp_path / 'nope.png')


def test_url_fetch_encodes_body(png_bytes):
    with patch('image_utils.requests.get', return_value=make_response(content=png_bytes, content_type='image/png; charset=binary')) as get:
        image = image_utils.url_to_base64('https://x/photo.png')
    get.assert_called_once()
    assert image.mime_type == 'image/png'
    assert image.raw == png_bytes


def test_url_404_raises_network_error():
    with patch('image_utils.requests.get', return_value=make_response(status=404)):
        with pytest.raises(NetworkError) as exc:
            image_utils.url_to_base64('https://x/photo.jpg')
    assert '404' in str(exc.value)


def test_unreachable_url_raises_network_error():
    with patch('image_utils.requests.get', side_effect=requests.ConnectionError('connection refused')):
        with pytest.raises(NetworkError, match='connection refused'):
            image_utils.url_to_base64('https://unreachable.invalid/a.jpg')


def test_data_uri_helpers(png_bytes):
    uri = image_utils.to_data_uri('image/png', png_bytes)
    assert uri.startswith('data:image/png;base64,')
    assert image_utils.parse_data_uri(uri) == ('image/png', png_bytes)
    assert image_utils.to_data_uri('image/png', 'abc123') == 'data:image/png;base64,abc123'


@pytest.mark.parametrize('bad', ['', 'http://x/y.png', 'data:image/png,plain', 'data:image/png;base64,@@@'])
def test_parse_data_uri_rejects_malformed(bad):
    with pytest.raises(ValueError):
        image_utils.parse_data_uri(bad)


def test_image_dimensions(png_bytes):
    assert image_utils.image_dimensions(png_bytes) == (32, 24)
    assert image_utils.image_dimensions(b'not an image') is None


def test_oversized_image_header_is_not_sniffed():
    from conftest import oversized_png_header
    raw = oversized_png_header()
    assert image_utils.resolve_mime_type(raw, 'application/octet-stream') == 'application/octet-stream'
    assert image_utils.image_dimensions(raw) is None


def test_url_with_oversized_octet_stream_body():
    from conftest import oversized_png_header
    raw = oversized_png_header()
    with patch('image_utils.requests.get', return_value=make_response(content=raw, content_type='application/octet-stream')):
        image = image_utils.url_to_base64('https://x/huge.png')
    assert image.raw == raw
