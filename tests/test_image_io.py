import base64

import pytest

from cryptosi.services.image_io import ingest_image, result_data_url, strip_data_url, to_data_url
from cryptosi.utils.errors import InvalidImageError

from tests._helpers import make_image_bytes


def test_ingest_png_reads_native_size():
    data = make_image_bytes(800, 600, "PNG")
    ingested = ingest_image(data)

    assert (ingested.width, ingested.height) == (800, 600)
    assert ingested.mime_type == "image/png"
    assert ingested.data_url.startswith("data:image/png;base64,")
    assert base64.b64decode(strip_data_url(ingested.data_url)) == data


def test_ingest_jpeg_mime_type():
    ingested = ingest_image(make_image_bytes(512, 768, "JPEG"))
    assert ingested.mime_type == "image/jpeg"
    assert (ingested.width, ingested.height) == (512, 768)


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_ingest_rejects_non_images(data):
    with pytest.raises(InvalidImageError):
        ingest_image(data)


def test_strip_data_url_without_prefix_is_identity():
    assert strip_data_url("QUJD") == "QUJD"
    assert strip_data_url(to_data_url(b"ABC", "image/png")) == "QUJD"


def test_result_data_url_is_jpeg():
    assert result_data_url("QUJD") == "data:image/jpeg;base64,QUJD"
