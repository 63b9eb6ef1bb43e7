from unittest.mock import patch

import pytest
import requests

from backend_client.client import DEFAULT_BASE_URL, HTTPBackendClient
from bed_commands.errors import BackendError, TransportError

WATER = {"bedId": "b1", "started": "2024-05-15T12:00:00", "volume": 0.5}


def test_bed_url():
    client = HTTPBackendClient("https://garden.test/api/")
    assert client.bed_url("b1", "water") == "https://garden.test/api/beds/b1/water"


# Test bed ids are escaped into a single path segment
@pytest.mark.parametrize("bed_id,segment", [
    ("../../admin/delete?x=", "..%2F..%2Fadmin%2Fdelete%3Fx%3D"),
    ("north bed#2", "north%20bed%232"),
    ("..", "%2E%2E"),
    (".", "%2E"),
    ("bed-1_a.b~", "bed-1_a.b~"),
])
def test_bed_url_escapes_bed_id(bed_id, segment):
    client = HTTPBackendClient("https://garden.test/api")
    assert client.bed_url(bed_id, "water") == f"https://garden.test/api/beds/{segment}/water"


@patch("backend_client.client.requests.post")
def test_send_command_posts_to_escaped_url(mock_post):
    mock_post.return_value.status_code = 200
    mock_post.return_value.text = "ok"

    HTTPBackendClient("https://garden.test/api").send_command("b1/../../admin", "water", WATER)

    mock_post.assert_called_once_with("https://garden.test/api/beds/b1%2F..%2F..%2Fadmin/water", json=WATER, timeout=30)


def test_default_base_url():
    assert HTTPBackendClient().bed_url("b1", "plant") == f"{DEFAULT_BASE_URL}/beds/b1/plant"


@patch("backend_client.client.requests.post")
def test_send_command_success(mock_post):
    mock_post.return_value.status_code = 200
    mock_post.return_value.text = '{"ok": true}'

    body = HTTPBackendClient("https://garden.test/api", timeout=5).send_command("b1", "water", WATER)

    assert body == '{"ok": true}'
    mock_post.assert_called_once_with("https://garden.test/api/beds/b1/water", json=WATER, timeout=5)


@patch("backend_client.client.requests.post")
def test_send_command_non_200(mock_post):
    mock_post.return_value.status_code = 404
    mock_post.return_value.text = "no such bed"

    with pytest.raises(BackendError) as exc:
        HTTPBackendClient("https://garden.test/api").send_command("b9", "water", WATER)
    assert exc.value.status_code == 404
    assert exc.value.action == "water"
    assert "no such bed" in str(exc.value)


@patch("backend_client.client.requests.post")
def test_send_command_connection_error(mock_post):
    mock_post.side_effect = requests.exceptions.ConnectionError("connection refused")

    with pytest.raises(TransportError):
        HTTPBackendClient("https://garden.test/api").send_command("b1", "water", WATER)


@patch("backend_client.client.requests.post")
def test_send_command_timeout(mock_post):
    mock_post.side_effect = requests.exceptions.Timeout("read timed out")

    with pytest.raises(TransportError):
        HTTPBackendClient("https://garden.test/api").send_command("b1", "water", WATER)
