import importlib.metadata

import pytest

from paperfetch import utils

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _reset_user_agent_cache():
    utils._USER_AGENT_CACHE = None
    yield
    utils._USER_AGENT_CACHE = None


def test_get_user_agent_uses_package_version(mocker):
    mocker.patch("importlib.metadata.version", return_value="0.4.2")

    assert utils.get_user_agent() == "paperfetch/0.4.2"


def test_get_user_agent_is_cached(mocker):
    mock_version = mocker.patch("importlib.metadata.version", return_value="0.4.2")

    utils.get_user_agent()
    utils.get_user_agent()

    mock_version.assert_called_once_with("paperfetch")


def test_package_version_unknown_when_not_installed(mocker):
    mocker.patch(
        "importlib.metadata.version",
        side_effect=importlib.metadata.PackageNotFoundError("paperfetch"),
    )

    assert utils.get_package_version() == "unknown"
    assert utils.get_user_agent() == "paperfetch/unknown"


@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0 bytes"),
        (11, "11 bytes"),
        (1024 * 1024, "1.0 MB"),
        (52 * 1024 * 1024 + 300 * 1024, "52.3 MB"),
    ],
)
def test_format_size(num_bytes, expected):
    assert utils.format_size(num_bytes) == expected
