import pytest

from authsentinel.app.services.client_context import (
    MAX_USER_AGENT_LENGTH,
    ClientContextExtractor,
    device_display_name,
    parse_user_agent,
)
from authsentinel.domain.values import RequestMetadata

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Ubuntu; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
EDGE_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.61"
)
CHROME_ANDROID_PHONE = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
SAMSUNG_PHONE = (
    "Mozilla/5.0 (Linux; Android 14; SM-S911B) AppleWebKit/537.36 "
    "(KHTML, like Gecko) SamsungBrowser/23.0 Chrome/115.0.0.0 Mobile Safari/537.36"
)


@pytest.mark.parametrize(
    "user_agent,expected",
    [
        (CHROME_WINDOWS, ("Desktop", "Chrome 120", "Windows 10")),
        (SAFARI_IPHONE, ("Mobile", "Mobile Safari 17", "iOS 17")),
        (SAFARI_IPAD, ("Tablet", "Mobile Safari 16", "iOS 16")),
        (EDGE_MAC, ("Desktop", "Edge 120", "macOS 10.15")),
        (CHROME_ANDROID_PHONE, ("Mobile", "Chrome Mobile 120", "Android 14")),
        (SAMSUNG_PHONE, ("Mobile", "Samsung Internet 23", "Android 14")),
    ],
)
def test_parse_user_agent(user_agent, expected):
    assert parse_user_agent(user_agent) == expected


def test_parse_linux_desktop():
    device_class, browser, os_name = parse_user_agent(FIREFOX_LINUX)

    assert device_class == "Desktop"
    assert browser == "Firefox 121"
    assert device_display_name(device_class, os_name) == "Linux PC"


@pytest.mark.parametrize("user_agent", [None, ""])
def test_parse_missing_user_agent_is_unknown(user_agent):
    assert parse_user_agent(user_agent) == ("Unknown", "Unknown", "Unknown")


def test_unrecognised_user_agent_never_raises():
    device_class, browser, os_name = parse_user_agent("???")
    assert device_class == "Desktop"
    assert browser == "Unknown"
    assert os_name == "Unknown"


@pytest.mark.parametrize(
    "device_class,os_name,expected",
    [
        ("Mobile", "iOS 17", "iPhone"),
        ("Mobile", "Android 14", "Android Phone"),
        ("Tablet", "iOS 16", "iPad"),
        ("Desktop", "Windows 10", "Windows PC"),
        ("Desktop", "macOS 14.1", "Mac"),
        ("Desktop", "Ubuntu", "Linux PC"),
        ("Unknown", "Unknown", "Unknown"),
    ],
)
def test_device_display_name(device_class, os_name, expected):
    assert device_display_name(device_class, os_name) == expected


def test_trusted_edge_header_wins():
    extractor = ClientContextExtractor()
    meta = RequestMetadata.from_mapping(
        {
            "CF-Connecting-IP": "203.0.113.7",
            "X-Forwarded-For": "198.51.100.1, 10.0.0.1",
            "X-Real-IP": "198.51.100.2",
        },
        client_host="10.0.0.5",
    )
    assert extractor.client_ip(meta) == "203.0.113.7"


def test_first_forwarded_hop_is_used():
    extractor = ClientContextExtractor()
    meta = RequestMetadata.from_mapping(
        {"x-forwarded-for": " 198.51.100.1 , 10.0.0.1"}, client_host="10.0.0.5"
    )
    assert extractor.client_ip(meta) == "198.51.100.1"


def test_falls_back_to_real_ip_then_connection():
    extractor = ClientContextExtractor()
    assert (
        extractor.client_ip(RequestMetadata.from_mapping({"x-real-ip": "198.51.100.2"}, "10.0.0.5"))
        == "198.51.100.2"
    )
    assert extractor.client_ip(RequestMetadata.from_mapping({}, "10.0.0.5")) == "10.0.0.5"
    assert extractor.client_ip(RequestMetadata()) is None


def test_edge_header_ignored_when_not_trusted():
    extractor = ClientContextExtractor(trusted_ip_header=None)
    meta = RequestMetadata.from_mapping({"cf-connecting-ip": "203.0.113.7"}, "10.0.0.5")
    assert extractor.client_ip(meta) == "10.0.0.5"


def test_extract_builds_full_context():
    extractor = ClientContextExtractor()
    meta = RequestMetadata.from_mapping({"user-agent": SAFARI_IPHONE}, "192.0.2.10")

    context = extractor.extract(meta)

    assert context.ip_address == "192.0.2.10"
    assert context.user_agent == SAFARI_IPHONE
    assert context.device_class == "Mobile"
    assert context.device == "iPhone"
    assert context.browser == "Mobile Safari 17"
    assert context.os == "iOS 17"


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({"cf-connecting-ip": "A" * 70, "x-real-ip": "198.51.100.2"}, "198.51.100.2"),
        ({"x-forwarded-for": "not-an-ip, 10.0.0.1"}, "10.0.0.5"),
        ({"x-real-ip": "203.0.113.7/../../admin"}, "10.0.0.5"),
        ({"x-forwarded-for": " 2001:DB8::1 "}, "2001:db8::1"),
    ],
)
def test_client_ip_skips_values_that_are_not_addresses(headers, expected):
    """Given forwarding headers carrying garbage
    When the client address is extracted
    Then the first candidate that parses as an IP address wins
    """
    # Arrange
    extractor = ClientContextExtractor()
    meta = RequestMetadata.from_mapping(headers, client_host="10.0.0.5")

    # Act
    address = extractor.client_ip(meta)

    # Assert
    assert address == expected


def test_client_ip_is_none_when_nothing_parses():
    extractor = ClientContextExtractor()
    meta = RequestMetadata.from_mapping({"x-real-ip": "garbage"}, client_host="testclient")

    assert extractor.client_ip(meta) is None


def test_oversized_user_agent_is_truncated_to_column_width():
    extractor = ClientContextExtractor()
    meta = RequestMetadata.from_mapping({"user-agent": CHROME_WINDOWS + "x" * 5000}, "192.0.2.10")

    context = extractor.extract(meta)

    assert len(context.user_agent) == MAX_USER_AGENT_LENGTH
    assert context.user_agent.startswith(CHROME_WINDOWS)
    assert len(context.browser) <= 64
    assert len(context.os) <= 64
