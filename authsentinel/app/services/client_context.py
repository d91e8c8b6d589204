"""
Client Context Extraction

Derives network address, user agent, device class, browser and OS from an
incoming request. Parsing is best-effort and never raises.
"""

import ipaddress
from typing import Optional, Tuple

from user_agents import parse as parse_ua

from authsentinel.domain.entities import DeviceClass
from authsentinel.domain.values import UNKNOWN, ClientContext, RequestMetadata

# Column widths on sessions / login_attempts
MAX_USER_AGENT_LENGTH = 1024
MAX_LABEL_LENGTH = 64

_OS_NAMES = {
    "Mac OS X": "macOS",
    "Other": UNKNOWN,
}
_LINUX_FAMILIES = ("Linux", "Ubuntu", "Fedora", "Debian")


class ClientContextExtractor:
    """
    Extracts client context from request metadata.

    Address preference (first value that parses as an IP address wins):
    1. Trusted edge header (e.g. cf-connecting-ip)
    2. First hop of x-forwarded-for (the last hop is attacker-controlled)
    3. x-real-ip
    4. Literal connection address
    """

    def __init__(self, trusted_ip_header: Optional[str] = "cf-connecting-ip"):
        self.trusted_ip_header = trusted_ip_header.lower() if trusted_ip_header else None

    def extract(self, request: RequestMetadata) -> ClientContext:
        user_agent = request.header("user-agent")
        if user_agent:
            user_agent = user_agent[:MAX_USER_AGENT_LENGTH]
        device_class, browser, os_name = parse_user_agent(user_agent)
        return ClientContext(
            ip_address=self.client_ip(request),
            user_agent=user_agent,
            device_class=device_class,
            device=device_display_name(device_class, os_name),
            browser=browser,
            os=os_name,
        )

    def client_ip(self, request: RequestMetadata) -> Optional[str]:
        candidates = []
        if self.trusted_ip_header:
            candidates.append(request.header(self.trusted_ip_header))

        forwarded_for = request.header("x-forwarded-for")
        if forwarded_for:
            candidates.append(forwarded_for.split(",")[0])

        candidates.append(request.header("x-real-ip"))
        candidates.append(request.client_host)

        for candidate in candidates:
            address = normalize_ip(candidate)
            if address:
                return address
        return None


def normalize_ip(value: Optional[str]) -> Optional[str]:
    """Canonical form of an IPv4/IPv6 literal, or None if value is not one."""
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def parse_user_agent(user_agent: Optional[str]) -> Tuple[str, str, str]:
    """Return (device_class, browser, os). Unknown parts default to "Unknown"."""
    if not user_agent:
        return UNKNOWN, UNKNOWN, UNKNOWN

    ua = parse_ua(user_agent)
    if ua.is_tablet:
        device_class = DeviceClass.tablet.value
    elif ua.is_mobile:
        device_class = DeviceClass.mobile.value
    else:
        device_class = DeviceClass.desktop.value

    return device_class, _browser_label(ua.browser), _os_label(ua.os)


def _browser_label(browser) -> str:
    if not browser.family or browser.family == "Other":
        return UNKNOWN
    label = f"{browser.family} {browser.version[0]}" if browser.version else browser.family
    return label[:MAX_LABEL_LENGTH]


def _os_label(os) -> str:
    family = _OS_NAMES.get(os.family, os.family) or UNKNOWN
    if family == UNKNOWN:
        return UNKNOWN
    # macOS is told apart by minor version (10.15 vs 10.14), everything else by major
    parts = os.version[:2] if family == "macOS" else os.version[:1]
    label = f"{family} {'.'.join(str(part) for part in parts)}" if parts else family
    return label[:MAX_LABEL_LENGTH]


def device_display_name(device_class: str, os_name: str) -> str:
    """Friendly name shown in the session list, e.g. "iPhone" or "Windows PC"."""
    if device_class == DeviceClass.mobile.value:
        if os_name.startswith("iOS"):
            return "iPhone"
        if os_name.startswith("Android"):
            return "Android Phone"
        return "Mobile Device"
    if device_class == DeviceClass.tablet.value:
        if os_name.startswith("iOS"):
            return "iPad"
        if os_name.startswith("Android"):
            return "Android Tablet"
        return "Tablet"
    if device_class == DeviceClass.desktop.value:
        if os_name.startswith("Windows"):
            return "Windows PC"
        if os_name.startswith("macOS"):
            return "Mac"
        if os_name.split(" ")[0] in _LINUX_FAMILIES:
            return "Linux PC"
        return "Desktop"
    return UNKNOWN
