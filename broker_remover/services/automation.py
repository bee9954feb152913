"""Opt-out form automation.

Browser automation is simulated: the engine validates the target, sanitizes
the payload, waits out a latency proportional to the number of fields and
draws a success or failure outcome. Randomness and sleeping are injected so
tests can force outcomes and skip delays.
"""

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

import httpx

from broker_remover.brokers import DEFAULT_FORM_FIELDS, FormField, get_broker
from broker_remover.brokers.catalog import ALLOWED_BROKER_DOMAINS
from broker_remover.db.database import utcnow
from broker_remover.exceptions import SimulatedAutomationFailure, ValidationError

logger = logging.getLogger(__name__)

FIELD_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_\-\[\].]+")
MAX_VALUE_LENGTH = 1000

MIN_TIMEOUT_MS = 1
MAX_TIMEOUT_MS = 120000
MAX_USER_AGENT_LENGTH = 512

# Simulated latency, milliseconds
PAGE_LOAD_MS = (2000, 4000)
PER_FIELD_MS = 300
SUBMIT_MS = 1000

BASE_SUCCESS_RATE = 0.8
PER_FIELD_SUCCESS_RATE = 0.03
MAX_SUCCESS_RATE = 0.95

FAILURE_MESSAGES = [
    "Could not find the submit button on the opt-out form",
    "Form validation failed: the broker rejected one or more fields",
    "CAPTCHA detected: manual completion required",
    "Timed out waiting for the opt-out page to respond",
    "Request blocked by the site's bot detection",
]

# 1x1 transparent PNG standing in for a captured screenshot
PLACEHOLDER_SCREENSHOT = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class AutomationConfig:
    headless: bool = True
    timeout_ms: int = 30000
    user_agent: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


@dataclass
class AutomationResult:
    """Result of an opt-out submission."""
    success: bool
    message: str
    screenshot: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "screenshot": self.screenshot,
            "timestamp": self.timestamp.isoformat(),
        }


class AutomationEngine:
    """Simulated opt-out form submission against allow-listed broker sites."""

    def __init__(
        self,
        config: AutomationConfig | None = None,
        rng: random.Random | None = None,
        sleep: Sleep | None = None,
        delay_scale: float = 1.0,
        allowed_domains: Iterable[str] | None = None,
    ):
        self.config = config or AutomationConfig()
        self.rng = rng or random.Random()
        self.sleep = sleep or asyncio.sleep
        self.delay_scale = max(0.0, delay_scale)
        if allowed_domains is None:
            allowed_domains = ALLOWED_BROKER_DOMAINS
        self.allowed_domains = frozenset(domain.lower().strip(".") for domain in allowed_domains)

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "AutomationEngine":
        engine = cls(
            delay_scale=settings.automation_delay_scale,
            allowed_domains=ALLOWED_BROKER_DOMAINS | set(settings.automation_extra_domains),
            **kwargs,
        )
        engine.configure({
            "headless": settings.automation_headless,
            "timeout_ms": settings.automation_timeout_ms,
            "user_agent": settings.automation_user_agent,
        })
        return engine

    def configure(self, options: Mapping[str, Any]) -> AutomationConfig:
        """Merge valid options into the engine config; invalid ones are dropped."""
        for key, value in options.items():
            if key == "headless" and isinstance(value, bool):
                self.config.headless = value
            elif (
                key == "timeout_ms"
                and isinstance(value, int)
                and not isinstance(value, bool)
                and MIN_TIMEOUT_MS <= value <= MAX_TIMEOUT_MS
            ):
                self.config.timeout_ms = value
            elif (
                key == "user_agent"
                and isinstance(value, str)
                and value.strip()
                and len(value) <= MAX_USER_AGENT_LENGTH
            ):
                self.config.user_agent = value
            else:
                logger.warning("Ignoring invalid automation option %s=%r", key, value)
        return self.config

    def is_allowed_host(self, host: str) -> bool:
        host = host.lower().rstrip(".")
        return any(host == domain or host.endswith("." + domain) for domain in self.allowed_domains)

    def validate_url(self, url: str) -> str:
        """Return the target host, or raise ValidationError."""
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise ValidationError(f"Invalid URL: {url!r}") from exc

        if parsed.scheme not in ("http", "https"):
            raise ValidationError(f"Unsupported protocol: {parsed.scheme or 'none'}")

        host = parsed.host.lower().rstrip(".")
        if not host or not self.is_allowed_host(host):
            raise ValidationError(f"Domain is not an allowed broker domain: {host or 'none'}")
        return host

    def detect_form_fields(self, url: str) -> list[FormField]:
        """Fields of the opt-out form at ``url``; empty if the URL is rejected."""
        try:
            host = self.validate_url(url)
        except ValidationError as exc:
            logger.warning("Refusing to inspect %s: %s", url, exc)
            return []

        broker = get_broker(host)
        if broker:
            return list(broker.form_fields())
        return list(DEFAULT_FORM_FIELDS)

    @staticmethod
    def sanitize_form_data(form_data: Mapping[str, Any] | None) -> dict[str, str]:
        clean = {}
        for key, value in (form_data or {}).items():
            if not isinstance(key, str) or not FIELD_NAME_PATTERN.fullmatch(key):
                logger.debug("Dropping form field with invalid name %r", key)
                continue
            if isinstance(value, bool):
                text = "true" if value else "false"
            else:
                text = "" if value is None else str(value)
            clean[key] = text[:MAX_VALUE_LENGTH]
        return clean

    @staticmethod
    def success_probability(field_count: int) -> float:
        return min(BASE_SUCCESS_RATE + PER_FIELD_SUCCESS_RATE * field_count, MAX_SUCCESS_RATE)

    async def send_request(self, url: str, form_data: Mapping[str, Any] | None) -> AutomationResult:
        """Submit an opt-out form. Never raises; failures come back as results."""
        try:
            host = self.validate_url(url)
        except ValidationError as exc:
            logger.warning("Rejected automation target %s: %s", url, exc)
            return AutomationResult(success=False, message=str(exc))

        fields = self.sanitize_form_data(form_data)
        timeout = self.config.timeout_ms / 1000

        try:
            await asyncio.wait_for(self._simulate_submission(host, fields), timeout=timeout)
        except SimulatedAutomationFailure as exc:
            logger.info("Opt-out submission to %s failed: %s", host, exc)
            return AutomationResult(success=False, message=str(exc))
        except asyncio.TimeoutError:
            logger.warning("Opt-out submission to %s timed out after %d ms", host, self.config.timeout_ms)
            return AutomationResult(
                success=False,
                message=f"Automation timed out after {self.config.timeout_ms} ms",
            )

        logger.info("Opt-out submission to %s succeeded (%d fields)", host, len(fields))
        return AutomationResult(
            success=True,
            message=f"Opt-out request submitted to {host}",
            screenshot=PLACEHOLDER_SCREENSHOT,
        )

    async def _simulate_submission(self, host: str, fields: dict[str, str]) -> None:
        count = len(fields)
        logger.debug("Opening %s (headless=%s, user_agent=%s)", host, self.config.headless, self.config.user_agent)

        # page load + filling each field, then the submit round trip
        await self._delay(self.rng.randint(*PAGE_LOAD_MS) + PER_FIELD_MS * count)
        await self._delay(SUBMIT_MS)

        if self.rng.random() >= self.success_probability(count):
            raise SimulatedAutomationFailure(self.rng.choice(FAILURE_MESSAGES))

    async def _delay(self, milliseconds: float) -> None:
        if self.delay_scale > 0:
            await self.sleep(milliseconds * self.delay_scale / 1000)
