import asyncio

import pytest

from broker_remover.brokers import DEFAULT_FORM_FIELDS
from broker_remover.exceptions import ValidationError
from broker_remover.services.automation import (
    FAILURE_MESSAGES,
    MAX_VALUE_LENGTH,
    PLACEHOLDER_SCREENSHOT,
    AutomationConfig,
    AutomationEngine,
)

from conftest import ScriptedRandom, make_engine


@pytest.mark.asyncio
async def test_rejects_domain_outside_allow_list():
    rng = ScriptedRandom(0.0)
    engine = make_engine(rng=rng)

    result = await engine.send_request("https://evil.example.com/x", {})

    assert result.success is False
    assert "evil.example.com" in result.message
    assert rng.calls == []


@pytest.mark.asyncio
async def test_rejects_non_http_protocol():
    rng = ScriptedRandom(0.0)
    engine = make_engine(rng=rng)

    result = await engine.send_request("ftp://acxiom.com", {})

    assert result.success is False
    assert "protocol" in result.message.lower()
    assert rng.calls == []


def test_lookalike_host_is_not_a_subdomain():
    engine = make_engine()
    assert engine.is_allowed_host("optout.spokeo.com")
    assert engine.is_allowed_host("SPOKEO.COM.")
    assert not engine.is_allowed_host("spokeo.com.evil.net")
    assert not engine.is_allowed_host("notspokeo.com")


@pytest.mark.asyncio
async def test_forced_success():
    engine = make_engine(0.0)

    result = await engine.send_request("https://www.spokeo.com/optout", {"email": "jane@gmail.com"})

    assert result.success is True
    assert "www.spokeo.com" in result.message
    assert result.screenshot == PLACEHOLDER_SCREENSHOT
    assert result.timestamp is not None


@pytest.mark.asyncio
async def test_forced_failure_uses_fixed_messages():
    engine = make_engine(0.99, rng=ScriptedRandom(0.99, choice_index=2))

    result = await engine.send_request("https://www.spokeo.com/optout", {"email": "jane@gmail.com"})

    assert result.success is False
    assert result.message == FAILURE_MESSAGES[2]
    assert result.screenshot is None


@pytest.mark.asyncio
async def test_timeout_surfaces_as_failure():
    engine = AutomationEngine(
        config=AutomationConfig(timeout_ms=1),
        rng=ScriptedRandom(0.0),
        sleep=asyncio.sleep,
        delay_scale=1.0,
    )

    result = await engine.send_request("https://www.spokeo.com/optout", {"email": "jane@gmail.com"})

    assert result.success is False
    assert "timed out" in result.message


@pytest.mark.asyncio
async def test_simulated_latency_scales_with_field_count():
    delays = []

    async def record(seconds):
        delays.append(seconds)

    engine = make_engine(0.0, sleep=record, delay_scale=1.0)
    await engine.send_request("https://www.spokeo.com/optout", {"a": "1", "b": "2"})

    # 2000 ms page load + 2 x 300 ms fields, then 1000 ms submit
    assert delays == [pytest.approx(2.6), pytest.approx(1.0)]


def test_sanitize_drops_bad_names_and_truncates():
    clean = AutomationEngine.sanitize_form_data({
        "<script>": "alert(1)",
        "email": "a" * 1500,
        "consent": True,
        "opt_out": False,
        "user[name]": "Jane",
        "empty": None,
        "with space": "x",
    })

    assert "<script>" not in clean
    assert "with space" not in clean
    assert len(clean["email"]) == MAX_VALUE_LENGTH
    assert clean["consent"] == "true"
    assert clean["opt_out"] == "false"
    assert clean["user[name]"] == "Jane"
    assert clean["empty"] == ""


def test_success_probability_is_capped():
    assert AutomationEngine.success_probability(0) == pytest.approx(0.8)
    assert AutomationEngine.success_probability(3) == pytest.approx(0.89)
    assert AutomationEngine.success_probability(50) == pytest.approx(0.95)


def test_configure_keeps_valid_options_only():
    engine = make_engine()

    config = engine.configure({
        "timeout_ms": 0,
        "headless": "yes",
        "user_agent": "",
        "unknown": 1,
    })
    assert config == AutomationConfig()

    config = engine.configure({"timeout_ms": 120000, "headless": False, "user_agent": "TestAgent/1.0"})
    assert config.timeout_ms == 120000
    assert config.headless is False
    assert config.user_agent == "TestAgent/1.0"

    engine.configure({"timeout_ms": 120001, "user_agent": "x" * 513})
    assert engine.config.timeout_ms == 120000
    assert engine.config.user_agent == "TestAgent/1.0"


def test_validate_url():
    engine = make_engine()
    assert engine.validate_url("https://www.whitepages.com/suppression-requests") == "www.whitepages.com"

    with pytest.raises(ValidationError):
        engine.validate_url("javascript:alert(1)")
    with pytest.raises(ValidationError):
        engine.validate_url("not a url")


def test_detect_form_fields():
    engine = make_engine()

    spokeo = engine.detect_form_fields("https://www.spokeo.com/optout")
    assert [f.name for f in spokeo] == ["url", "email"]

    # allowed, but without a curated form
    generic = engine.detect_form_fields("https://www.experian.com/privacy/center.html")
    assert generic == list(DEFAULT_FORM_FIELDS)

    assert engine.detect_form_fields("https://evil.example.com/form") == []


def test_extra_domains_extend_allow_list():
    engine = make_engine(allowed_domains=["example.org"])
    assert engine.is_allowed_host("optout.example.org")
    assert not engine.is_allowed_host("spokeo.com")
