"""Tests for GenerationClient: timeout ceiling, single-flight and error tags.

Uses BackendFake for deterministic, instant test execution (the hang
scenario is bounded by a short client timeout).
"""

import asyncio

import pytest

from sketchsite.core.exceptions import GenerationError, GenerationErrorReason, GenerationInProgressError
from sketchsite.generation.backend_fake import BackendFake
from sketchsite.generation.client import GenerationClient
from sketchsite.schemas.generation import BackendResponse, GenerationRequest, RequestKind

pytestmark = pytest.mark.unit

REQUEST = GenerationRequest(kind=RequestKind.EDIT, instructions="make it blue")


async def test_happy_path_returns_raw_text():
    fake = BackendFake()
    client = GenerationClient(fake, timeout_seconds=1)

    raw = await client.generate(REQUEST, key="p1")

    assert raw == fake.reply_text()
    assert fake.requests == [REQUEST]
    assert not client.is_busy("p1")


@pytest.mark.parametrize(
    "scenario, reason",
    [
        ("transport_error", GenerationErrorReason.TRANSPORT),
        ("rejected", GenerationErrorReason.REJECTED),
        ("truncated", GenerationErrorReason.TRUNCATED),
        ("refused", GenerationErrorReason.REJECTED),
        ("crash", GenerationErrorReason.UNKNOWN),
    ],
)
async def test_failures_carry_reason_tag(scenario, reason):
    client = GenerationClient(BackendFake(scenario), timeout_seconds=1)

    with pytest.raises(GenerationError) as exc_info:
        await client.generate(REQUEST, key="p1")

    assert exc_info.value.reason is reason
    assert not client.is_busy("p1")


async def test_malformed_reply_is_returned_for_the_parser():
    fake = BackendFake("malformed")
    client = GenerationClient(fake, timeout_seconds=1)

    assert await client.generate(REQUEST) == fake.reply_text()


async def test_empty_reply_is_unknown_error():
    class EmptyBackend:
        async def complete(self, request):
            return BackendResponse(text="  ", stop_reason="end_turn")

    client = GenerationClient(EmptyBackend(), timeout_seconds=1)

    with pytest.raises(GenerationError) as exc_info:
        await client.generate(REQUEST)

    assert exc_info.value.reason is GenerationErrorReason.UNKNOWN


async def test_timeout_releases_key_and_next_call_is_accepted():
    hanging = BackendFake("hang")
    client = GenerationClient(hanging, timeout_seconds=0.05)

    with pytest.raises(GenerationError) as exc_info:
        await client.generate(REQUEST, key="p1")

    assert exc_info.value.reason is GenerationErrorReason.TIMEOUT
    assert not client.is_busy("p1")

    client.backend = BackendFake()
    assert await client.generate(REQUEST, key="p1")


async def test_second_call_for_same_key_refused_while_first_outstanding():
    release = asyncio.Event()

    class SlowBackend:
        async def complete(self, request):
            await release.wait()
            return BackendResponse(text='{"html": "", "css": ""}', stop_reason="end_turn")

    client = GenerationClient(SlowBackend(), timeout_seconds=5)
    first = asyncio.create_task(client.generate(REQUEST, key="p1"))
    await asyncio.sleep(0)

    assert client.is_busy("p1")
    with pytest.raises(GenerationInProgressError):
        await client.generate(REQUEST, key="p1")

    release.set()
    assert await first
    assert not client.is_busy("p1")


async def test_different_keys_run_concurrently():
    release = asyncio.Event()

    class SlowBackend:
        async def complete(self, request):
            await release.wait()
            return BackendResponse(text="ok", stop_reason="end_turn")

    client = GenerationClient(SlowBackend(), timeout_seconds=5)
    tasks = [asyncio.create_task(client.generate(REQUEST, key=k)) for k in ("a", "b")]
    await asyncio.sleep(0)

    assert client.is_busy("a") and client.is_busy("b")
    release.set()
    assert await asyncio.gather(*tasks) == ["ok", "ok"]


def test_unknown_fake_scenario_rejected():
    with pytest.raises(ValueError):
        BackendFake("sunny")
