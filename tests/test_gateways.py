import asyncio

import pytest

from src.services.moderation.errors import GatewayError
from src.services.moderation.gateways import call_gateway
from src.services.moderation.models import GatewayResult


async def _slow():
    await asyncio.sleep(1)


async def _broken():
    raise RuntimeError("HTTP 500")


async def _ok():
    return 7


@pytest.mark.asyncio
async def test_call_gateway_returns_value():
    assert await call_gateway("Lookup", _ok(), timeout=1) == 7


@pytest.mark.asyncio
async def test_call_gateway_timeout_becomes_gateway_error():
    with pytest.raises(GatewayError) as exc_info:
        await call_gateway("Platform Unban", _slow(), timeout=0.01)

    assert str(exc_info.value) == "Platform Unban: timed out"


@pytest.mark.asyncio
async def test_call_gateway_wraps_failures():
    with pytest.raises(GatewayError) as exc_info:
        await call_gateway("Platform Ban", _broken(), timeout=1)

    assert isinstance(exc_info.value.cause, RuntimeError)
    assert str(exc_info.value) == "Platform Ban: HTTP 500"


def test_gateway_result_failure_keeps_message():
    result = GatewayResult.failure(GatewayError("Direct Message", RuntimeError("closed DMs")))

    assert not result.ok
    assert result.error == "Direct Message: closed DMs"
