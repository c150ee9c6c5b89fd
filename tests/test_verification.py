import pytest

from base_sniper.analyzer.verification import ContractVerifier

from fakes import TOKEN


def make_verifier(responses, api_key="KEY"):
    verifier = ContractVerifier({'etherscan_api_key': api_key})
    calls = []

    async def fake_fetch(address):
        calls.append(address)
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    verifier.fetch_source = fake_fetch
    return verifier, calls


@pytest.mark.asyncio
async def test_without_key_verification_is_unknown():
    verifier, calls = make_verifier([], api_key="")

    assert await verifier.is_verified(TOKEN) is None
    assert calls == []


@pytest.mark.asyncio
async def test_verified_source_is_cached():
    verifier, calls = make_verifier([
        {'status': '1', 'result': [{'SourceCode': "contract Moon {}", 'ABI': "[]"}]},
    ])

    assert await verifier.is_verified(TOKEN) is True
    assert await verifier.is_verified(TOKEN.upper().replace("0X", "0x")) is True
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_unverified_source():
    verifier, _ = make_verifier([
        {'status': '1', 'result': [{'SourceCode': "", 'ABI': "Contract source code not verified"}]},
    ])

    assert await verifier.is_verified(TOKEN) is False


@pytest.mark.asyncio
async def test_lookup_error_is_not_cached():
    verifier, calls = make_verifier([
        RuntimeError("rate limited"),
        {'status': '1', 'result': [{'SourceCode': "x", 'ABI': "[]"}]},
    ])

    assert await verifier.is_verified(TOKEN) is None
    assert await verifier.is_verified(TOKEN) is True
    assert len(calls) == 2
