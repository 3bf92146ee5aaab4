"""Tests for the command-line entrypoint."""

import asyncio
import json

import httpx
import pytest

from conftest import RecordingTransport
from wearable_shims.main import main
from wearable_shims.results import Fetched
from wearable_shims.service import ShimService
from wearable_shims.shims.registry import ShimRegistry


def test_providers_lists_shims_and_data_types(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["providers"])
    assert excinfo.value.code == 0
    listing = json.loads(capsys.readouterr().out)
    assert set(listing) == {"fitbit", "googlefit"}
    assert "STEP_COUNT" in listing["googlefit"]


def test_authorize_prints_consent_url(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["authorize", "googlefit", "--user", "u1"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out.startswith("https://accounts.google.com/o/oauth2/auth?state=")


def test_authorize_unknown_provider_fails(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["authorize", "nonexistent", "--user", "u1"])
    assert excinfo.value.code == 1
    assert "nonexistent" in capsys.readouterr().err


def test_no_command_prints_help():
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 1


def test_logging_survives_cli_run_followed_by_fetch(capsys, make_google_shim, store, valid_credential):
    with pytest.raises(SystemExit):
        main(["providers"])
    capsys.readouterr()

    async def _fetch():
        await store.save("googlefit", "u1", valid_credential)
        transport = RecordingTransport(lambda request: httpx.Response(200, json={"point": []}))
        registry = ShimRegistry()
        registry.register(make_google_shim(transport))
        service = ShimService(registry.freeze())
        return await service.fetch("googlefit", "step_count", user_key="u1")

    result = asyncio.run(_fetch())

    assert isinstance(result, Fetched)
    assert "shim.fetched" in capsys.readouterr().err
