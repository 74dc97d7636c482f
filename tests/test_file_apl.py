"""
Unit tests for the multi-domain file APL.
"""

import json
import os
from unittest.mock import patch

import pytest

from saleor_app_auth.modules.apl.file_apl import MultiDomainFileAPL
from saleor_app_auth.modules.apl.interfaces import AuthData
from saleor_app_auth.modules.auth.errors import StorageWriteError

from conftest import APP_ID, OTHER_SHOP_URL, SHOP_URL


def write_json(path, content):
    path.write_text(json.dumps(content), encoding="utf-8")


@pytest.mark.asyncio
async def test_get_missing_file_returns_none(file_apl):
    """Reading before anything was stored yields absent, not an error."""
    assert await file_apl.get(SHOP_URL) is None
    assert await file_apl.get_all() == []


@pytest.mark.asyncio
async def test_set_then_get_round_trip(file_apl, shop_auth_data):
    await file_apl.set(shop_auth_data)

    assert await file_apl.get(SHOP_URL) == shop_auth_data


@pytest.mark.asyncio
async def test_set_writes_multi_domain_shape(file_apl, auth_file, shop_auth_data):
    await file_apl.set(shop_auth_data)

    content = json.loads(auth_file.read_text())
    assert content == {
        SHOP_URL: {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID}
    }


@pytest.mark.asyncio
async def test_single_domain_shape_is_readable(file_apl, auth_file):
    write_json(auth_file, {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID})

    record = await file_apl.get(SHOP_URL)

    assert record == AuthData(saleor_api_url=SHOP_URL, token="t1", app_id=APP_ID)
    assert await file_apl.get(OTHER_SHOP_URL) is None
    assert await file_apl.get_all() == [record]


@pytest.mark.asyncio
async def test_set_normalizes_single_domain_shape(file_apl, auth_file, other_auth_data):
    """Upgrading from the legacy shape must keep the existing tenant."""
    write_json(auth_file, {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID})

    await file_apl.set(other_auth_data)

    content = json.loads(auth_file.read_text())
    assert set(content) == {SHOP_URL, OTHER_SHOP_URL}
    assert (await file_apl.get(SHOP_URL)).token == "t1"
    assert await file_apl.get(OTHER_SHOP_URL) == other_auth_data


@pytest.mark.asyncio
async def test_set_overwrites_existing_tenant(file_apl, shop_auth_data):
    await file_apl.set(shop_auth_data)
    reinstalled = AuthData(saleor_api_url=SHOP_URL, token="t1-new", app_id="app1-new")

    await file_apl.set(reinstalled)

    assert await file_apl.get(SHOP_URL) == reinstalled
    assert len(await file_apl.get_all()) == 1


@pytest.mark.asyncio
async def test_unknown_fields_survive_rewrite(file_apl, auth_file, other_auth_data):
    write_json(auth_file, {
        SHOP_URL: {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID, "installedBy": "cli"}
    })

    await file_apl.set(other_auth_data)

    content = json.loads(auth_file.read_text())
    assert content[SHOP_URL]["installedBy"] == "cli"
    assert (await file_apl.get(SHOP_URL)).extra == {"installedBy": "cli"}


@pytest.mark.asyncio
async def test_multi_tenant_isolation_on_delete(file_apl, shop_auth_data, other_auth_data):
    await file_apl.set(shop_auth_data)
    await file_apl.set(other_auth_data)

    await file_apl.delete(SHOP_URL)

    assert await file_apl.get(SHOP_URL) is None
    assert await file_apl.get(OTHER_SHOP_URL) == other_auth_data


@pytest.mark.asyncio
async def test_delete_last_entry_keeps_multi_domain_shape(file_apl, auth_file, shop_auth_data):
    await file_apl.set(shop_auth_data)

    await file_apl.delete(SHOP_URL)

    assert auth_file.exists()
    assert json.loads(auth_file.read_text()) == {}


@pytest.mark.asyncio
async def test_delete_single_domain_match_removes_file(file_apl, auth_file):
    write_json(auth_file, {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID})

    await file_apl.delete(SHOP_URL)

    assert not auth_file.exists()


@pytest.mark.asyncio
async def test_delete_single_domain_mismatch_is_noop(file_apl, auth_file):
    original = {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID}
    write_json(auth_file, original)

    await file_apl.delete(OTHER_SHOP_URL)

    assert json.loads(auth_file.read_text()) == original


@pytest.mark.asyncio
async def test_delete_absent_key_is_noop(file_apl, auth_file, shop_auth_data):
    await file_apl.delete(SHOP_URL)
    assert not auth_file.exists()

    await file_apl.set(shop_auth_data)
    before = auth_file.read_text()
    await file_apl.delete(OTHER_SHOP_URL)

    assert auth_file.read_text() == before


@pytest.mark.asyncio
async def test_malformed_file_reads_as_empty(file_apl, auth_file):
    auth_file.write_text("{not json", encoding="utf-8")

    assert await file_apl.get(SHOP_URL) is None
    assert await file_apl.get_all() == []
    assert await file_apl.is_configured() is False


@pytest.mark.asyncio
async def test_non_object_json_reads_as_empty(file_apl, auth_file):
    write_json(auth_file, ["not", "a", "map"])

    assert await file_apl.get(SHOP_URL) is None
    assert await file_apl.get_all() == []


@pytest.mark.parametrize("url", [None, "", 42])
@pytest.mark.asyncio
async def test_single_domain_record_without_url_reads_as_empty(file_apl, auth_file, url):
    write_json(auth_file, {"saleorApiUrl": url, "token": "t", "appId": "a"})

    assert await file_apl.get(SHOP_URL) is None
    assert await file_apl.get_all() == []
    assert await file_apl.is_configured() is False


@pytest.mark.asyncio
async def test_set_replaces_single_domain_record_without_url(file_apl, auth_file, shop_auth_data):
    write_json(auth_file, {"saleorApiUrl": None, "token": "t", "appId": "a"})

    await file_apl.set(shop_auth_data)

    assert json.loads(auth_file.read_text()) == {SHOP_URL: shop_auth_data.to_dict()}


@pytest.mark.asyncio
async def test_malformed_entry_is_skipped(file_apl, auth_file, shop_auth_data):
    write_json(auth_file, {
        SHOP_URL: shop_auth_data.to_dict(),
        OTHER_SHOP_URL: "garbage",
    })

    assert await file_apl.get(OTHER_SHOP_URL) is None
    assert await file_apl.get_all() == [shop_auth_data]


@pytest.mark.asyncio
async def test_is_configured_boundaries(file_apl, auth_file, shop_auth_data):
    # Never created: configurable
    assert await file_apl.is_configured() is True

    await file_apl.set(shop_auth_data)
    assert await file_apl.is_configured() is True

    # Exists but empty map
    await file_apl.delete(SHOP_URL)
    assert await file_apl.is_configured() is False


@pytest.mark.asyncio
async def test_is_configured_single_domain(file_apl, auth_file):
    write_json(auth_file, {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID})

    assert await file_apl.is_configured() is True


@pytest.mark.asyncio
async def test_write_failure_raises_storage_write_error(file_apl, shop_auth_data):
    with patch(
        "saleor_app_auth.modules.apl.file_apl.os.replace",
        side_effect=PermissionError("read-only filesystem"),
    ):
        with pytest.raises(StorageWriteError) as exc_info:
            await file_apl.set(shop_auth_data)

    assert "read-only filesystem" in exc_info.value.message
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_failed_write_leaves_no_temp_file(file_apl, auth_file, shop_auth_data):
    with patch(
        "saleor_app_auth.modules.apl.file_apl.os.replace",
        side_effect=OSError("disk full"),
    ):
        with pytest.raises(StorageWriteError):
            await file_apl.set(shop_auth_data)

    assert os.listdir(auth_file.parent) == []


@pytest.mark.asyncio
async def test_unlink_failure_raises_storage_write_error(file_apl, auth_file):
    write_json(auth_file, {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID})

    with patch.object(type(auth_file), "unlink", side_effect=PermissionError("denied")):
        with pytest.raises(StorageWriteError):
            await file_apl.delete(SHOP_URL)


@pytest.mark.asyncio
async def test_round_trip_regardless_of_prior_shape(auth_file, other_auth_data):
    for prior in (
        None,
        {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID},
        {SHOP_URL: {"saleorApiUrl": SHOP_URL, "token": "t1", "appId": APP_ID}},
        {},
    ):
        if auth_file.exists():
            auth_file.unlink()
        if prior is not None:
            write_json(auth_file, prior)
        apl = MultiDomainFileAPL(str(auth_file))

        await apl.set(other_auth_data)

        assert await apl.get(OTHER_SHOP_URL) == other_auth_data


@pytest.mark.asyncio
async def test_is_ready(file_apl):
    assert await file_apl.is_ready() is True
