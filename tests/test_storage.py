"""
Local disk storage tests.
"""

import pytest

from taskhub.core.storage import LocalStorage, Storage


def test_storage_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Storage()


@pytest.mark.asyncio
async def test_local_storage_round_trip(tmp_path):
    storage = LocalStorage(tmp_path, "/media/")

    key = await storage.put("task_images/abc/cover.png", b"png-bytes", "image/png")

    assert (tmp_path / "task_images" / "abc" / "cover.png").read_bytes() == b"png-bytes"
    assert storage.url(key) == "/media/task_images/abc/cover.png"

    await storage.delete(key)
    assert not (tmp_path / "task_images" / "abc" / "cover.png").exists()

    # deleting a missing key is a no-op
    await storage.delete(key)


@pytest.mark.asyncio
async def test_local_storage_rejects_keys_outside_root(tmp_path):
    storage = LocalStorage(tmp_path / "media", "/media")

    with pytest.raises(ValueError):
        await storage.put("../escape.png", b"x")
