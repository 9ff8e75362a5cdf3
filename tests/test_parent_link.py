"""
Tests for pass 2: resolving parent serial numbers into parent uids.
"""

import pytest

from inventorykit.reconcile import ParentLinkResolver, build_device_index
from inventorykit.resources import Device, DeviceSpec


def seed(store, serial, parent_serial="", parent_id=""):
    device = Device.new(DeviceSpec(
        device_type="Node",
        serial_number=serial,
        parent_serial_number=parent_serial,
        parent_id=parent_id,
    ))
    store.seed(device)
    return device


@pytest.fixture
def linker(store):
    return ParentLinkResolver(store)


class TestParentLinkResolver:

    def test_links_child_to_parent(self, store, ctx, linker):
        parent = seed(store, "chassis")
        seed(store, "blade", parent_serial="chassis")
        index = build_device_index(store, ctx)

        links = linker.link(dict(index), index, ctx)

        assert links == 1
        assert store.devices_by_serial()["blade"].spec.parent_id == parent.uid

    def test_parent_outside_batch_is_resolved(self, store, ctx, linker):
        parent = seed(store, "chassis")
        seed(store, "blade", parent_serial="chassis")
        index = build_device_index(store, ctx)
        batch = {"blade": index["blade"]}

        assert linker.link(batch, index, ctx) == 1
        assert store.devices_by_serial()["blade"].spec.parent_id == parent.uid
        # the parent itself is not written
        assert [c for c in store.mutations() if c[2] == parent.uid] == []

    def test_root_device_is_skipped(self, store, ctx, linker):
        seed(store, "chassis")
        index = build_device_index(store, ctx)

        assert linker.link(dict(index), index, ctx) == 0
        assert store.mutations() == []

    def test_orphan_is_left_unlinked(self, store, ctx, linker):
        seed(store, "X", parent_serial="missing")
        index = build_device_index(store, ctx)

        assert linker.link(dict(index), index, ctx) == 0
        assert store.devices_by_serial()["X"].spec.parent_id == ""
        assert store.mutations() == []

    def test_second_run_is_a_no_op(self, store, ctx, linker):
        seed(store, "rack")
        seed(store, "chassis", parent_serial="rack")
        seed(store, "blade", parent_serial="chassis")
        index = build_device_index(store, ctx)
        batch = dict(index)

        assert linker.link(batch, index, ctx) == 2
        writes_after_first = len(store.mutations())

        assert linker.link(batch, index, ctx) == 0
        assert len(store.mutations()) == writes_after_first

    def test_second_run_over_reloaded_index_is_a_no_op(self, store, ctx, linker):
        seed(store, "chassis")
        seed(store, "blade", parent_serial="chassis")
        index = build_device_index(store, ctx)
        linker.link(dict(index), index, ctx)

        reloaded = build_device_index(store, ctx)
        assert linker.link(dict(reloaded), reloaded, ctx) == 0

    def test_already_linked_device_is_not_written(self, store, ctx, linker):
        parent = seed(store, "chassis")
        seed(store, "blade", parent_serial="chassis", parent_id=parent.uid)
        index = build_device_index(store, ctx)

        assert linker.link(dict(index), index, ctx) == 0
        assert store.mutations() == []

    def test_stale_link_is_corrected(self, store, ctx, linker):
        new_parent = seed(store, "chassis-2")
        seed(store, "blade", parent_serial="chassis-2", parent_id="dev-oldpar01")
        index = build_device_index(store, ctx)

        assert linker.link(dict(index), index, ctx) == 1
        assert store.devices_by_serial()["blade"].spec.parent_id == new_parent.uid

    def test_write_failure_skips_device_and_continues(self, store, ctx, linker):
        parent = seed(store, "chassis")
        seed(store, "blade-1", parent_serial="chassis")
        seed(store, "blade-2", parent_serial="chassis")
        index = build_device_index(store, ctx)
        store.fail_update.add("blade-1")

        links = linker.link(dict(index), index, ctx)

        assert links == 1
        stored = store.devices_by_serial()
        assert stored["blade-1"].spec.parent_id == ""
        assert stored["blade-2"].spec.parent_id == parent.uid
        # failed device keeps its previous in-memory state
        assert index["blade-1"].spec.parent_id == ""
