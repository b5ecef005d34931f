import asyncio

import pytest

from filevault.server.admission import AdmissionController, OperationClass


class TestAdmissionControllerInit:
    def test_stores_capacities(self):
        controller = AdmissionController(1, 2, 3)
        assert controller.capacity(OperationClass.UPLOAD) == 1
        assert controller.capacity(OperationClass.DOWNLOAD) == 2
        assert controller.capacity(OperationClass.LIST) == 3

    @pytest.mark.parametrize("limits", [(0, 1, 1), (1, 0, 1), (1, 1, -1)])
    def test_rejects_non_positive_limits(self, limits):
        with pytest.raises(ValueError):
            AdmissionController(*limits)


class TestAdmissionControllerAcquireRelease:
    @pytest.mark.asyncio
    async def test_tracks_in_flight(self):
        controller = AdmissionController(2, 2, 2)

        await controller.acquire(OperationClass.UPLOAD)
        await controller.acquire(OperationClass.UPLOAD)
        assert controller.in_flight(OperationClass.UPLOAD) == 2
        assert controller.in_flight(OperationClass.DOWNLOAD) == 0

        controller.release(OperationClass.UPLOAD)
        assert controller.in_flight(OperationClass.UPLOAD) == 1

    def test_release_without_acquire_raises(self):
        controller = AdmissionController(1, 1, 1)
        with pytest.raises(RuntimeError):
            controller.release(OperationClass.LIST)

    @pytest.mark.asyncio
    async def test_acquire_blocks_when_full(self):
        controller = AdmissionController(1, 1, 1)
        await controller.acquire(OperationClass.UPLOAD)

        waiter = asyncio.create_task(controller.acquire(OperationClass.UPLOAD))
        await asyncio.sleep(0.01)
        assert not waiter.done()

        controller.release(OperationClass.UPLOAD)
        await asyncio.wait_for(waiter, timeout=1)
        assert controller.in_flight(OperationClass.UPLOAD) == 1

    @pytest.mark.asyncio
    async def test_classes_are_independent(self):
        controller = AdmissionController(1, 1, 1)
        await controller.acquire(OperationClass.UPLOAD)

        await asyncio.wait_for(controller.acquire(OperationClass.DOWNLOAD), timeout=1)
        await asyncio.wait_for(controller.acquire(OperationClass.LIST), timeout=1)


class TestAdmissionControllerSlot:
    @pytest.mark.asyncio
    async def test_releases_on_exception(self):
        controller = AdmissionController(1, 1, 1)

        with pytest.raises(KeyError):
            async with controller.slot(OperationClass.DOWNLOAD):
                raise KeyError("boom")

        assert controller.in_flight(OperationClass.DOWNLOAD) == 0

    @pytest.mark.asyncio
    async def test_releases_on_cancellation(self):
        controller = AdmissionController(1, 1, 1)
        entered = asyncio.Event()

        async def hold():
            async with controller.slot(OperationClass.UPLOAD):
                entered.set()
                await asyncio.Event().wait()

        task = asyncio.create_task(hold())
        await entered.wait()
        assert controller.in_flight(OperationClass.UPLOAD) == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert controller.in_flight(OperationClass.UPLOAD) == 0

    @pytest.mark.asyncio
    async def test_never_exceeds_capacity(self):
        controller = AdmissionController(2, 1, 1)
        peak = 0

        async def work():
            nonlocal peak
            async with controller.slot(OperationClass.UPLOAD):
                peak = max(peak, controller.in_flight(OperationClass.UPLOAD))
                await asyncio.sleep(0.01)

        await asyncio.gather(*[work() for _ in range(8)])

        assert peak == 2
        assert controller.in_flight(OperationClass.UPLOAD) == 0
