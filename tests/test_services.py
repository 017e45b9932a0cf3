import pytest

from metrix.errors import MetricNotFoundError
from metrix.repositories import (
    MemoryStorage,
    MetricMemoryGetRepository,
    MetricMemorySaveRepository,
)
from metrix.services import MetricGetService, MetricListService, MetricUpdateService
from metrix.types import MetricID, Metrics


class FakeGetter:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def get(self, metric_id):
        self.calls.append(metric_id)
        if self.error is not None:
            raise self.error
        return self.result


class FakeSaver:
    def __init__(self, error=None):
        self.error = error
        self.saved = []

    def save(self, metric):
        self.saved.append(metric)
        if self.error is not None:
            raise self.error


class FakeLister:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def list(self):
        if self.error is not None:
            raise self.error
        return self.result


def test_update_counter_adds_existing_delta():
    getter = FakeGetter(result=Metrics(id="requests_total", mtype="counter", delta=5))
    saver = FakeSaver()
    MetricUpdateService(saver, getter).update(
        [Metrics(id="requests_total", mtype="counter", delta=10)]
    )
    assert getter.calls == [MetricID(id="requests_total", mtype="counter")]
    assert saver.saved == [Metrics(id="requests_total", mtype="counter", delta=15)]


def test_update_gauge_saves_without_lookup():
    getter = FakeGetter()
    saver = FakeSaver()
    metric = Metrics(id="cpu_usage", mtype="gauge", value=42.0)
    MetricUpdateService(saver, getter).update([metric])
    assert getter.calls == []
    assert saver.saved == [Metrics(id="cpu_usage", mtype="gauge", value=42.0)]


def test_update_save_error_propagates():
    error = RuntimeError("assert.AnError general error for testing")
    saver = FakeSaver(error=error)
    with pytest.raises(RuntimeError) as info:
        MetricUpdateService(saver, FakeGetter()).update(
            [Metrics(id="memory_usage", mtype="gauge", value=100.0)]
        )
    assert info.value is error


def test_update_getter_error_on_counter_skips_save():
    error = RuntimeError("lookup failed")
    saver = FakeSaver()
    with pytest.raises(RuntimeError) as info:
        MetricUpdateService(saver, FakeGetter(error=error)).update(
            [Metrics(id="requests_total", mtype="counter", delta=10)]
        )
    assert info.value is error
    assert saver.saved == []


def test_update_counter_accumulates_in_memory():
    storage = MemoryStorage()
    getter = MetricMemoryGetRepository(storage)
    service = MetricUpdateService(MetricMemorySaveRepository(storage), getter)
    service.update([Metrics(id="requests", mtype="counter", delta=100)])
    service.update([Metrics(id="requests", mtype="counter", delta=50)])
    assert getter.get(MetricID(id="requests", mtype="counter")).delta == 150


def test_get_returns_metric():
    expected = Metrics(id="metric1", mtype="gauge")
    getter = FakeGetter(result=expected)
    result = MetricGetService(getter).get(MetricID(id="metric1", mtype="gauge"))
    assert result == expected


def test_get_propagates_getter_error():
    with pytest.raises(RuntimeError, match="some error"):
        MetricGetService(FakeGetter(error=RuntimeError("some error"))).get(
            MetricID(id="metric1", mtype="gauge")
        )


def test_get_missing_metric_raises_not_found():
    with pytest.raises(MetricNotFoundError):
        MetricGetService(FakeGetter(result=None)).get(MetricID(id="metric1", mtype="gauge"))


@pytest.mark.parametrize(
    "returned",
    [
        [Metrics(id="m1", mtype="gauge"), Metrics(id="m2", mtype="counter")],
        [],
    ],
)
def test_list_returns_lister_result(returned):
    assert MetricListService(FakeLister(result=returned)).list() == returned


def test_list_propagates_error():
    with pytest.raises(RuntimeError, match="some error"):
        MetricListService(FakeLister(error=RuntimeError("some error"))).list()