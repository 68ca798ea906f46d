import threading

from backend.lib.smart_meter_core.store import MeterReadingStore

from builders import make_readings


def test_unknown_meter_has_no_readings():
    assert MeterReadingStore().get_readings("unknown-id") is None


def test_empty_batch_creates_an_empty_series():
    store = MeterReadingStore()
    store.store_readings("random-id", [])
    assert store.get_readings("random-id") == []
    assert store.meter_ids() == ["random-id"]


def test_batches_are_appended_in_call_order():
    store = MeterReadingStore()
    first = make_readings(1, 2, 3)
    second = make_readings(3, 2, 1)
    store.store_readings("meter", first)
    store.store_readings("meter", second)
    assert store.get_readings("meter") == first + second


def test_duplicates_and_out_of_order_readings_are_kept():
    store = MeterReadingStore()
    readings = make_readings(1, 2)
    batch = [readings[1], readings[0], readings[0]]
    store.store_readings("meter", batch)
    assert store.get_readings("meter") == batch


def test_meters_are_isolated():
    store = MeterReadingStore()
    mine = make_readings(1, 2)
    store.store_readings("10101010", mine)
    store.store_readings("00001", make_readings(7, 8, 9))
    assert store.get_readings("10101010") == mine


def test_returned_series_is_a_snapshot():
    store = MeterReadingStore({"meter": make_readings(1, 2)})
    snapshot = store.get_readings("meter")
    store.store_readings("meter", make_readings(3))
    assert len(snapshot) == 2
    assert len(store.get_readings("meter")) == 3


def test_concurrent_batches_are_never_interleaved():
    store = MeterReadingStore()
    batches = [make_readings(*([n] * 50)) for n in range(20)]

    threads = [threading.Thread(target=store.store_readings, args=("meter", b)) for b in batches]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    readings = store.get_readings("meter")
    assert len(readings) == 20 * 50
    # every batch holds one value, so contiguous runs of 50 must share it
    for i in range(0, len(readings), 50):
        assert len({r.reading for r in readings[i:i + 50]}) == 1


def test_reader_sees_whole_batches_only():
    store = MeterReadingStore()
    batch_size = 500
    snapshots = []
    done = threading.Event()

    def write():
        for n in range(40):
            store.store_readings("meter", make_readings(*([n] * batch_size)))
        done.set()

    def read():
        while True:
            finished = done.is_set()
            readings = store.get_readings("meter")
            if readings is not None:
                snapshots.append(len(readings))
            if finished:
                break

    reader = threading.Thread(target=read)
    writer = threading.Thread(target=write)
    reader.start()
    writer.start()
    writer.join()
    reader.join()

    assert snapshots
    assert all(size % batch_size == 0 for size in snapshots)
    assert len(store.get_readings("meter")) == 40 * batch_size
