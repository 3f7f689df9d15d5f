import pytest

from core.database import ConnectionManager, RunStore
from core.exceptions import DatabaseOperationError
from core.models.metrics import MetricKey


def test_save_round_trips_unavailable_as_null(run_store, metric_set_factory):
    metric_set = metric_set_factory(network_download=None, disk_latency=None)

    run_id = run_store.save(metric_set)
    run = run_store.get_run(run_id)

    assert run is not None
    assert run.run_id == run_id
    assert run.metric_set == metric_set
    assert run.metric_set.value(MetricKey.NETWORK_DOWNLOAD) is None


def test_previous_skips_the_run_just_saved(run_store, metric_set_factory):
    first = metric_set_factory(timestamp="2024-01-01T00:00:00Z", cpu_single=100.0)
    second = metric_set_factory(timestamp="2024-01-02T00:00:00Z", cpu_single=200.0)

    run_store.save(first)
    assert run_store.previous(first.hostname) is None

    run_store.save(second)
    previous = run_store.previous(second.hostname)
    assert previous.value(MetricKey.CPU_SINGLE) == 100.0


def test_previous_is_scoped_to_hostname(run_store, metric_set_factory):
    run_store.save(metric_set_factory(hostname="alpha", timestamp="2024-01-01T00:00:00Z"))
    run_store.save(metric_set_factory(hostname="beta", timestamp="2024-01-02T00:00:00Z"))
    run_store.save(metric_set_factory(hostname="alpha", timestamp="2024-01-03T00:00:00Z"))

    assert run_store.previous("beta") is None
    assert run_store.previous("alpha").timestamp == "2024-01-01T00:00:00Z"


def test_previous_with_identical_timestamps_excludes_latest_insert(run_store, metric_set_factory):
    run_store.save(metric_set_factory(cpu_multi=1.0))
    run_store.save(metric_set_factory(cpu_multi=2.0))
    run_store.save(metric_set_factory(cpu_multi=3.0))

    assert run_store.previous("bench-host").value(MetricKey.CPU_MULTI) == 2.0


def test_hostile_hostname_is_stored_verbatim(run_store, metric_set_factory):
    hostname = "host'; DROP TABLE benchmarks; --"
    run_store.save(metric_set_factory(hostname=hostname, timestamp="2024-01-01T00:00:00Z"))
    run_store.save(metric_set_factory(hostname=hostname, timestamp="2024-01-02T00:00:00Z"))

    assert run_store.previous(hostname).hostname == hostname
    assert run_store.count_runs() == 2


def test_list_recent_orders_newest_first_with_display_columns(run_store, metric_set_factory):
    for day in range(1, 4):
        run_store.save(metric_set_factory(timestamp=f"2024-01-0{day}T00:00:00Z", network_download=None))

    rows = run_store.list_recent(limit=2)

    assert [row["timestamp"] for row in rows] == ["2024-01-03T00:00:00Z", "2024-01-02T00:00:00Z"]
    assert rows[0]["net_dl"] == 0
    assert rows[0]["cpu_s"] == pytest.approx(512.34)
    assert set(rows[0]) == {"id", "timestamp", "hostname", "version", "cpu_s", "cpu_m", "disk_w", "net_dl"}


def test_count_runs_per_host(run_store, metric_set_factory):
    run_store.save(metric_set_factory(hostname="alpha"))
    run_store.save(metric_set_factory(hostname="beta"))

    assert run_store.count_runs() == 2
    assert run_store.count_runs("alpha") == 1
    assert run_store.get_run(999) is None


def test_schema_creation_is_idempotent(tmp_path, metric_set_factory):
    db_file = tmp_path / "benchmark_results.db"
    with ConnectionManager(db_file) as manager:
        RunStore(manager).save(metric_set_factory())

    with ConnectionManager(db_file) as manager:
        store = RunStore(manager)
        assert store.count_runs() == 1
        assert manager.health_check()["connected"] is True


def test_legacy_rows_without_version_load_as_1_0_0(run_store):
    with run_store.connection_manager.get_cursor() as cursor:
        cursor.execute(
            "INSERT INTO benchmarks (timestamp, hostname, version, cpu_single) VALUES (?, ?, NULL, ?)",
            ("2023-06-01T00:00:00Z", "old-host", 300.0),
        )
        run_id = cursor.lastrowid

    run = run_store.get_run(run_id)
    assert run.metric_set.version == "1.0.0"
    assert run.metric_set.value(MetricKey.CPU_MULTI) is None


def test_missing_table_surfaces_operation_error(tmp_path, metric_set_factory):
    manager = ConnectionManager(tmp_path / "benchmark_results.db")
    store = RunStore(manager)
    with manager.get_cursor() as cursor:
        cursor.execute("DROP TABLE benchmarks")

    with pytest.raises(DatabaseOperationError):
        store.save(metric_set_factory())
    manager.close()


def test_saved_metric_set_cannot_be_changed_afterwards(run_store, metric_set_factory):
    metric_set = metric_set_factory()
    run_id = run_store.save(metric_set)

    with pytest.raises(TypeError):
        metric_set.values[MetricKey.CPU_SINGLE] = 1.0

    reloaded = run_store.get_run(run_id).metric_set
    assert reloaded == metric_set
    assert hash(reloaded) == hash(metric_set)
