import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from core.benchmarks.runner import ToolResult  # noqa: E402
from core.config import BenchmarkSettings  # noqa: E402
from core.database import ConnectionManager, RunStore  # noqa: E402
from core.exceptions import ToolExecutionError  # noqa: E402
from core.models.metrics import MetricKey, MetricSet  # noqa: E402


FIXED_TIMESTAMP = "2024-01-31T12:00:00Z"
TEST_HOSTNAME = "bench-host"

SYSBENCH_CPU_SINGLE_OUTPUT = """\
sysbench 1.0.20 (using system LuaJIT 2.1.0-beta3)

Running the test with following options:
Number of threads: 1

Prime numbers limit: 20000

CPU speed:
    events per second:   512.34

General statistics:
    total time:                          10.0012s
    total number of events:              5124
"""

SYSBENCH_CPU_MULTI_OUTPUT = """\
CPU speed:
    events per second:  2049.50

General statistics:
    total time:                          10.0008s
"""

SYSBENCH_MEMORY_OUTPUT = """\
Running memory speed test with the following options:
  block size: 1024KiB
  total size: 10240MiB
  operation: write
  scope: global

Total operations: 10240 (10939.52 per second)

10240.00 MiB transferred (10939.52 MiB/sec)
"""


def fio_output(bandwidth: str = "512MiB/s", direction: str = "WRITE") -> str:
    return f"""\
seqwrite_direct: (g=0): rw=write, bs=(R) 1024KiB-1024KiB, ioengine=libaio, iodepth=1
fio-3.28
Starting 1 process

Run status group 0 (all jobs):
  {direction}: bw={bandwidth} (537MB/s), {bandwidth}-{bandwidth} (537MB/s-537MB/s), io=1024MiB (1074MB), run=2000-2000msec

Disk stats (read/write):
  vda: ios=0/1021, merge=0/0, ticks=0/1843, in_queue=1843, util=94.88%
"""


FIO_NO_SPACE_OUTPUT = """\
seqwrite_direct: (g=0): rw=write, bs=(R) 1024KiB-1024KiB, ioengine=libaio, iodepth=1
fio: io_u error on file benchmark_test.fio: No space left on device: write offset=0, buflen=1048576
fio: pid=4242, err=28/file:io_u.c:1787, func=io_u error, error=No space left on device
"""

IOPING_OUTPUT = """\
4 KiB <<< /var/lib/bench (ext4 /dev/vda1): request=1 time=312.1 us (warmup)
4 KiB <<< /var/lib/bench (ext4 /dev/vda1): request=2 time=270.4 us

--- /var/lib/bench (ext4 /dev/vda1) ioping statistics ---
19 requests completed in 5.12 ms, 76 KiB read, 3.71 k iops, 14.5 MiB/s
generated 20 requests in 19.0 s, 80 KiB, 1 iops, 4.21 KiB/s
min/avg/max/mdev = 180.4 us / 269.9 us / 412.3 us / 53.1 us
"""

OOKLA_OUTPUT = """\

   Speedtest by Ookla

      Server: Example Networks - Frankfurt (id: 12345)
         ISP: Example Hosting
Idle Latency:    11.52 ms   (jitter: 0.21ms, low: 11.30ms, high: 11.88ms)
    Download:   941.27 Mbps (data used: 1.1 GB)
                 14.02 ms   (jitter: 1.10ms, low: 11.51ms, high: 30.44ms)
      Upload:   512.80 Mbps (data used: 620.4 MB)
                 12.97 ms   (jitter: 0.87ms, low: 11.42ms, high: 25.03ms)
 Packet Loss:     0.0%
  Result URL: https://www.speedtest.net/result/c/00000000-0000-0000-0000-000000000000
"""

SPEEDTEST_CLI_OUTPUT = """\
Ping: 18.734 ms
Download: 93.42 Mbit/s
Upload: 41.07 Mbit/s
"""

LSCPU_OUTPUT = """\
Architecture:                    x86_64
CPU(s):                          4
On-line CPU(s) list:             0-3
Model name:                      AMD EPYC 7763 64-Core Processor
Thread(s) per core:              2
Core(s) per socket:              2
Socket(s):                       1
"""

FREE_OUTPUT = """\
               total        used        free      shared  buff/cache   available
Mem:           7.7Gi       1.2Gi       5.1Gi        12Mi       1.4Gi       6.2Gi
Swap:             0B          0B          0B
"""

LSBLK_OUTPUT = """\
NAME    SIZE TYPE MOUNTPOINT
vda      80G disk
└─vda1   80G part /
"""


class FakeToolRunner:
    """Scripted stand-in for ToolRunner; never starts a process."""

    def __init__(self, installed: Iterable[str] = ()) -> None:
        self.installed = set(installed)
        self.scripts: List[Tuple[Tuple[str, ...], ToolResult, Optional[Callable[[List[str]], None]]]] = []
        self.calls: List[Dict[str, object]] = []

    def script(
        self,
        *match: str,
        output: str = "",
        exit_code: Optional[int] = 0,
        timed_out: bool = False,
        side_effect: Optional[Callable[[List[str]], None]] = None,
    ) -> "FakeToolRunner":
        """Register a canned result for commands containing every ``match`` token."""
        result = ToolResult(args=list(match), exit_code=exit_code, output=output, timed_out=timed_out)
        self.scripts.append((match, result, side_effect))
        return self

    def is_available(self, tool_name: str) -> bool:
        return tool_name in self.installed

    def run(self, args: Sequence[str], timeout: Optional[float] = None) -> ToolResult:
        args = [str(arg) for arg in args]
        self.calls.append({"args": args, "timeout": timeout})

        if args[0] not in self.installed:
            raise ToolExecutionError(args[0], "could not start: not installed")

        for match, result, side_effect in self.scripts:
            if all(token in args for token in match):
                if side_effect is not None:
                    side_effect(args)
                return ToolResult(args=args, exit_code=result.exit_code, output=result.output, timed_out=result.timed_out)

        return ToolResult(args=args, exit_code=1, output=f"{args[0]}: unexpected invocation")

    def commands_for(self, binary: str) -> List[List[str]]:
        return [call["args"] for call in self.calls if call["args"][0] == binary]


def script_system_tools(runner: FakeToolRunner) -> FakeToolRunner:
    """Canned outputs for the host description tools."""
    runner.installed.update({"uptime", "lscpu", "free", "lsblk"})
    runner.script("uptime", "-p", output="up 3 days, 4 hours\n")
    runner.script("lscpu", output=LSCPU_OUTPUT)
    runner.script("free", "-h", output=FREE_OUTPUT)
    runner.script("lsblk", output=LSBLK_OUTPUT)
    return runner


def script_all_tools(runner: FakeToolRunner) -> FakeToolRunner:
    """Canned healthy outputs for every measurement tool."""
    runner.installed.update({"sysbench", "fio", "ioping", "speedtest"})
    runner.script("sysbench", "cpu", "--threads=1", output=SYSBENCH_CPU_SINGLE_OUTPUT)
    runner.script("sysbench", "cpu", output=SYSBENCH_CPU_MULTI_OUTPUT)
    runner.script("sysbench", "memory", output=SYSBENCH_MEMORY_OUTPUT)
    runner.script("fio", "--parse-only", output="")
    runner.script("fio", "--name=seqwrite_direct", output=fio_output("512MiB/s"))
    runner.script("fio", "--name=seqread_direct", output=fio_output("1024MiB/s", "READ"))
    runner.script("fio", "--name=seqwrite_buf", output=fio_output("1.5GiB/s"))
    runner.script("ioping", output=IOPING_OUTPUT)
    runner.script("speedtest", output=OOKLA_OUTPUT)
    return runner


class FakeInventory:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.checked = False

    def ensure_required(self) -> None:
        self.checked = True
        if self.error is not None:
            raise self.error

    def optional_status(self) -> Dict[str, bool]:
        return {"ioping": True, "speedtest": True, "speedtest-cli": False}


class FakeCollector:
    def __init__(self, metric_set: MetricSet, error: Optional[BaseException] = None) -> None:
        self.metric_set = metric_set
        self.error = error
        self.settings: List[BenchmarkSettings] = []

    def collect(self, settings: BenchmarkSettings) -> MetricSet:
        self.settings.append(settings)
        if self.error is not None:
            raise self.error
        return self.metric_set


class FakeNotifier:
    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.messages: List[Dict[str, str]] = []

    def notify(self, title: str, message: str, priority: str = "default") -> bool:
        self.messages.append({"title": title, "message": message, "priority": priority})
        return self.succeed


def make_metric_set(
    timestamp: str = FIXED_TIMESTAMP,
    hostname: str = TEST_HOSTNAME,
    **overrides: Optional[float],
) -> MetricSet:
    values = {
        MetricKey.CPU_SINGLE: 512.34,
        MetricKey.CPU_MULTI: 2049.5,
        MetricKey.MEMORY_BANDWIDTH: 10939.52,
        MetricKey.DISK_WRITE_BUFFERED: 1536.0,
        MetricKey.DISK_WRITE_DIRECT: 512.0,
        MetricKey.DISK_READ: 1024.0,
        MetricKey.DISK_LATENCY: 269.0,
        MetricKey.NETWORK_DOWNLOAD: 941.27,
        MetricKey.NETWORK_UPLOAD: 512.8,
        MetricKey.NETWORK_PING: 11.52,
    }
    for name, value in overrides.items():
        values[MetricKey(name)] = value
    return MetricSet(timestamp=timestamp, hostname=hostname, values=values)


@pytest.fixture
def fake_runner_factory():
    def _factory(installed: Iterable[str] = ()) -> FakeToolRunner:
        return FakeToolRunner(installed)

    return _factory


@pytest.fixture
def healthy_runner() -> FakeToolRunner:
    return script_all_tools(FakeToolRunner())


@pytest.fixture
def bench_settings() -> BenchmarkSettings:
    return BenchmarkSettings(cpu_test_time=1, disk_test_size="64M", network_timeout=30)


@pytest.fixture
def metric_set_factory():
    return make_metric_set


@pytest.fixture
def run_store(tmp_path):
    manager = ConnectionManager(tmp_path / "benchmark_results.db")
    yield RunStore(manager)
    manager.close()


@pytest.fixture
def restore_logging():
    """Undo handler and level changes made by ConfigManager.update_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
