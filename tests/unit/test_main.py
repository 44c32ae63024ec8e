from pathlib import Path
from threading import Event, Thread

from pn_agent.config import AgentConfig
from pn_agent.main import build_parser, exec_start_for, main, manage_service, serve
from pn_agent.service import ServiceManager
from pn_sync.errors import FetchError
from pn_sync.models import DesiredAttachment, NetworkInterfaceRef, NicSet
from pn_sync.reconciler import NetworkReconciler


class StaticClient:
    def __init__(self, nics):
        self.nics = nics

    def fetch_attached_interfaces(self):
        if self.nics is None:
            raise FetchError("unreachable")
        return self.nics


def test_parser_defaults():
    args = build_parser().parse_args([])

    assert args.command == "run"
    assert args.poll_interval == 10.0
    assert args.config == Path("/etc/scw-wau/pn.yaml")


def test_parser_accepts_short_flags():
    args = build_parser().parse_args(["-p", "30", "-c", "/tmp/pn.yaml", "status"])

    assert args.command == "status"
    assert args.poll_interval == 30.0
    assert args.config == Path("/tmp/pn.yaml")


def test_exec_start_carries_options(tmp_path: Path):
    args = build_parser().parse_args(["install", "-c", str(tmp_path / "pn.yaml"), "-p", "15"])

    command = exec_start_for(args)

    assert command[1:4] == ["-m", "pn_agent", "run"]
    expected = str((tmp_path / "pn.yaml").resolve())
    assert command[-4:] == ["--config", expected, "--poll-interval", "15"]


def test_manage_service_reports_errors(tmp_path: Path, capsys):
    args = build_parser().parse_args(["start"])
    manager = ServiceManager(unit_dir=tmp_path, runner=lambda cmd: None)

    assert manage_service(args, manager) == 1
    assert capsys.readouterr().out == ""


def test_missing_config_exits_with_error(tmp_path: Path):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 2


def test_serve_reconciles_until_stopped(kernel):
    kernel.add_link("eth1", "aa:bb:cc:dd:ee:ff")
    config = AgentConfig(
        attachments=(DesiredAttachment("pn1", "10.10.0.5/24"),),
        routes=("default via 10.10.0.1",),
    )
    client = StaticClient(NicSet([NetworkInterfaceRef("pn1", "aa:bb:cc:dd:ee:ff")]))
    stop_event = Event()
    result = []

    runner = Thread(
        target=lambda: result.append(
            serve(
                config,
                0.05,
                stop_event,
                client=client,
                reconciler=NetworkReconciler(kernel.ipr),
            )
        )
    )
    runner.start()
    for _ in range(100):
        if kernel.routes:
            break
        stop_event.wait(0.02)
    stop_event.set()
    runner.join(timeout=10)

    assert result == [0]
    assert kernel.addresses_of("eth1") == ["10.10.0.5/24"]
    assert len(kernel.routes) == 1


def test_serve_returns_failure_after_fatal_error(kernel):
    kernel.add_link("eth1", "aa:bb:cc:dd:ee:ff")
    config = AgentConfig(attachments=(DesiredAttachment("pn1", "not-an-address"),))
    client = StaticClient(NicSet([NetworkInterfaceRef("pn1", "aa:bb:cc:dd:ee:ff")]))
    stop_event = Event()

    status = serve(
        config, 0.05, stop_event, client=client, reconciler=NetworkReconciler(kernel.ipr)
    )

    assert status == 1
    assert stop_event.is_set()


def test_unusable_config_value_exits_with_error(tmp_path: Path):
    config_path = tmp_path / "pn.yaml"
    config_path.write_text("metadata_timeout: soon\n")

    assert main(["--config", str(config_path)]) == 2


def test_manage_service_reports_os_errors(tmp_path: Path):
    args = build_parser().parse_args(["install", "-c", str(tmp_path / "pn.yaml")])
    blocker = tmp_path / "system"
    blocker.write_text("not a directory")
    manager = ServiceManager(unit_dir=blocker, runner=lambda cmd: None)

    assert manage_service(args, manager) == 1
