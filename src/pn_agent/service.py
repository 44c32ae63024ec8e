"""systemd lifecycle commands: install, remove, start, stop, status."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, Sequence

LOG = logging.getLogger(__name__)

SERVICE_NAME = "scw-wau"
SERVICE_DESCRIPTION = "Scaleway PN Watch and Update"
UNIT_DIR = Path("/etc/systemd/system")

UNIT_TEMPLATE = """[Unit]
Description={description}
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
ExecStart={exec_start}
Restart=on-failure
RestartSec=5

[Install]
WantedBy=multi-user.target
"""

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]


class ServiceError(RuntimeError):
    pass


def run(cmd: Sequence[str]) -> subprocess.CompletedProcess[str]:
    LOG.debug("Executing: %s", " ".join(cmd))
    return subprocess.run(list(cmd), check=False, text=True, capture_output=True)


def render_unit(exec_start: Sequence[str], description: str = SERVICE_DESCRIPTION) -> str:
    return UNIT_TEMPLATE.format(
        description=description,
        exec_start=" ".join(exec_start),
    )


class ServiceManager:
    """Manage the agent as a systemd system service."""

    def __init__(
        self,
        name: str = SERVICE_NAME,
        *,
        unit_dir: Path = UNIT_DIR,
        runner: Runner = run,
    ) -> None:
        self._name = name
        self._unit_path = Path(unit_dir) / f"{name}.service"
        self._run = runner

    @property
    def unit_path(self) -> Path:
        return self._unit_path

    def is_installed(self) -> bool:
        return self._unit_path.exists()

    def install(self, exec_start: Sequence[str]) -> str:
        if self.is_installed():
            raise ServiceError(f"{self._name} is already installed")
        try:
            self._unit_path.parent.mkdir(parents=True, exist_ok=True)
            self._unit_path.write_text(render_unit(exec_start))
        except OSError as exc:
            raise ServiceError(f"cannot write {self._unit_path}: {exc}") from exc
        self._systemctl("daemon-reload")
        self._systemctl("enable", self._name)
        return f"Install {SERVICE_DESCRIPTION}: OK"

    def remove(self) -> str:
        self._require_installed()
        self._systemctl("disable", self._name)
        try:
            self._unit_path.unlink()
        except OSError as exc:
            raise ServiceError(f"cannot remove {self._unit_path}: {exc}") from exc
        self._systemctl("daemon-reload")
        return f"Removing {SERVICE_DESCRIPTION}: OK"

    def start(self) -> str:
        self._require_installed()
        self._systemctl("start", self._name)
        return f"Starting {SERVICE_DESCRIPTION}: OK"

    def stop(self) -> str:
        self._require_installed()
        self._systemctl("stop", self._name)
        return f"Stopping {SERVICE_DESCRIPTION}: OK"

    def status(self) -> str:
        self._require_installed()
        # is-active exits non-zero for inactive units; the state is on stdout.
        result = self._call(["systemctl", "is-active", self._name])
        state = result.stdout.strip() or "unknown"
        return f"{SERVICE_DESCRIPTION} is {state}"

    def _require_installed(self) -> None:
        if not self.is_installed():
            raise ServiceError(f"{self._name} is not installed")

    def _call(self, cmd: Sequence[str]) -> "subprocess.CompletedProcess[str]":
        try:
            return self._run(cmd)
        except OSError as exc:
            raise ServiceError(f"cannot run {cmd[0]}: {exc}") from exc

    def _systemctl(self, *args: str) -> None:
        result = self._call(["systemctl", *args])
        if result.returncode != 0:
            LOG.error("systemctl %s failed: %s", " ".join(args), result.stderr.strip())
            raise ServiceError(
                f"systemctl {' '.join(args)} failed: {result.stderr.strip()}"
            )
