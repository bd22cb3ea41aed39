"""
hull.build.engine — BuildKit execution.

Runs `docker buildx build` against a staged context. BuildKit only
tags or exports once every stage the target depends on succeeded,
so a failed build never leaves a partial image behind.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable


logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass
class BuildCommand:
    """docker buildx build invocation."""
    context_dir: Path
    dockerfile: Path
    target: str
    tags: list[str] = field(default_factory=list)
    output: str | None = None       # e.g. type=local,dest=out
    labels: dict[str, str] = field(default_factory=dict)
    push: bool = False
    load: bool = False
    progress: str = "plain"

    def argv(self, docker: str = "docker") -> list[str]:
        cmd = [
            docker, "buildx", "build",
            "--progress", self.progress,
            "-f", str(self.dockerfile),
            "--target", self.target,
        ]
        for tag in self.tags:
            cmd.extend(["-t", tag])
        for key, value in self.labels.items():
            cmd.extend(["--label", f"{key}={value}"])
        if self.output:
            cmd.extend(["--output", self.output])
        if self.push:
            cmd.append("--push")
        elif self.load:
            cmd.append("--load")
        # Context last
        cmd.append(str(self.context_dir))
        return cmd


class BuildError(Exception):
    """Build execution error."""

    def __init__(self, message: str, returncode: int | None = None,
                 output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class BuildEngine:
    """Thin wrapper over the docker CLI."""

    def __init__(self, docker: str = "docker", runner: Runner | None = None):
        self.docker = docker
        self.runner = runner or subprocess.run
        self._check_path = runner is None

    def check_available(self) -> None:
        if self._check_path and shutil.which(self.docker) is None:
            raise BuildError(f"'{self.docker}' not found on PATH")

    def run(self, command: BuildCommand) -> subprocess.CompletedProcess:
        """Execute a build; raises BuildError on a non-zero exit."""
        self.check_available()
        argv = command.argv(self.docker)
        logger.info("Running: %s", " ".join(argv))

        try:
            result = self.runner(argv, capture_output=True, text=True)
        except OSError as e:
            raise BuildError(f"Failed to start {self.docker}: {e}") from e

        if result.returncode != 0:
            output = (result.stderr or "") + (result.stdout or "")
            raise BuildError(
                f"Build of target '{command.target}' failed "
                f"with exit code {result.returncode}",
                returncode=result.returncode,
                output=output,
            )

        logger.info("Build of target '%s' succeeded", command.target)
        return result
