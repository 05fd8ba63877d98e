"""Prerequisite detection for the eks command.

The bootstrap shells out to kubectl, helm and fluxctl; all three must be
on PATH before any step touches the cluster.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field

from ..errors import PrerequisiteError

REQUIRED_TOOLS = ("kubectl", "helm", "fluxctl")


@dataclass
class ToolStatus:
    """Detection result for one executable."""

    name: str
    available: bool
    path: str | None = None


@dataclass
class PrerequisiteReport:
    """Detection result for all required executables."""

    tools: list[ToolStatus] = field(default_factory=list)

    @property
    def missing(self) -> list[str]:
        return [t.name for t in self.tools if not t.available]

    @property
    def ok(self) -> bool:
        return not self.missing


class ToolDetector:
    """Detect required command line tools."""

    def __init__(self, tools: tuple[str, ...] = REQUIRED_TOOLS):
        self.tools = tools

    def detect(self) -> PrerequisiteReport:
        """Look up each tool on PATH."""
        report = PrerequisiteReport()
        for name in self.tools:
            path = shutil.which(name)
            report.tools.append(ToolStatus(name, path is not None, path))
        return report

    def require(self) -> PrerequisiteReport:
        """Detect tools, raising if any is missing.

        Raises:
            PrerequisiteError: Listing every missing executable.
        """
        report = self.detect()
        if not report.ok:
            raise PrerequisiteError(
                f"{', '.join(report.missing)} does not exist on PATH",
                missing=report.missing,
            )
        return report
