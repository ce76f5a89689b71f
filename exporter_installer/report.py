from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, TextIO

from . import console
from .config import ExporterSpec

RULE = "=" * 55


@dataclass(frozen=True)
class ExporterOutcome:
    name: str
    state: str
    reachable: bool
    metric_lines: int = 0


def render_exporter(spec: ExporterSpec, service_state: str) -> list[str]:
    return [
        f"{spec.title}:",
        f"  - Version: {spec.version_label}",
        f"  - Service status: {service_state}",
        f"  - Binary location: {spec.binary_path}",
        f"  - Metrics endpoint: {spec.metrics_url}",
        f"  - Run as user: {spec.run_as}",
    ]


def print_summary(
    specs: Iterable[ExporterSpec],
    service_states: Dict[str, str],
    *,
    scheduler_clients_present: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    specs = list(specs)
    console.plain("", stream=stream)
    console.success(RULE, stream=stream)
    console.success("Installation Summary:", stream=stream)
    console.success(RULE, stream=stream)
    for i, spec in enumerate(specs):
        lines = render_exporter(spec, service_states.get(spec.name, "inactive"))
        console.warn(lines[0], stream=stream)
        for line in lines[1:]:
            console.plain(line, stream=stream)
        if i < len(specs) - 1:
            console.plain("", stream=stream)
    console.success(RULE, stream=stream)
    console.plain("", stream=stream)
    console.success("Installation completed!", stream=stream)
    if specs:
        console.success(f"To verify, you can run: curl {specs[0].metrics_url}", stream=stream)
    for spec in specs[1:]:
        console.success(f"Or for {spec.title}: curl {spec.metrics_url}", stream=stream)

    if not scheduler_clients_present:
        console.plain("", stream=stream)
        console.warn(
            "NOTE: Slurm commands (sinfo, squeue, etc.) are required for the Slurm Exporter to work properly.",
            stream=stream,
        )
        console.warn(
            "If you need to install Slurm client tools, please refer to your distribution's documentation.",
            stream=stream,
        )
