from .step_10_preflight import PreflightStep
from .step_20_install_dependencies import InstallDependenciesStep
from .step_30_install_node_exporter import InstallNodeExporterStep
from .step_40_install_slurm_exporter import InstallSlurmExporterStep
from .step_50_verify import VerifyStep
from .step_60_report import ReportStep

__all__ = [
    "PreflightStep",
    "InstallDependenciesStep",
    "InstallNodeExporterStep",
    "InstallSlurmExporterStep",
    "VerifyStep",
    "ReportStep",
]
