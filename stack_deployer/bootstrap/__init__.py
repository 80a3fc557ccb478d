from .steps import BootstrapStep, build_steps, render_script
from .runner import BootstrapError, BootstrapRunner, StepResult

__all__ = [
    "BootstrapError",
    "BootstrapRunner",
    "BootstrapStep",
    "StepResult",
    "build_steps",
    "render_script",
]
