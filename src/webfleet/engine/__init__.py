"""Provisioning engine driver."""

from webfleet.engine.terraform import (
    EngineError,
    apply,
    destroy,
    init,
    plan_has_changes,
    read_outputs,
    run_terraform,
    terraform_path,
)

__all__ = [
    "EngineError",
    "apply",
    "destroy",
    "init",
    "plan_has_changes",
    "read_outputs",
    "run_terraform",
    "terraform_path",
]
