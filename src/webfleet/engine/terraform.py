"""Thin driver around the external provisioning engine's CLI."""

import json
import logging
import shutil
import subprocess  # nosec B404
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Exit code of ``plan -detailed-exitcode`` when changes are pending.
PLAN_CHANGES_PRESENT = 2


class EngineError(RuntimeError):
    """The provisioning engine failed or is unavailable."""


def terraform_path(binary: str = "terraform") -> str:
    """Resolve the engine binary on PATH."""
    executable = shutil.which(binary)
    if not executable:
        raise EngineError(f"Provisioning engine not found: {binary}")
    return executable


def run_terraform(
    args: Sequence[str],
    work_dir: Path,
    reporter: Callable[[str], None],
    binary: str = "terraform",
    capture: bool = False,
    ok_codes: Sequence[int] = (0,),
) -> subprocess.CompletedProcess[str]:
    """Run one engine subcommand inside the work directory."""
    command = [terraform_path(binary), *args]
    reporter(f"Running: {' '.join(command)}")
    logger.debug(f"Engine command {command} in {work_dir}")
    result = subprocess.run(  # nosec B603
        command,
        cwd=work_dir,
        check=False,
        text=True,
        capture_output=capture,
    )
    if result.returncode not in ok_codes:
        detail = (result.stderr or "").strip() if capture else ""
        message = f"{binary} {args[0]} exited with code {result.returncode}"
        raise EngineError(f"{message}: {detail}" if detail else message)
    return result


def init(work_dir: Path, reporter: Callable[[str], None], binary: str = "terraform") -> None:
    """Install providers for the rendered configuration."""
    run_terraform(["init", "-input=false"], work_dir, reporter, binary)


def plan_has_changes(
    work_dir: Path,
    reporter: Callable[[str], None],
    binary: str = "terraform",
) -> bool:
    """Return whether applying would change anything.

    An unchanged declaration applied twice must come back with no changes.
    """
    result = run_terraform(
        ["plan", "-input=false", "-detailed-exitcode"],
        work_dir,
        reporter,
        binary,
        ok_codes=(0, PLAN_CHANGES_PRESENT),
    )
    return result.returncode == PLAN_CHANGES_PRESENT


def apply(
    work_dir: Path,
    reporter: Callable[[str], None],
    binary: str = "terraform",
    auto_approve: bool = False,
) -> None:
    """Converge live resources to the rendered configuration."""
    args = ["apply"]
    if auto_approve:
        args.extend(["-input=false", "-auto-approve"])
    run_terraform(args, work_dir, reporter, binary)


def destroy(
    work_dir: Path,
    reporter: Callable[[str], None],
    binary: str = "terraform",
    auto_approve: bool = False,
) -> None:
    """Tear down every resource the engine tracks for this configuration."""
    args = ["destroy"]
    if auto_approve:
        args.extend(["-input=false", "-auto-approve"])
    run_terraform(args, work_dir, reporter, binary)


def read_outputs(
    work_dir: Path,
    reporter: Callable[[str], None],
    binary: str = "terraform",
) -> dict[str, Any]:
    """Return output values keyed by name."""
    result = run_terraform(["output", "-json"], work_dir, reporter, binary, capture=True)
    try:
        raw = json.loads(result.stdout or "{}")
    except json.JSONDecodeError as exc:
        raise EngineError(f"Engine returned invalid output JSON: {exc}") from exc
    return {name: entry.get("value") for name, entry in raw.items()}
