"""Running the terraform executable and reading the plans it produces."""

from __future__ import annotations

import json
import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from carbonifer.config import Config, ConfigFileNotFoundError

logger = logging.getLogger(__name__)

TERRAFORM = "terraform"

_AUTH_ERROR_MARKERS = (
    "invalid authentication credentials",
    "No credentials loaded",
    "no valid credential",
)

_EXEC_KEY = "terraform"
_exec_cache: dict[str, Terraform] = {}


class TerraformError(Exception):
    """Raised when the terraform executable is missing or a command fails."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ProviderAuthError(TerraformError):
    """Raised when a plan fails because provider credentials are missing or invalid."""

    def __init__(self, parent: Exception) -> None:
        super().__init__(
            "Missing/Invalid provider credentials, please check or set your credentials : "
            f"{parent}",
            stderr=getattr(parent, "stderr", ""),
        )
        self.parent = parent


def _json_output(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise TerraformError(f"terraform {what} gave no valid JSON: {exc}") from exc


@dataclass(frozen=True)
class Terraform:
    """A terraform executable bound to a working directory."""

    exec_path: Path
    working_dir: Path

    def _run(
        self, *args: str, stdin: str | None = None, check: bool = True
    ) -> subprocess.CompletedProcess[str]:
        env = dict(os.environ, TF_IN_AUTOMATION="1")
        try:
            proc = subprocess.run(
                [str(self.exec_path), *args],
                cwd=self.working_dir,
                input=stdin,
                capture_output=True,
                text=True,
                env=env,
                check=False,
            )
        except OSError as exc:
            raise TerraformError(f"cannot run {self.exec_path}: {exc}") from exc
        if check and proc.returncode != 0:
            raise self._failure(args[0], proc)
        return proc

    @staticmethod
    def _failure(command: str, proc: subprocess.CompletedProcess[str]) -> TerraformError:
        details = (proc.stderr.strip() or proc.stdout.strip())
        return TerraformError(
            f"terraform {command} failed: exit status {proc.returncode}\n{details}",
            stderr=proc.stderr,
        )

    def version(self) -> str:
        """Return the version of the executable."""
        proc = self._run("version", "-json")
        data = _json_output(proc.stdout, "version")
        if not isinstance(data, dict) or "terraform_version" not in data:
            raise TerraformError("terraform version did not report a version")
        return str(data["terraform_version"])

    def init(self) -> None:
        """Run ``terraform init`` in the working directory."""
        self._run("init", "-no-color", "-input=false")

    def validate(self) -> dict:
        """Run ``terraform validate`` and return its JSON report.

        An invalid configuration is reported, not raised; the plan fails on it later.
        """
        proc = self._run("validate", "-no-color", "-json", check=False)
        if proc.returncode not in (0, 1):
            raise self._failure("validate", proc)
        try:
            report = json.loads(proc.stdout)
        except json.JSONDecodeError:
            raise self._failure("validate", proc) from None
        if not isinstance(report, dict):
            raise TerraformError("terraform validate gave an unexpected report")
        return report

    def plan(self, out: str | os.PathLike[str]) -> None:
        """Run ``terraform plan``, writing the plan to ``out``."""
        proc = self._run("plan", "-no-color", "-input=false", f"-out={out}", check=False)
        if proc.returncode == 0:
            return
        error = self._failure("plan", proc)
        message = str(error)
        if any(marker in message for marker in _AUTH_ERROR_MARKERS):
            raise ProviderAuthError(error) from error
        logger.error("error running  Terraform Plan: %s", error)
        raise error

    def show_plan_file(self, plan_file: str | os.PathLike[str]) -> dict:
        """Return the plan stored in ``plan_file`` as JSON data."""
        proc = self._run("show", "-json", "-no-color", str(plan_file))
        plan = _json_output(proc.stdout, "show")
        if not isinstance(plan, dict):
            raise TerraformError("terraform show did not give a JSON object")
        return plan

    def console(self, command: str) -> str:
        """Evaluate ``command`` with ``terraform console`` and return its value."""
        proc = self._run("console", stdin=command + "\n", check=False)
        if proc.returncode != 0:
            raise TerraformError(
                f"error running terraform console: exit status {proc.returncode}\n"
                f"stderr: {proc.stderr}",
                stderr=proc.stderr,
            )
        output = proc.stdout.strip()
        try:
            result = json.loads(output)
        except json.JSONDecodeError:
            result = None
        if isinstance(result, dict) and all(isinstance(v, str) for v in result.values()):
            if command not in result:
                raise TerraformError(f"output does not contain key {command!r}")
            output = result[command]
        return output.strip('"')


def find_terraform(workdir: str | os.PathLike[str]) -> Terraform:
    """Return the terraform executable found on PATH, working in ``workdir``."""
    found = shutil.which(TERRAFORM)
    if found is None:
        raise TerraformError("terraform executable not found in PATH")
    return Terraform(exec_path=Path(found), working_dir=Path(workdir))


def _workdir(config: Config) -> Path:
    return Path(str(config.get("workdir") or "."))


def get_terraform_exec(config: Config) -> Terraform:
    """Return the terraform executable, located once and then reused.

    PATH is searched first, then the directory set as ``terraform.path``.
    """
    workdir = _workdir(config)
    terraform = _exec_cache.get(_EXEC_KEY)
    if terraform is None:
        logger.debug("Finding terraform exec")
        try:
            terraform = find_terraform(workdir)
            logger.info("Using Terraform exec from %s", terraform.exec_path)
        except TerraformError:
            terraform = _from_install_dir(config, workdir)
        version = terraform.version()
        logger.info("Using terraform %s", version)
    if terraform.working_dir != workdir:
        terraform = replace(terraform, working_dir=workdir)
    _exec_cache[_EXEC_KEY] = terraform
    return terraform


def _from_install_dir(config: Config, workdir: Path) -> Terraform:
    install_dir = config.get("terraform.path")
    wanted = config.get("terraform.version")
    if install_dir:
        found = shutil.which(TERRAFORM, path=str(install_dir))
        if found is not None:
            logger.info("Using Terraform exec from %s", found)
            return Terraform(exec_path=Path(found), working_dir=workdir)
    message = "terraform executable not found in PATH"
    if install_dir:
        message += f" nor in {install_dir}"
    if wanted:
        message += f" (terraform {wanted} is configured)"
    raise TerraformError(message)


def reset_terraform_exec() -> None:
    """Forget the executable found so far."""
    _exec_cache.clear()


def _terraform_init(config: Config) -> Terraform:
    terraform = get_terraform_exec(config)
    logger.debug("Running terraform init in %s", terraform.working_dir)
    terraform.init()
    return terraform


def carbonifer_plan(input_path: str | os.PathLike[str], config: Config) -> dict:
    """Return the plan of a plan file (JSON or binary) or of a terraform directory."""
    path = Path(input_path)
    if not path.exists():
        raise FileNotFoundError(f"no such file or directory: {path}")

    if not path.is_dir():
        parent = path.parent
        config.add_config_path(parent / ".carbonifer")
        config.set("workdir", str(parent))
        return _terraform_show(path.name, config)

    config.add_config_path(path / ".carbonifer")
    try:
        config.read_in_config()
    except ConfigFileNotFoundError:
        pass

    config.set("workdir", str(path))
    try:
        return terraform_plan(config)
    except ProviderAuthError as exc:
        logger.warning("Skipping Authentication error: %s", exc)
        raise


def terraform_plan(config: Config) -> dict:
    """Init, validate and plan the working directory, and return the plan."""
    terraform = _terraform_init(config)
    terraform.validate()
    with tempfile.TemporaryDirectory(prefix=".carbonifer", dir=terraform.working_dir) as cf_dir:
        logger.debug("Created temporary terraform plan directory %s", cf_dir)
        handle, plan_name = tempfile.mkstemp(prefix="plan-", suffix=".tfplan", dir=cf_dir)
        os.close(handle)
        logger.debug("Using temp terraform plan file %s", plan_name)
        logger.debug("Running terraform plan in %s", terraform.working_dir)
        logger.debug("Running terraform exec %s", terraform.exec_path)
        terraform.plan(plan_name)
        try:
            return terraform.show_plan_file(plan_name)
        except TerraformError as exc:
            logger.info("error running  Terraform Show: %s", exc)
            raise


def _terraform_show(file_name: str, config: Config) -> dict:
    if file_name.endswith(".json"):
        plan_path = _workdir(config) / file_name
        logger.debug("Reading Terraform plan from %s", plan_path)
        return load_plan(plan_path)
    terraform = _terraform_init(config)
    return terraform.show_plan_file(file_name)


def run_terraform_console(command: str, config: Config) -> str:
    """Evaluate ``command`` in the configured working directory."""
    return get_terraform_exec(config).console(command)


def load_plan(path: str | os.PathLike[str]) -> dict:
    """Read a plan saved as JSON."""
    with open(path, encoding="utf-8") as handle:
        plan = json.load(handle)
    if not isinstance(plan, dict):
        raise ValueError(f"plan file {path} does not hold a JSON object")
    return plan