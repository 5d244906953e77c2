import json
import sys
from pathlib import Path

import pytest

from carbonifer.config import Config
from carbonifer.terraform import (
    ProviderAuthError,
    Terraform,
    TerraformError,
    carbonifer_plan,
    find_terraform,
    get_terraform_exec,
    load_plan,
    reset_terraform_exec,
    run_terraform_console,
    terraform_plan,
)

FAKE_TERRAFORM = """
import json
import os
import pathlib
import sys

args = sys.argv[1:]
command = args[0] if args else ""
cwd = pathlib.Path.cwd()
if command == "version":
    print(json.dumps({"terraform_version": "1.4.6"}))
elif command == "init":
    if not any(cwd.glob("*.tf")):
        sys.stderr.write("Error: No configuration files\\n")
        sys.exit(1)
elif command == "validate":
    print(json.dumps({"valid": True, "diagnostics": []}))
elif command == "plan":
    if os.environ.get("FAKE_TF_AUTH"):
        sys.stderr.write("Error: No credentials loaded\\n")
        sys.exit(1)
    out = next(a[len("-out="):] for a in args if a.startswith("-out="))
    machine = os.environ.get("TF_VAR_machine_type", "f1-micro")
    plan = {"terraform_version": "1.4.6", "variables": {"machine_type": {"value": machine}}}
    pathlib.Path(out).write_text(json.dumps(plan))
elif command == "show":
    print(pathlib.Path(args[-1]).read_text())
elif command == "console":
    expr = sys.stdin.readline().strip()
    if expr == "var.machine_type":
        print('"f1-micro"')
    elif expr == "local.name":
        print(json.dumps({"local.name": "web"}))
    elif expr == "local.other":
        print(json.dumps({"something": "else"}))
    else:
        sys.stderr.write("Error: Reference to undeclared input variable\\n")
        sys.exit(1)
else:
    sys.exit(2)
"""


@pytest.fixture(autouse=True)
def _reset():
    reset_terraform_exec()
    yield
    reset_terraform_exec()


@pytest.fixture
def fake_bin(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "terraform"
    script.write_text(f"#!{sys.executable}\n{FAKE_TERRAFORM}")
    script.chmod(0o755)
    monkeypatch.setenv("PATH", str(bin_dir))
    monkeypatch.delenv("TF_VAR_machine_type", raising=False)
    monkeypatch.delenv("FAKE_TF_AUTH", raising=False)
    return bin_dir


@pytest.fixture
def project(tmp_path):
    directory = tmp_path / "project"
    directory.mkdir()
    (directory / "main.tf").write_text('variable "machine_type" {}\n')
    return directory


def _config(workdir: Path) -> Config:
    config = Config()
    config.set("workdir", str(workdir))
    return config


def test_get_terraform_exec_finds_path(fake_bin, tmp_path):
    terraform = get_terraform_exec(_config(tmp_path))
    assert terraform.exec_path == fake_bin / "terraform"
    assert terraform.working_dir == tmp_path
    assert terraform.version() == "1.4.6"
    assert get_terraform_exec(_config(tmp_path)) is terraform


def test_get_terraform_exec_follows_workdir(fake_bin, tmp_path, project):
    first = get_terraform_exec(_config(tmp_path))
    second = get_terraform_exec(_config(project))
    assert second.working_dir == project
    assert second.exec_path == first.exec_path


def test_get_terraform_exec_not_found(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", "")
    with pytest.raises(TerraformError, match="not found"):
        get_terraform_exec(_config(tmp_path))


def test_get_terraform_exec_from_configured_dir(fake_bin, tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", "")
    config = _config(tmp_path)
    config.set("terraform.path", str(fake_bin))
    terraform = get_terraform_exec(config)
    assert terraform.exec_path == fake_bin / "terraform"


def test_find_terraform_not_found(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", "")
    with pytest.raises(TerraformError):
        find_terraform(tmp_path)


def test_terraform_plan_no_file(fake_bin, tmp_path):
    empty = tmp_path / "empty"
    empty.mkdir()
    with pytest.raises(TerraformError, match="No configuration files"):
        terraform_plan(_config(empty))


def test_terraform_plan_no_tf_file(fake_bin, tmp_path):
    not_tf = tmp_path / "notTf"
    not_tf.mkdir()
    (not_tf / "readme.txt").write_text("nothing here")
    with pytest.raises(TerraformError, match="No configuration files"):
        terraform_plan(_config(not_tf))


def test_terraform_plan_missing_creds(fake_bin, project, monkeypatch):
    monkeypatch.setenv("FAKE_TF_AUTH", "1")
    with pytest.raises(ProviderAuthError) as info:
        terraform_plan(_config(project))
    assert "No credentials loaded" in str(info.value)
    assert str(info.value).startswith("Missing/Invalid provider credentials")


def test_terraform_plan_removes_temp_dir(fake_bin, project):
    plan = terraform_plan(_config(project))
    assert plan["variables"]["machine_type"]["value"] == "f1-micro"
    assert not any(p.name.startswith(".carbonifer") for p in project.iterdir())


def test_terraform_show_json(tmp_path):
    plan_dir = tmp_path / "planJson"
    plan_dir.mkdir()
    (plan_dir / "plan.json").write_text(json.dumps({"terraform_version": "1.3.7"}))
    config = Config()
    plan = carbonifer_plan(plan_dir / "plan.json", config)
    assert plan["terraform_version"] == "1.3.7"
    assert config.get("workdir") == str(plan_dir)


def test_terraform_show_not_exist_json(tmp_path):
    with pytest.raises(FileNotFoundError):
        carbonifer_plan(tmp_path / "plan2.json", Config())


def test_terraform_show_raw_plan(fake_bin, project):
    (project / "plan.tfplan").write_text(json.dumps({"terraform_version": "1.4.6"}))
    plan = carbonifer_plan(project / "plan.tfplan", Config())
    assert plan["terraform_version"] == "1.4.6"


def test_carbonifer_plan_auth_error_is_raised(fake_bin, project, monkeypatch):
    monkeypatch.setenv("FAKE_TF_AUTH", "1")
    with pytest.raises(ProviderAuthError):
        carbonifer_plan(project, Config())


def test_set_var_different_from_plan_file(fake_bin, project, monkeypatch):
    saved = {"terraform_version": "1.4.6", "variables": {"machine_type": {"value": "f1-micro"}}}
    (project / "plan.tfplan").write_text(json.dumps(saved))
    monkeypatch.setenv("TF_VAR_machine_type", "f1-medium")

    plan = carbonifer_plan(project, Config())
    assert plan["variables"]["machine_type"]["value"] == "f1-medium"

    plan2 = carbonifer_plan(project / "plan.tfplan", Config())
    assert plan2["variables"]["machine_type"]["value"] == "f1-micro"


def test_console_plain_value(fake_bin, project):
    assert run_terraform_console("var.machine_type", _config(project)) == "f1-micro"


def test_console_json_value(fake_bin, project):
    assert run_terraform_console("local.name", _config(project)) == "web"


def test_console_json_without_key(fake_bin, project):
    with pytest.raises(TerraformError, match="does not contain key"):
        run_terraform_console("local.other", _config(project))


def test_console_failure(fake_bin, project):
    with pytest.raises(TerraformError, match="error running terraform console") as info:
        run_terraform_console("var.unknown", _config(project))
    assert "undeclared" in info.value.stderr


def test_terraform_validate_report(fake_bin, project):
    terraform = Terraform(exec_path=fake_bin / "terraform", working_dir=project)
    assert terraform.validate() == {"valid": True, "diagnostics": []}


def test_load_plan(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps({"format_version": "1.1", "terraform_version": "1.3.7"}))
    assert load_plan(path) == {"format_version": "1.1", "terraform_version": "1.3.7"}


def test_load_plan_invalid(tmp_path):
    path = tmp_path / "plan.json"
    path.write_text("{not json")
    with pytest.raises(ValueError):
        load_plan(path)


def test_provider_auth_error_wraps_parent():
    parent = TerraformError("boom", stderr="no valid credential")
    error = ProviderAuthError(parent)
    assert error.parent is parent
    assert error.stderr == "no valid credential"
    assert str(error).endswith(": boom")