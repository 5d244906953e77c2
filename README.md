# carbonifer

A library for reading Terraform plans, describing the cloud resources in them,
and looking up the hardware data (vCPUs, memory, CPU and GPU wattages) of cloud
machine types.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `carbonifer.providers`: the `Provider` enumeration (`AWS`, `AZURE`, `GCP`)
  and `parse_provider`, which accepts names in any letter case and raises
  `InvalidProviderError` for unknown names. `UnsupportedProviderError` is
  raised where a provider is known but not handled.
- `carbonifer.resources`: dataclasses `ResourceIdentification`,
  `ComputeResourceSpecs`, `ComputeResource`, `UnsupportedResource`,
  `DataImageSpecs`, `DataImageResource` and `EbsDataResource`, with
  `address`, `key` and `is_supported()` where they apply.
- `carbonifer.conversions`: `parse_to_int` (ints, floats and numeric strings,
  floats truncated) and `to_string_list`.
- `carbonifer.config`: `Config`, settings looked up by dotted,
  case-insensitive keys. Precedence, highest first: values given with `set`,
  environment variables (when `automatic_env` is on, the key in upper case),
  the YAML config file, then values given with `set_default`. `load` reads a
  given file; `read_in_config` searches the paths added with `add_config_path`
  for `config.yaml`, `config.yml` or `config.json` and raises
  `ConfigFileNotFoundError` if none is found. `init_config` builds a `Config`
  from a given file or from `~/.carbonifer`, `/etc/carbonifer/` and
  `./.carbonifer`, makes a relative `data.path` absolute, applies `log.level`
  to the `carbonifer` logger and checks the data directory with
  `check_data_dir`.
- `carbonifer.catalog`: `Catalog(data_dir)` reads its data files on first use:
  `gpu_watt.csv`, `aws_instances.json`, `gcp_instances.json`,
  `gcp_watt_cpu.csv` and `gcp_sql_tiers.json`. Methods `gpu_watt`,
  `aws_instance_type`, `gcp_machine_type`, `cpu_watt` and `gcp_sql_tier`
  return `GPUWatt`, `InstanceType`, `MachineType`, `CPUWatt` and `SQLTier`
  records; names not in a table give an empty record. GCP custom machine types
  (`custom-<vcpus>-<memory mb>`) and custom SQL tiers
  (`db-custom-<vcpus>-<memory mb>`) are read from the name.
- `carbonifer.generic`: `GenericResource`, `Storage` and `get_resource`, which
  builds a resource from a GCP machine type and raises
  `UnsupportedProviderError` for other providers.
- `carbonifer.terraform`: `Terraform` runs the `terraform` executable
  (`version`, `init`, `validate`, `plan`, `show_plan_file`, `console`).
  `get_terraform_exec` finds it on `PATH`, or in the directory set as
  `terraform.path`, and reuses it until `reset_terraform_exec`.
  `carbonifer_plan` accepts a JSON plan, a binary plan file or a Terraform
  directory; `terraform_plan` plans the configured `workdir`; `load_plan`
  reads a JSON plan. Failures raise `TerraformError`, and missing or invalid
  provider credentials raise `ProviderAuthError`.
- `carbonifer.expressions`: `get_value_of_expression` resolves a configuration
  expression from a plan (constants, variables, module outputs, and optionally
  a console callable such as `Terraform.console`); it raises `LookupError`
  when nothing resolves.

## Example

```python
from carbonifer.catalog import Catalog
from carbonifer.generic import get_resource
from carbonifer.providers import parse_provider

catalog = Catalog("path/to/data")
resource = get_resource("e2-standard-2", "europe-west4-a", parse_provider("gcp"), catalog)
print(resource.vcpus, resource.memory_mb, resource.is_supported())
```

Reading a plan:

```python
from carbonifer.config import Config
from carbonifer.terraform import carbonifer_plan

plan = carbonifer_plan("path/to/plan.json", Config())
print(plan["terraform_version"])
```

Planning a Terraform directory or reading a binary plan file needs the
`terraform` executable on `PATH` or in `terraform.path`.

## What this package does not do

- It does not compute power use or carbon emissions; it provides the resource
  descriptions and hardware data such an estimate is built from.
- It has no command-line tool.
- It does not download or install `terraform`; if the executable is not found,
  `TerraformError` is raised.
- It ships no data files; the `Catalog` needs a data directory holding them.