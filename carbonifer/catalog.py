"""Reference data on cloud machine types, CPUs and GPUs."""

from __future__ import annotations

import csv
import io
import json
import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

GPU_WATT_FILE = "gpu_watt.csv"
AWS_INSTANCES_FILE = "aws_instances.json"
GCP_INSTANCES_FILE = "gcp_instances.json"
GCP_CPU_WATT_FILE = "gcp_watt_cpu.csv"
GCP_SQL_TIERS_FILE = "gcp_sql_tiers.json"

_CUSTOM_MACHINE = re.compile(r"custom-(?P<vcpus>\d+)-(?P<mem>\d+)(-ext)?")
_CUSTOM_SQL_TIER = re.compile(r"db-custom-(?P<vcpus>\d+)-(?P<mem>\d+)")


@dataclass
class GPUWatt:
    """Minimum and maximum power draw of a GPU."""

    name: str = ""
    min_watts: Decimal = Decimal(0)
    max_watts: Decimal = Decimal(0)


@dataclass
class InstanceStorage:
    """Local storage attached to an AWS instance type."""

    size_per_disk_gb: int = 0
    count: int = 0
    type: str = ""


@dataclass
class InstanceType:
    """An AWS instance type."""

    instance_type: str = ""
    vcpu: int = 0
    memory_mb: int = 0
    instance_storage: InstanceStorage = field(default_factory=InstanceStorage)


@dataclass
class MachineType:
    """A GCP machine type."""

    name: str = ""
    vcpus: int = 0
    gpu_types: list[str] = field(default_factory=list)
    memory_mb: int = 0
    cpu_types: list[str] = field(default_factory=list)


@dataclass
class SQLTier:
    """A GCP Cloud SQL tier."""

    name: str = ""
    vcpus: int = 0
    memory_mb: int = 0
    disk_quota_gb: int = 0


@dataclass
class CPUWatt:
    """Power draw and embodied carbon of a CPU architecture."""

    architecture: str = ""
    min_watts: Decimal = Decimal(0)
    max_watts: Decimal = Decimal(0)
    grid_carbon_intensity: Decimal = Decimal(0)


def _field(record: dict, key: str, default: Any) -> Any:
    """Look a JSON key up exactly, then case-insensitively; null counts as absent."""
    if key in record:
        value = record[key]
    else:
        wanted = key.lower()
        value = next((v for k, v in record.items() if k.lower() == wanted), None)
    return default if value is None else value


def _decimal(text: str) -> Decimal:
    return Decimal(repr(float(text)))


def _csv_rows(text: str, columns: tuple[str, ...]) -> list[dict[str, str]]:
    reader = csv.DictReader(io.StringIO(text))
    missing = [column for column in columns if column not in (reader.fieldnames or [])]
    if missing:
        raise ValueError(f"missing CSV columns: {missing}")
    return list(reader)


def _json_object(text: str, name: str) -> dict:
    data = json.loads(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{name} does not hold a JSON object")
    return data


class Catalog:
    """Lookups into the data files of a data directory, each read once on demand.

    Names that are not in a table give an empty record, as with the tables'
    zero values.
    """

    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        self.data_dir = Path(data_dir)
        self._gpu_watts: dict[str, GPUWatt] | None = None
        self._aws_instances: dict[str, InstanceType] | None = None
        self._gcp_machines: dict[str, MachineType] | None = None
        self._cpu_watts: dict[str, CPUWatt] | None = None
        self._sql_tiers: dict[str, SQLTier] | None = None

    def read_data_file(self, name: str) -> str:
        """Return the text of the data file ``name``."""
        return (self.data_dir / name).read_text(encoding="utf-8")

    def gpu_watt(self, gpu_name: str) -> GPUWatt:
        """Return the power draw of a GPU, matching its name case-insensitively."""
        logger.debug("  Getting info for GPU type: %s", gpu_name)
        if self._gpu_watts is None:
            rows = _csv_rows(self.read_data_file(GPU_WATT_FILE), ("name", "min watts", "max watts"))
            self._gpu_watts = {
                row["name"].lower(): GPUWatt(
                    name=row["name"],
                    min_watts=_decimal(row["min watts"]),
                    max_watts=_decimal(row["max watts"]),
                )
                for row in rows
            }
        return self._gpu_watts.get(gpu_name.lower(), GPUWatt())

    def aws_instance_type(self, name: str) -> InstanceType:
        """Return the AWS instance type called ``name``."""
        logger.debug("  Getting info for AWS machine type: %s", name)
        if self._aws_instances is None:
            data = _json_object(self.read_data_file(AWS_INSTANCES_FILE), AWS_INSTANCES_FILE)
            self._aws_instances = {key: self._aws_instance(value) for key, value in data.items()}
        return self._aws_instances.get(name, InstanceType())

    @staticmethod
    def _aws_instance(record: dict) -> InstanceType:
        storage = _field(record, "InstanceStorage", {})
        return InstanceType(
            instance_type=_field(record, "InstanceType", ""),
            vcpu=int(_field(record, "VCPU", 0)),
            memory_mb=int(_field(record, "MemoryMb", 0)),
            instance_storage=InstanceStorage(
                size_per_disk_gb=int(_field(storage, "SizePerDiskGB", 0)),
                count=int(_field(storage, "Count", 0)),
                type=_field(storage, "Type", ""),
            ),
        )

    def gcp_machine_type(self, machine_type: str, zone: str) -> MachineType:
        """Return the GCP machine type called ``machine_type``.

        Custom types, ``custom-<vcpus>-<memory mb>``, are read from the name.
        """
        logger.debug("  Getting info for GCP machine type: %s", machine_type)
        custom = _CUSTOM_MACHINE.search(machine_type)
        if custom:
            logger.debug("  custom machine: %s", machine_type)
            return MachineType(
                name=machine_type,
                vcpus=int(custom.group("vcpus")),
                memory_mb=int(custom.group("mem")),
            )
        if self._gcp_machines is None:
            data = _json_object(self.read_data_file(GCP_INSTANCES_FILE), GCP_INSTANCES_FILE)
            self._gcp_machines = {
                key: MachineType(
                    name=_field(value, "name", ""),
                    vcpus=int(_field(value, "vcpus", 0)),
                    gpu_types=list(_field(value, "gpus", [])),
                    memory_mb=int(_field(value, "memoryMb", 0)),
                    cpu_types=list(_field(value, "cpuTypes", [])),
                )
                for key, value in data.items()
            }
        return self._gcp_machines.get(machine_type, MachineType())

    def cpu_watt(self, cpu: str) -> CPUWatt:
        """Return the figures of a GCP CPU architecture, matched case-insensitively."""
        logger.debug("  Getting info for GCP CPU type: %s", cpu)
        if self._cpu_watts is None:
            rows = _csv_rows(
                self.read_data_file(GCP_CPU_WATT_FILE),
                ("Architecture", "Min Watts", "Max Watts", "GB/Chip"),
            )
            self._cpu_watts = {
                row["Architecture"].lower(): CPUWatt(
                    architecture=row["Architecture"],
                    min_watts=_decimal(row["Min Watts"]),
                    max_watts=_decimal(row["Max Watts"]),
                    grid_carbon_intensity=_decimal(row["GB/Chip"]),
                )
                for row in rows
            }
        return self._cpu_watts.get(cpu.lower(), CPUWatt())

    def gcp_sql_tier(self, tier_name: str) -> SQLTier:
        """Return the Cloud SQL tier called ``tier_name``.

        Custom tiers, ``db-custom-<vcpus>-<memory mb>``, are read from the name.
        """
        logger.debug("  Getting info for GCP SQL tier: %s", tier_name)
        custom = _CUSTOM_SQL_TIER.search(tier_name)
        if custom:
            logger.debug("  custom SQL Tier: %s", tier_name)
            return SQLTier(
                name=tier_name,
                vcpus=int(custom.group("vcpus")),
                memory_mb=int(custom.group("mem")),
            )
        if self._sql_tiers is None:
            data = _json_object(self.read_data_file(GCP_SQL_TIERS_FILE), GCP_SQL_TIERS_FILE)
            self._sql_tiers = {
                key: SQLTier(
                    name=_field(value, "name", ""),
                    vcpus=int(_field(value, "vcpus", 0)),
                    memory_mb=int(_field(value, "memoryMb", 0)),
                    disk_quota_gb=int(_field(value, "DiskQuotaGB", 0)),
                )
                for key, value in data.items()
            }
        return self._sql_tiers.get(tier_name, SQLTier())