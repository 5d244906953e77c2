"""Resources found in an infrastructure plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from carbonifer.providers import Provider


@dataclass
class ResourceIdentification:
    """What identifies a resource within a plan."""

    name: str
    resource_type: str
    provider: Provider
    region: str = ""
    count: int = 1
    replication_factor: int = 1
    address: str = ""


@dataclass
class ComputeResourceSpecs:
    """Hardware specification of a compute resource."""

    gpu_types: list[str] = field(default_factory=list)
    hdd_storage: Decimal = Decimal(0)
    ssd_storage: Decimal = Decimal(0)
    memory_mb: int = 0
    vcpus: int = 0
    cpu_type: str = ""


@dataclass
class ComputeResource:
    """A compute resource whose footprint can be estimated."""

    identification: ResourceIdentification
    specs: ComputeResourceSpecs

    def is_supported(self) -> bool:
        return True

    @property
    def address(self) -> str:
        return self.identification.address


@dataclass
class UnsupportedResource:
    """A resource that the estimator does not handle."""

    identification: ResourceIdentification

    def is_supported(self) -> bool:
        return False

    @property
    def address(self) -> str:
        return self.identification.address


@dataclass
class DataImageSpecs:
    """Specification of a disk image."""

    disk_size_gb: float = 0.0
    device_name: str = ""
    volume_type: str = ""


@dataclass
class DataImageResource:
    """A data source describing disk images."""

    identification: ResourceIdentification
    data_image_specs: list[DataImageSpecs] = field(default_factory=list)

    @property
    def address(self) -> str:
        return self.identification.address

    @property
    def key(self) -> str:
        return self.address


@dataclass
class EbsDataResource:
    """A data source describing EBS volumes, keyed by its cloud identifier."""

    identification: ResourceIdentification
    data_image_specs: list[DataImageSpecs] = field(default_factory=list)
    aws_id: str = ""

    @property
    def address(self) -> str:
        return self.identification.address

    @property
    def key(self) -> str:
        return self.aws_id