"""Provider-neutral description of a compute resource."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from carbonifer.catalog import Catalog, MachineType
from carbonifer.providers import Provider, UnsupportedProviderError
from carbonifer.resources import ResourceIdentification


@dataclass
class Storage:
    """Storage attached to a resource, in gigabytes."""

    hdd_storage: Decimal = Decimal(0)
    ssd_storage: Decimal = Decimal(0)


@dataclass
class GenericResource:
    """A compute resource described independently of any plan."""

    address: str = ""
    name: str = ""
    region: str = ""
    provider: Provider = Provider.AWS
    gpu_types: list[str] = field(default_factory=list)
    cpu_types: list[str] = field(default_factory=list)
    vcpus: int = 0
    memory_mb: int = 0
    storage: Storage = field(default_factory=Storage)
    replication_factor: int = 0

    def is_supported(self) -> bool:
        """Only GCP resources can be estimated at the moment."""
        return self.provider is Provider.GCP

    @property
    def identification(self) -> ResourceIdentification:
        return ResourceIdentification(
            name=self.name,
            resource_type="compute",
            provider=self.provider,
            region=self.region,
            count=1,
            replication_factor=1,
            address=self.address,
        )


def get_resource(
    instance_type: str, zone: str, provider: Provider, catalog: Catalog
) -> GenericResource:
    """Describe the instance type ``instance_type`` of ``provider`` in ``zone``."""
    if provider is Provider.GCP:
        return _from_gcp_machine_type(zone, catalog.gcp_machine_type(instance_type, zone))
    raise UnsupportedProviderError(provider)


def _from_gcp_machine_type(region: str, machine_type: MachineType) -> GenericResource:
    return GenericResource(
        name=machine_type.name,
        region=region,
        provider=Provider.GCP,
        gpu_types=list(machine_type.gpu_types),
        cpu_types=list(machine_type.cpu_types),
        vcpus=machine_type.vcpus,
        memory_mb=machine_type.memory_mb,
        storage=Storage(),
        replication_factor=0,
    )