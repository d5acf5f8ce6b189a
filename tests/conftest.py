"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from rebuild_monitor.data.demo import build_demo_fleet
from rebuild_monitor.data.models import (
    ArrayStatus,
    ArrayType,
    Disk,
    DiskArray,
    DiskLocation,
    DiskStatus,
    Location,
    ServerInfo,
    ServerType,
)


def _make_disk(disk_id, status=DiskStatus.HEALTHY, size_bytes=2 * 10**12, vendor="Samsung", bay=1):
    return Disk(
        id=disk_id,
        status=status,
        size_bytes=size_bytes,
        vendor=vendor,
        model="980 PRO",
        location=DiskLocation(bay=bay, slot=f"A{bay}"),
    )


def _make_array(
    array_type,
    statuses,
    array_id="arr-1",
    status=None,
    progress=0,
    speed="N/A",
    server_type=ServerType.NCP,
    datacenter="DC-East-01",
    vendor="Samsung",
    hours_per_percent=None,
):
    """Build an array with one disk per entry in ``statuses``."""
    disks = tuple(
        _make_disk(f"{array_id}-d{i}", s, vendor=vendor, bay=i + 1) for i, s in enumerate(statuses)
    )
    if status is None:
        status = ArrayStatus.REBUILDING if DiskStatus.REBUILDING in statuses else ArrayStatus.HEALTHY
    return DiskArray(
        id=array_id,
        name=f"Array {array_id}",
        type=array_type,
        status=status,
        location=Location(datacenter=datacenter, rack="R-01", chassis="C-01"),
        server=ServerInfo(server_type, "PowerEdge R750", "Dell"),
        disks=disks,
        rebuild_progress=progress,
        speed=speed,
        hours_per_percent=hours_per_percent,
    )


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory for tests."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_array():
    """Factory for arrays with one disk per given status."""
    return _make_array


@pytest.fixture
def make_disk():
    return _make_disk


@pytest.fixture
def demo_fleet():
    """The built-in four-array fleet, seeded for stable temperatures."""
    return build_demo_fleet(seed=7)


@pytest.fixture
def rebuilding_raid5():
    return _make_array(
        ArrayType.RAID5,
        [DiskStatus.HEALTHY, DiskStatus.REBUILDING, DiskStatus.HEALTHY, DiskStatus.HEALTHY],
        array_id="raid5-a",
        progress=40,
        hours_per_percent=0.1,
    )


@pytest.fixture
def sample_array_record():
    """An array record as a telemetry feed or inventory file would carry it."""
    return {
        "id": "raid5-007",
        "name": "RAID 5 Scratch",
        "type": "RAID 5",
        "status": "Rebuilding",
        "rebuildProgress": 12,
        "estimatedTimeRemaining": "3h 10m",
        "speed": "150 MB/s",
        "location": {"datacenter": "DC-North-03", "rack": "R-11", "chassis": "C-07"},
        "serverType": "seg",
        "serverModel": "ThinkSystem SR650",
        "serverVendor": "Lenovo",
        "disks": [
            {
                "id": "sdc",
                "status": "online",
                "size": "4TB",
                "vendor": "Seagate",
                "model": "Exos X18",
                "location": {"bay": 1, "slot": "E1"},
                "temperatureC": 41,
            },
            {
                "id": "sdd",
                "status": "rebuild",
                "size": "4TB",
                "vendor": "Seagate",
                "model": "Exos X18",
                "location": {"bay": 2, "slot": "E2"},
            },
            {
                "id": "sde",
                "status": "optimal",
                "size": "4TB",
                "vendor": "Toshiba",
                "model": "MG09ACA",
                "location": {"bay": 3, "slot": "E3"},
                "serialNumber": "TSB-0003",
            },
        ],
    }
