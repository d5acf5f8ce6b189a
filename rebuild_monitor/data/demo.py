"""Built-in demo fleet used when no inventory or telemetry feed is configured."""

from __future__ import annotations

import datetime as dt
import random
from typing import List, Optional

from .models import (
    ArrayStatus,
    ArrayType,
    Disk,
    DiskArray,
    DiskLocation,
    DiskStatus,
    FleetSnapshot,
    Location,
    ServerInfo,
    ServerType,
)
from .normalization import parse_size_to_bytes


def _disk(disk_id, status, size, vendor, model, bay, slot, classification, temperature=None, serial=None) -> Disk:
    return Disk(
        id=disk_id,
        status=status,
        size_bytes=parse_size_to_bytes(size),
        vendor=vendor,
        model=model,
        location=DiskLocation(bay=bay, slot=slot),
        classification=classification,
        temperature_c=temperature,
        serial_number=serial,
    )


def build_demo_arrays(seed: Optional[int] = None) -> List[DiskArray]:
    """Build the four reference arrays.

    Args:
        seed: Seed for the generated disk temperatures

    Returns:
        RAID 1 and RAID 10 arrays mid-rebuild, a 48-disk RAID 6 pool with two
        rebuilds and one failure, and a 24-disk JBOD with two failed disks.
    """
    rng = random.Random(seed)
    healthy, rebuilding, failed = DiskStatus.HEALTHY, DiskStatus.REBUILDING, DiskStatus.FAILED

    raid1 = DiskArray(
        id="raid1-001",
        name="RAID 1 Array",
        type=ArrayType.RAID1,
        status=ArrayStatus.REBUILDING,
        rebuild_progress=67,
        estimated_time_remaining="2h 15m",
        speed="85 MB/s",
        location=Location(datacenter="DC-East-01", rack="R-15", chassis="C-03"),
        server=ServerInfo(ServerType.NCP, "Dell PowerEdge R750", "Dell"),
        disks=(
            _disk("sda", healthy, "2TB", "Samsung", "980 PRO", 1, "A1", "Primary Storage", 42),
            _disk("sdb", rebuilding, "2TB", "Samsung", "980 PRO", 2, "A2", "Primary Storage", 45),
        ),
    )

    raid6_vendors = [
        ("Western Digital", "WD Black SN850X"),
        ("Seagate", "FireCuda 530"),
        ("Toshiba", "XG8"),
    ]
    raid6_disks = []
    for i in range(48):
        status = rebuilding if i in (23, 47) else failed if i == 12 else healthy
        vendor, model = raid6_vendors[i % 3]
        raid6_disks.append(
            _disk(
                f"nvme{i}n1", status, "8TB", vendor, model, i + 1, f"B{i // 12 + 1}",
                "Enterprise Storage", 35 + rng.randrange(15), f"SN{i:03d}ABC123",
            )
        )
    raid6 = DiskArray(
        id="raid6-large",
        name="Large RAID 6 Storage Pool",
        type=ArrayType.RAID6,
        status=ArrayStatus.REBUILDING,
        rebuild_progress=100,
        estimated_time_remaining="0m",
        speed="0 MB/s",
        location=Location(datacenter="DC-West-02", rack="R-08", chassis="C-01"),
        server=ServerInfo(ServerType.SEG, "HPE ProLiant DL380", "HPE"),
        disks=tuple(raid6_disks),
    )

    raid10 = DiskArray(
        id="raid10-003",
        name="RAID 10 Performance",
        type=ArrayType.RAID10,
        status=ArrayStatus.REBUILDING,
        rebuild_progress=23,
        estimated_time_remaining="5h 42m",
        speed="120 MB/s",
        location=Location(datacenter="DC-Central-01", rack="R-22", chassis="C-05"),
        server=ServerInfo(ServerType.NCP, "Supermicro SYS-2029P", "Supermicro"),
        disks=(
            _disk("sdg", healthy, "1TB", "Intel", "Optane P5800X", 1, "C1", "High Performance", 38),
            _disk("sdh", rebuilding, "1TB", "Intel", "Optane P5800X", 2, "C2", "High Performance", 40),
            _disk("sdi", rebuilding, "1TB", "Micron", "7450 PRO", 3, "C3", "High Performance", 48),
            _disk("sdj", healthy, "1TB", "Micron", "7450 PRO", 4, "C4", "High Performance", 39),
        ),
    )

    jbod_vendors = [
        ("HGST", "Ultrastar DC HC550"),
        ("Western Digital", "WD Gold"),
        ("Seagate", "Exos X18"),
        ("Toshiba", "MG09ACA"),
    ]
    jbod_disks = []
    for i in range(24):
        vendor, model = jbod_vendors[i % 4]
        jbod_disks.append(
            _disk(
                f"disk{i + 1}", failed if i in (5, 12) else healthy, "4TB", vendor, model,
                i + 1, f"D{i // 6 + 1}", "Archive Storage", 30 + rng.randrange(20), f"JBOD{i:03d}XYZ",
            )
        )
    jbod = DiskArray(
        id="jbod-001",
        name="JBOD Storage Pool",
        type=ArrayType.JBOD,
        status=ArrayStatus.DEGRADED,
        rebuild_progress=0,
        estimated_time_remaining="N/A",
        speed="N/A",
        location=Location(datacenter="DC-South-01", rack="R-05", chassis="C-02"),
        server=ServerInfo(ServerType.SEG, "Lenovo ThinkSystem SR650", "Lenovo"),
        disks=tuple(jbod_disks),
    )

    return [raid1, raid6, raid10, jbod]


def build_demo_fleet(seed: Optional[int] = None) -> FleetSnapshot:
    """Build the demo fleet as an initial snapshot (version 0)."""
    now_iso = dt.datetime.utcnow().replace(microsecond=0).isoformat() + "Z"
    return FleetSnapshot(arrays=tuple(build_demo_arrays(seed)), version=0, generated_at=now_iso)
