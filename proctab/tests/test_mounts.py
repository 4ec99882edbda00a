# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import io
from pathlib import Path

import pytest

from proctab.errors import InvalidNumberError, MissingFieldError
from proctab.mounts import (
    has_prefix,
    is_mount_line,
    MountIter,
    MountList,
    source_mounted_at,
)
from proctab.schemas.mount import MountRecord
from proctab.tests.fakes import FailingReader, FakeAliasResolver

SAMPLE = """\
sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0
proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0
udev /dev devtmpfs rw,nosuid,relatime,size=16420480k,nr_inodes=4105120,mode=755 0 0
tmpfs /run tmpfs rw,nosuid,noexec,relatime,size=3291052k,mode=755 0 0
/dev/sda2 / ext4 rw,noatime,errors=remount-ro,data=ordered 0 0
fusectl /sys/fs/fuse/connections fusectl rw,relatime 0 0
/dev/sda1 /boot/efi vfat rw,relatime,fmask=0077,dmask=0077,codepage=437,iocharset=iso8859-1,shortname=mixed,errors=remount-ro 0 0
/dev/sda6 /mnt/data ext4 rw,noatime,data=ordered 0 0
"""  # noqa: E501


@pytest.fixture
def sample() -> MountList:
    return MountList.parse_from(SAMPLE.splitlines())


@pytest.mark.parametrize(
    "line, expected",
    [
        (b"tmpfs /tmp tmpfs rw 0 0\n", True),
        (b"   tmpfs /tmp tmpfs rw\n", True),
        (b"# tmpfs /tmp tmpfs rw\n", False),
        (b"  # indented comment\n", False),
        (b"\n", False),
        (b" \t \n", False),
    ],
)
def test_is_mount_line(line: bytes, expected: bool) -> None:
    assert is_mount_line(line) == expected


@pytest.mark.parametrize(
    "path, prefix, expected",
    [
        ("/foobar", "/foo", True),
        ("/foo/bar", "/foo/", True),
        ("/foo", "/foo", True),
        ("/fo", "/foo", False),
        ("/mnt/data", Path("/mnt"), True),
        ("/mnt/data", "", True),
    ],
)
def test_has_prefix(path: str, prefix: str, expected: bool) -> None:
    assert has_prefix(path, prefix) == expected


class TestMountList:
    @staticmethod
    def test_parse_sample(sample: MountList) -> None:
        assert len(sample) == 8
        assert sample[0] == MountRecord(
            source="sysfs",
            dest="/sys",
            fstype="sysfs",
            options=("rw", "nosuid", "nodev", "noexec", "relatime"),
        )
        assert [m.dest for m in sample[-2:]] == ["/boot/efi", "/mnt/data"]
        assert sample[6].options[-1] == "errors=remount-ro"

    @staticmethod
    def test_source_mounted_at(sample: MountList) -> None:
        assert sample.source_mounted_at("/dev/sda1", "/boot/efi")
        assert sample.source_mounted_at("/dev/sda2", Path("/"))
        assert not sample.source_mounted_at("/dev/sda1", "/")
        assert not sample.source_mounted_at("/dev/sdz", "/boot/efi")

    @staticmethod
    def test_get_mount_by(sample: MountList) -> None:
        by_source = sample.get_mount_by_source("/dev/sda1")
        assert by_source is not None
        assert by_source.dest == "/boot/efi"

        by_dest = sample.get_mount_by_dest("/mnt/data")
        assert by_dest is not None
        assert by_dest.source == "/dev/sda6"

        assert sample.get_mount_by_dest("/nope") is None
        assert sample.get_mount_by_source("/dev/sdz") is None

    @staticmethod
    def test_first_match_wins() -> None:
        mounts = MountList.parse_from(
            [
                "/dev/sdb1 /mnt/a ext4 rw 0 0",
                "/dev/sdb1 /mnt/b ext4 ro 0 0",
                "/dev/sdc1 /mnt/a xfs rw 0 0",
            ]
        )
        assert mounts.source_mounted_at("/dev/sdb1", "/mnt/a")
        assert not mounts.source_mounted_at("/dev/sdb1", "/mnt/b")
        by_dest = mounts.get_mount_by_dest("/mnt/a")
        assert by_dest is not None
        assert by_dest.source == "/dev/sdb1"

    @staticmethod
    def test_destination_starts_with(sample: MountList) -> None:
        assert list(sample.destination_starts_with("/")) == list(sample)
        assert [m.dest for m in sample.destination_starts_with("/sys")] == [
            "/sys",
            "/sys/fs/fuse/connections",
        ]
        assert list(sample.destination_starts_with("/home")) == []

    @staticmethod
    def test_starts_with_is_byte_wise() -> None:
        mounts = MountList.parse_from(
            ["a /foo tmpfs rw", "b /foobar tmpfs rw", "c /bar tmpfs rw"]
        )
        assert [m.source for m in mounts.destination_starts_with("/foo")] == [
            "a",
            "b",
        ]

    @staticmethod
    def test_source_starts_with(sample: MountList) -> None:
        assert [m.dest for m in sample.source_starts_with("/dev/")] == [
            "/",
            "/boot/efi",
            "/mnt/data",
        ]

    @staticmethod
    def test_parse_from_annotates_lineno() -> None:
        with pytest.raises(MissingFieldError) as exc_info:
            MountList.parse_from(["tmpfs /tmp tmpfs rw", "# a comment"])
        assert exc_info.value.lineno == 2
        assert str(exc_info.value) == "line 2: missing type"

    @staticmethod
    def test_from_file(data_dir: Path) -> None:
        mounts = MountList.from_file(data_dir / "sample-proc-mounts.txt")
        assert len(mounts) == 9
        assert mounts[-1].dest == "/tmp/x b"
        assert mounts.source_mounted_at("/dev/sda6", "/mnt/data")

    @staticmethod
    def test_from_missing_file(tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            MountList.from_file(tmp_path / "mounts")

    @staticmethod
    def test_from_reader_resolves_aliases(fake_resolver: FakeAliasResolver) -> None:
        reader = io.StringIO("/dev/disk/by-label/DATA /data ext4 rw 0 2\n")
        mounts = MountList.from_reader(reader, fake_resolver)
        assert mounts.source_mounted_at("/dev/sdb1", "/data")

    @staticmethod
    def test_is_immutable_value(sample: MountList) -> None:
        assert sample == MountList.parse_from(SAMPLE.splitlines())
        assert hash(sample) == hash(MountList.parse_from(SAMPLE.splitlines()))
        with pytest.raises(AttributeError):
            sample.mounts = ()  # type: ignore[misc]


class TestMountIter:
    @staticmethod
    def test_skips_comments_and_blank_lines() -> None:
        reader = io.BytesIO(
            b"# header\n\ntmpfs /tmp tmpfs rw 0 0\n   \n  # note\nproc /proc proc rw\n"
        )
        it = MountIter(reader)
        assert [m.dest for m in it] == ["/tmp", "/proc"]
        assert it.lineno == 6

    @staticmethod
    def test_continues_after_bad_line() -> None:
        reader = io.BytesIO(
            b"tmpfs /tmp tmpfs rw 0 0\n"
            b"bad\n"
            b"tmpfs /run tmpfs rw x 0\n"
            b"proc /proc proc rw 0 0\n"
        )
        it = MountIter(reader)
        assert next(it).dest == "/tmp"
        with pytest.raises(MissingFieldError) as missing:
            next(it)
        assert missing.value.lineno == 2
        with pytest.raises(InvalidNumberError) as invalid:
            next(it)
        assert invalid.value.lineno == 3
        assert invalid.value.field == "dump"
        assert next(it).dest == "/proc"
        assert list(it) == []

    @staticmethod
    def test_read_error_ends_iteration() -> None:
        reader = FailingReader([b"tmpfs /tmp tmpfs rw 0 0\n"])
        it = MountIter(reader)
        assert next(it).dest == "/tmp"
        with pytest.raises(OSError):
            next(it)
        assert list(it) == []
        assert reader.reads_after_failure == 0

    @staticmethod
    def test_from_file_closes(data_dir: Path) -> None:
        with MountIter.from_file(data_dir / "sample-proc-mounts.txt") as it:
            first = next(it)
        assert first.dest == "/sys"
        assert list(it) == []

    @staticmethod
    def test_leading_whitespace() -> None:
        it = MountIter(io.StringIO("\t  tmpfs /tmp tmpfs rw 0 0\n"))
        assert [m.source for m in it] == ["tmpfs"]


def test_streaming_source_mounted_at(data_dir: Path) -> None:
    path = data_dir / "sample-proc-mounts.txt"
    assert source_mounted_at("/dev/sda1", "/boot/efi", path)
    assert source_mounted_at("tmpfs", "/run", path)
    assert not source_mounted_at("/dev/sda1", "/boot", path)
    assert not source_mounted_at("/dev/sdz", "/", path)


def test_streaming_stops_at_first_match(tmp_path: Path) -> None:
    path = tmp_path / "mounts"
    path.write_text("/dev/sda1 /boot ext4 rw 0 0\nbroken\n")
    assert source_mounted_at("/dev/sda1", "/boot", path)
    with pytest.raises(MissingFieldError):
        source_mounted_at("/dev/sdb1", "/data", path)
