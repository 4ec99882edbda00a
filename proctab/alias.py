# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Resolution of stable device aliases such as `/dev/disk/by-uuid/<uuid>`."""
import logging
import os
from pathlib import Path
from typing import Protocol, Tuple, Union

from proctab.errors import AliasNotFoundError, AliasReadError

logger = logging.getLogger(__name__)

DISK_DIR = "/dev/disk"
ALIAS_PREFIX = "/dev/disk/by-"
ALIAS_KINDS = frozenset(["id", "label", "partlabel", "partuuid", "path", "uuid"])


def is_device_alias(path: str) -> bool:
    return path.startswith(ALIAS_PREFIX)


class DeviceAliasResolver(Protocol):
    """Maps a stable device alias to the device node it currently points to."""

    def resolve(self, alias: str) -> str:
        """Return the device path for `alias`.

        Raises:
            AliasNotFoundError: No device is known by this alias.
            AliasReadError: The alias is malformed or could not be read.
        """


def split_alias(alias: str) -> Tuple[str, str]:
    """Split an alias into its identifier kind and the identifier itself.

    >>> split_alias("/dev/disk/by-uuid/1234-ABCD")
    ('uuid', '1234-ABCD')
    """
    if not is_device_alias(alias):
        raise AliasReadError(alias, "not a /dev/disk/by-* alias")
    kind, sep, identifier = alias[len(ALIAS_PREFIX) :].partition("/")  # noqa: E203
    if kind not in ALIAS_KINDS:
        raise AliasReadError(alias, f"unknown alias kind 'by-{kind}'")
    if not sep or not identifier or "/" in identifier:
        raise AliasReadError(alias, "missing identifier")
    return kind, identifier


class DiskByAliasResolver:
    """Resolves aliases through the udev-maintained symlinks under `disk_dir`."""

    def __init__(self, disk_dir: Union[str, "os.PathLike[str]"] = DISK_DIR) -> None:
        self.disk_dir = Path(disk_dir)

    def resolve(self, alias: str) -> str:
        kind, identifier = split_alias(alias)
        link = self.disk_dir / f"by-{kind}" / identifier
        if not os.path.lexists(link):
            raise AliasNotFoundError(alias)
        try:
            device = os.path.realpath(link, strict=True)
        except FileNotFoundError as e:
            raise AliasNotFoundError(alias) from e
        except OSError as e:
            raise AliasReadError(alias, str(e)) from e
        logger.debug("resolved %s to %s", alias, device)
        return device
