# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""A single entrypoint into the proctab commands.

This file is intentionally lightweight and should not include any complex logic.
"""

import click

from proctab._version import __version__
from proctab.monitoring.cli import fstab, mounts, swaps, watch
from proctab.monitoring.click import toml_config_option


@click.group(epilog=f"proctab Version: {__version__}")
@toml_config_option("proctab")
@click.version_option(__version__)
def main() -> None:
    """Structured views over the kernel's mount and swap tables."""


main.add_command(mounts.main, name="mounts")
main.add_command(swaps.main, name="swaps")
main.add_command(fstab.main, name="fstab")
main.add_command(watch.main, name="watch")

if __name__ == "__main__":
    main()
