# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
import textwrap
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar, Union

import click
import tomli

from proctab.monitoring.coerce import ensure_dict
from typeguard import typechecked
from typing_extensions import ParamSpec

logger = logging.getLogger(__name__)

FC = TypeVar("FC", bound=Union[Callable[..., Any], click.Command])

DEFAULT_CONFIG_PATH = "/etc/proctab/config.toml"

log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default="INFO",
    show_default=True,
    help="Logging verbosity level.",
)

log_folder_option = click.option(
    "--log-folder",
    type=click.Path(file_okay=False),
    default="proctab_logs",
    help="The directory where logs will be stored.",
)

stdout_option = click.option(
    "--stdout",
    is_flag=True,
    default=False,
    help="Whether to display logs to stdout.",
)

once_option = click.option(
    "--once",
    is_flag=True,
    default=False,
    help="Print the current tables once and exit instead of watching them.",
)

format_option = click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output one canonical table line or one JSON object per record.",
)

watch_opts_option = click.option(
    "-o",
    "--watch-opt",
    "watch_opts",
    multiple=True,
    help=(
        "Watcher customization using OmegaConf dot-list syntax, e.g. "
        "'interval=0.5' or 'mounts_path=/etc/fstab'. See [1]"
    ),
)


def table_path_option(default: str) -> Callable[[FC], FC]:
    return click.option(
        "--path",
        type=click.Path(dir_okay=False, path_type=Path),
        default=default,
        show_default=True,
        help="The table file to read.",
    )


def get_docs_for_references(refs: Iterable[str]) -> str:
    """Get click formatted documentation for an iterable of references. The output
    is an ordered list of each reference numbered started from 1.

    Examples:
    >>> get_docs_for_references(["r1", "r2"])
    '\\x08\\nReferences:\\n  [1]: r1\\n  [2]: r2'
    """
    return "\b\nReferences:\n" + textwrap.indent(
        "\n".join(f"[{i}]: {ref}" for i, ref in enumerate(refs, start=1)),
        prefix=" " * 2,
        predicate=lambda _: True,
    )


_Tv = TypeVar("_Tv")
_ClickCallback = Callable[[click.Context, click.Parameter, _Tv], None]


def _set_default_map(name: str) -> _ClickCallback[Path]:
    @typechecked
    def cb(ctx: click.Context, param: click.Parameter, path: Path) -> None:
        if not path.exists() or path == Path("/dev/null"):
            return

        logger.info(f"Reading config from {path}...")
        with path.open("rb") as f:
            try:
                conf = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise click.BadParameter(
                    f"{path} does not contain valid TOML.",
                    ctx=ctx,
                    param=param,
                ) from e
        try:
            default_map = ensure_dict(conf[name])
        except KeyError as e:
            raise click.BadParameter(
                f"'{name}' is not a top-level table name in {path}. Valid names: {list(conf.keys())}",
                ctx=ctx,
                param=param,
            ) from e
        logger.info(f"Loaded table '{name}'.")

        ctx.default_map = {**(ctx.default_map or {}), **default_map}

    return cb


_P = ParamSpec("_P")
_R = TypeVar("_R")


def toml_config_option(
    name: str,
    *,
    default_config_path: Union[str, Path] = DEFAULT_CONFIG_PATH,
) -> Callable[[Callable[_P, _R]], Callable[_P, _R]]:
    """Shared decorator for loading default option values from a TOML config file.
    Adds a `--config` option to the given command which takes a path. A non-existent
    path or `/dev/null` is treated as an empty dictionary.

    Precedence (lowest to highest):
    * `default` argument to `click.option`
    * the value in the config file
    * value passed at the command line

    If used on a command group, subtables configure subcommands, e.g.
    `[proctab.watch]` holds the defaults of `proctab watch`.
    """

    def decorator(f: Callable[_P, _R]) -> Callable[_P, _R]:
        return click.option(
            "--config",
            type=click.Path(dir_okay=False, path_type=Path),
            callback=_set_default_map(name),
            default=default_config_path,
            show_default=True,
            is_eager=True,
            expose_value=False,
            help=(
                f"Load option values from table '{name}' in the given TOML config file. "
                "A non-existent path or '/dev/null' are ignored and treated as empty tables."
            ),
        )(f)

    return decorator
