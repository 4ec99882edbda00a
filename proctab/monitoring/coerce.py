# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from typing import Any, Dict

from typeguard import typechecked


@typechecked
def ensure_dict(x: Any) -> Dict[str, Any]:
    """Narrow a parsed TOML table; raises a `TypeCheckError` for anything else."""
    return x
