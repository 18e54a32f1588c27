"""Parallel score generation helpers.

This module provides a small convenience function for producing many scores
concurrently. It offloads each generation call to a worker process via
:class:`concurrent.futures.ProcessPoolExecutor` so CPU bound work scales
with the number of available cores.

Example
-------
>>> from dataclasses import replace
>>> from melody_walk.config import preset
>>> configs = [replace(preset("1"), seed=1), replace(preset("1.1"), seed=2)]
>>> texts = generate_batch(configs, workers=2)

Design Notes
------------
Every run owns its random generator, seeded from its own configuration.
Seeds are resolved in the parent process before dispatch, so the output of
a batch does not depend on the number of workers or on scheduling order.
"""

from __future__ import annotations

import os
from concurrent.futures import ProcessPoolExecutor
from typing import Iterable, List, Optional

from .config import Config, resolve_seed, validate_config
from .score import write_music

__all__ = ["generate_batch"]


def _generate_single(config: Config) -> str:
    """Wrapper used by worker processes to render one score."""

    return write_music(config)


def generate_batch(
    configs: Iterable[Config], *, workers: Optional[int] = None
) -> List[str]:
    """Render the LilyPond source for each of ``configs``.

    Parameters
    ----------
    configs:
        Configurations to render. Entries without a seed receive a fresh one.
    workers:
        Optional number of worker processes. When ``None`` the CPU count is
        used. ``1`` disables multiprocessing and runs serially.

    Returns
    -------
    List[str]
        LilyPond documents in the order of ``configs``.

    Raises
    ------
    ValueError
        If ``workers`` is zero or negative, or a configuration is invalid.
    """

    if workers is not None and workers <= 0:
        raise ValueError("workers must be positive")
    cfg_list = []
    for config in configs:
        validate_config(config)
        cfg_list.append(resolve_seed(config))
    if workers is None:
        workers = os.cpu_count() or 1
    if workers <= 1 or len(cfg_list) <= 1:
        return [_generate_single(cfg) for cfg in cfg_list]

    with ProcessPoolExecutor(max_workers=workers) as pool:
        futs = [pool.submit(_generate_single, cfg) for cfg in cfg_list]
        return [f.result() for f in futs]
