"""Fan a unit of work out over the applications of a bundle.

Two policies exist:

- ``Serial()`` runs one application at a time, in declaration order
- ``Parallel(n)`` runs on a pool of ``n`` threads (CPU count by default);
  outcomes are still reported in declaration order

Execution and merging are separate steps. ``run_all`` never aborts a unit
that has started; once a unit fails it only stops handing out new ones.
``collect`` then turns the outcomes into a name-keyed mapping or the first
error, and the caller applies that mapping to its own bundle copy.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from jb.core.result import Err, Ok, Result
from jb.services.errors import ConfigurationConflict

__all__ = [
    "ExecutionPolicy",
    "Outcome",
    "Parallel",
    "Serial",
    "check_policy",
    "policy_from_flags",
    "run_all",
]


@dataclass(frozen=True, slots=True)
class Serial:
    def __str__(self) -> str:
        return "serial"


@dataclass(frozen=True, slots=True)
class Parallel:
    workers: int | None = None

    @property
    def max_workers(self) -> int:
        return self.workers or os.cpu_count() or 1

    def __str__(self) -> str:
        return f"parallel ({self.max_workers} workers)"


type ExecutionPolicy = Serial | Parallel

type Outcome[T, E] = tuple[str, Result[T, E]]


def policy_from_flags(serial: bool, workers: int | None = None) -> ExecutionPolicy:
    """``--serial`` (or a single worker) means Serial, otherwise Parallel."""
    if serial or workers == 1:
        return Serial()
    return Parallel(workers)


def check_policy(policy: ExecutionPolicy, *, prune: bool) -> Result[None, ConfigurationConflict]:
    """Reject pruning under a parallel policy.

    Pruning the build cache while another worker is building can evict
    layers that worker still needs.
    """
    if prune and isinstance(policy, Parallel):
        return Err(
            ConfigurationConflict(
                message="To use --prune, you must set the --serial flag as well.",
                hint="Pruning between charms is only safe when one charm builds at a time",
            )
        )
    return Ok(None)


def run_all[A, T, E](
    items: Iterable[tuple[str, A]],
    unit: Callable[[str, A], Result[T, E]],
    policy: ExecutionPolicy,
    *,
    after_each: Callable[[], Result[None, E]] | None = None,
) -> Result[list[Outcome[T, E]], ConfigurationConflict]:
    """Run ``unit`` for every ``(name, item)`` under ``policy``.

    Args:
        items: Named inputs; units receive them read-only.
        unit: Work for one item. Must not touch shared state.
        policy: Serial or Parallel.
        after_each: Side effect run after every unit (cache pruning).
            Only allowed with a Serial policy.

    Returns:
        Err(ConfigurationConflict) before anything runs if the policy and
        ``after_each`` conflict; otherwise Ok(outcomes). After the first
        failed unit no further units are started, so the outcomes may cover
        fewer items than were given.
    """
    checked = check_policy(policy, prune=after_each is not None)
    if isinstance(checked, Err):
        return checked

    match policy:
        case Serial():
            return Ok(_run_serial(items, unit, after_each))
        case Parallel():
            return Ok(_run_parallel(items, unit, policy.max_workers))


def _run_serial[A, T, E](
    items: Iterable[tuple[str, A]],
    unit: Callable[[str, A], Result[T, E]],
    after_each: Callable[[], Result[None, E]] | None,
) -> list[Outcome[T, E]]:
    outcomes: list[Outcome[T, E]] = []
    for name, item in items:
        result = unit(name, item)
        if after_each is not None:
            pruned = after_each()
            if isinstance(pruned, Err) and isinstance(result, Ok):
                result = pruned
        outcomes.append((name, result))
        if isinstance(result, Err):
            break
    return outcomes


def _run_parallel[A, T, E](
    items: Iterable[tuple[str, A]],
    unit: Callable[[str, A], Result[T, E]],
    workers: int,
) -> list[Outcome[T, E]]:
    finished: list[tuple[int, Outcome[T, E]]] = []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="juju-bundle") as pool:
        futures: dict[Future[Result[T, E]], tuple[int, str]] = {
            pool.submit(unit, name, item): (index, name)
            for index, (name, item) in enumerate(items)
        }
        for future in as_completed(futures):
            if future.cancelled():
                continue
            result = future.result()
            index, name = futures[future]
            finished.append((index, (name, result)))
            if isinstance(result, Err):
                # Queued units never start; running ones are left to finish.
                for pending in futures:
                    pending.cancel()
    return [outcome for _, outcome in sorted(finished, key=lambda f: f[0])]
