"""
════════════════════════════════════════════════════════════════════════════════
NETTING & LOT SIZING - Consumo de excesso + regras de lote por material
════════════════════════════════════════════════════════════════════════════════

Por material, percorre os períodos pela ordem de inserção no DemandMap:

1. Netting: o excesso (stock + PO pendente) absorve a procura do período;
   o excesso restante nunca aumenta e nunca fica negativo.
2. Lot sizing (prioridade estrita) sobre a procura ajustada > 0:
   a) reorder point > 0  -> reorder_point + procura
   b) MOQ > procura      -> MOQ
   c) MPQ > 0            -> ceil(procura / MPQ) × MPQ
   d) caso contrário     -> procura

O fold é sequencial dentro de um material e independente entre materiais.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Dict, List, Mapping, Tuple

import numpy as np


@dataclass(frozen=True)
class LotSizingPolicy:
    mpq: float = 0.0
    moq: float = 0.0
    reorder_point: float = 0.0

    def required_quantity(self, adjusted_demand: float) -> float:
        """Order quantity for a net (post-excess) demand."""
        if adjusted_demand <= 0:
            return 0.0
        if self.reorder_point > 0:
            return float(self.reorder_point + adjusted_demand)
        if self.moq > adjusted_demand:
            return float(self.moq)
        if self.mpq > 0:
            return float(np.ceil(adjusted_demand / self.mpq) * self.mpq)
        return float(adjusted_demand)


@dataclass(frozen=True)
class NettingStep:
    """Outcome of one period of the netting fold."""
    period: str
    gross_demand: float
    consumed_excess: float
    adjusted_demand: float
    required_qty: float
    remaining_excess: float


@dataclass(frozen=True)
class NettingResult:
    steps: Tuple[NettingStep, ...]
    initial_excess: float
    remaining_excess: float

    def required_by_period(self) -> Dict[str, float]:
        return {s.period: s.required_qty for s in self.steps}

    @property
    def total_consumed(self) -> float:
        return sum(s.consumed_excess for s in self.steps)


def net_period(remaining_excess: float, period: str, qty: float, policy: LotSizingPolicy) -> NettingStep:
    """Single step of the fold: consume excess, then size the remainder."""
    if qty <= 0:
        return NettingStep(period, qty, 0.0, 0.0, 0.0, remaining_excess)

    if remaining_excess >= qty:
        consumed = qty
        adjusted = 0.0
    else:
        consumed = remaining_excess
        adjusted = qty - remaining_excess

    return NettingStep(
        period=period,
        gross_demand=qty,
        consumed_excess=consumed,
        adjusted_demand=adjusted,
        required_qty=policy.required_quantity(adjusted),
        remaining_excess=remaining_excess - consumed,
    )


def net_and_size(
    demand_by_period: Mapping[str, float],
    excess_qty: float,
    policy: LotSizingPolicy,
) -> NettingResult:
    """
    Fold a material's per-period demand into order quantities.

    Args:
        demand_by_period: period key -> gross demand, iterated in mapping order
        excess_qty: on hand + pending PO
        policy: MPQ / MOQ / reorder point of the material

    Returns:
        NettingResult with one step per period, in the same order
    """
    initial = max(0.0, float(excess_qty))

    def _step(acc: Tuple[List[NettingStep], float], item: Tuple[str, float]) -> Tuple[List[NettingStep], float]:
        steps, remaining = acc
        period, qty = item
        step = net_period(remaining, period, float(qty), policy)
        steps.append(step)
        return steps, step.remaining_excess

    steps, remaining = reduce(_step, demand_by_period.items(), ([], initial))
    return NettingResult(steps=tuple(steps), initial_excess=initial, remaining_excess=remaining)
