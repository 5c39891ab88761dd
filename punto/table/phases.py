"""
Table phases and how long each one lasts.
"""

from dataclasses import dataclass
from enum import Enum, unique
from typing import Dict, Optional


@unique
class Phase(Enum):
    WAITING = "waiting"
    BETTING = "betting"
    DEALING = "dealing"
    RESULT = "result"

    @property
    def next(self) -> "Phase":
        return _NEXT[self]

    def __str__(self) -> str:
        return self.name.capitalize()


_NEXT = {
    Phase.WAITING: Phase.BETTING,
    Phase.BETTING: Phase.DEALING,
    Phase.DEALING: Phase.RESULT,
    Phase.RESULT: Phase.WAITING,
}


@dataclass
class PhaseDurations:
    """
    Seconds spent in each timed phase.

    Dealing has no duration: it ends when the round has been dealt.
    """

    waiting: float = 10.0
    betting: float = 20.0
    dealing: float = 15.0
    result: float = 10.0

    def __post_init__(self):
        for name in ("waiting", "betting", "dealing", "result"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} duration cannot be negative")

    def for_phase(self, phase: Phase) -> Optional[float]:
        """The duration that ends ``phase``, or None when time alone cannot end it."""
        return {
            Phase.WAITING: self.waiting,
            Phase.BETTING: self.betting,
            Phase.DEALING: None,
            Phase.RESULT: self.result,
        }[phase]

    def as_dict(self) -> Dict[str, float]:
        return {
            "waiting": self.waiting,
            "betting": self.betting,
            "dealing": self.dealing,
            "result": self.result,
        }


@dataclass(frozen=True)
class PhaseRule:
    """
    Guard for leaving a phase.

    ``timed`` transitions happen once the phase duration has elapsed;
    ``early_close`` transitions may also happen before that when the caller
    asks for it and nothing has been staked.
    """

    source: Phase
    target: Phase
    timed: bool = True
    early_close: bool = False

    def allows(
        self,
        elapsed: float,
        duration: Optional[float],
        early_close_requested: bool = False,
        ledger_empty: bool = False,
        early_close_allowed: bool = True,
    ) -> bool:
        if self.timed and duration is not None and elapsed >= duration:
            return True
        return (
            self.early_close
            and early_close_requested
            and early_close_allowed
            and ledger_empty
        )


PHASE_RULES: Dict[Phase, PhaseRule] = {
    Phase.WAITING: PhaseRule(Phase.WAITING, Phase.BETTING),
    Phase.BETTING: PhaseRule(Phase.BETTING, Phase.DEALING, early_close=True),
    Phase.DEALING: PhaseRule(Phase.DEALING, Phase.RESULT, timed=False),
    Phase.RESULT: PhaseRule(Phase.RESULT, Phase.WAITING),
}
