from enum import Enum
from typing import Optional, Callable, List, Type
from dataclasses import dataclass


class TournamentState(str, Enum):
    OPEN = "open"
    LIVE = "live"
    COMPLETED = "completed"


class MatchState(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"


class ResultState(str, Enum):
    ALIVE = "alive"
    ELIMINATED = "eliminated"


class InvitationState(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: Enum
    to_state: Enum
    action: str
    guard: Optional[Callable] = None


class StateMachine:
    """
    Table-driven state machine shared by every status-bearing entity.

    Subclasses declare STATES (the Enum), INITIAL and TRANSITIONS. A state
    with no outgoing transition is terminal.
    """
    STATES: Type[Enum] = None
    INITIAL: Enum = None
    TRANSITIONS: List[Transition] = []

    def __init__(self, initial_state: Enum = None):
        self._state = initial_state if initial_state is not None else self.INITIAL
        self._history: List[tuple] = []

    @property
    def state(self) -> Enum:
        return self._state

    @property
    def allowed_actions(self) -> List[str]:
        return [t.action for t in self.TRANSITIONS if t.from_state == self._state]

    @property
    def is_terminal(self) -> bool:
        return not self.allowed_actions

    def can_transition(self, action: str) -> bool:
        return action in self.allowed_actions

    def transition(self, action: str, guard_context: dict = None) -> Enum:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                if t.guard and not t.guard(guard_context or {}):
                    raise TransitionError(
                        self._state.value,
                        t.to_state.value,
                        f"Guard condition failed for action '{action}'"
                    )

                old_state = self._state
                self._state = t.to_state
                self._history.append((old_state, action, self._state))
                return self._state

        raise TransitionError(
            self._state.value,
            "unknown",
            f"No valid transition for action '{action}' from state '{self._state.value}'"
        )

    def transition_to(self, target: Enum, guard_context: dict = None) -> Enum:
        """Move to ``target`` through whichever action leads there."""
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.to_state == target:
                return self.transition(t.action, guard_context)

        raise TransitionError(self._state.value, target.value)

    def get_history(self) -> List[tuple]:
        return self._history.copy()

    @classmethod
    def parse_state(cls, state_str: str) -> Enum:
        """Parse a caller-supplied state string; raises ValueError if unknown."""
        try:
            return cls.STATES(state_str)
        except ValueError:
            valid = ", ".join(s.value for s in cls.STATES)
            raise ValueError(f"Unknown status '{state_str}' (expected one of: {valid})")

    @classmethod
    def from_state_string(cls, state_str: str) -> "StateMachine":
        return cls(initial_state=cls.parse_state(state_str))


def all_matches_complete_guard(context: dict) -> bool:
    matches = context.get("matches", [])
    return all(m.get("status") == MatchState.COMPLETED.value for m in matches)


def single_survivor_guard(context: dict) -> bool:
    results = context.get("results", [])
    alive = [r for r in results if r.get("status") == ResultState.ALIVE.value]
    return len(alive) <= 1


class TournamentStateMachine(StateMachine):
    STATES = TournamentState
    INITIAL = TournamentState.OPEN
    TRANSITIONS = [
        Transition(TournamentState.OPEN, TournamentState.LIVE, "start"),
        Transition(TournamentState.LIVE, TournamentState.COMPLETED, "complete",
                   guard=all_matches_complete_guard),
    ]


class MatchStateMachine(StateMachine):
    STATES = MatchState
    INITIAL = MatchState.SCHEDULED
    TRANSITIONS = [
        Transition(MatchState.SCHEDULED, MatchState.LIVE, "start"),
        Transition(MatchState.LIVE, MatchState.COMPLETED, "complete",
                   guard=single_survivor_guard),
    ]


class ResultStateMachine(StateMachine):
    STATES = ResultState
    INITIAL = ResultState.ALIVE
    TRANSITIONS = [
        Transition(ResultState.ALIVE, ResultState.ELIMINATED, "eliminate"),
    ]


class InvitationStateMachine(StateMachine):
    STATES = InvitationState
    INITIAL = InvitationState.PENDING
    TRANSITIONS = [
        Transition(InvitationState.PENDING, InvitationState.ACCEPTED, "accept"),
        Transition(InvitationState.PENDING, InvitationState.DECLINED, "decline"),
    ]

