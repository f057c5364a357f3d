from __future__ import annotations

from statemachine import State, StateMachine

from djgame.api.models import DayPhase
from djgame.repository import DailyGameRepository


class DailyGameFSM(StateMachine):
    """Per-day phase machine.

    - phases: no_dj -> dj_chosen -> revealed
    - `play` and `guess` repeat freely once a DJ is chosen (also after the reveal).
    - the machine only guards transitions; records are written by the game layer.
    """

    no_dj = State(DayPhase.no_dj.value, value=DayPhase.no_dj.value, initial=True)
    dj_chosen = State(DayPhase.dj_chosen.value, value=DayPhase.dj_chosen.value)
    revealed = State(DayPhase.revealed.value, value=DayPhase.revealed.value)

    choose = no_dj.to(dj_chosen)
    play = dj_chosen.to.itself() | revealed.to.itself()
    guess = dj_chosen.to.itself() | revealed.to.itself()
    reveal = dj_chosen.to(revealed)

    def __init__(self, phase: DayPhase = DayPhase.no_dj):
        super().__init__(start_value=phase.value)

    @property
    def phase(self) -> DayPhase:
        return DayPhase(str(self.current_state.value))


def phase_for_day(*, repo: DailyGameRepository, day: str) -> DayPhase:
    # Key presence is the only state: reveal implies a DJ, so check it first.
    if repo.reveal_exists(day):
        return DayPhase.revealed
    if repo.daily_song_exists(day):
        return DayPhase.dj_chosen
    return DayPhase.no_dj


def fsm_for_day(*, repo: DailyGameRepository, day: str) -> DailyGameFSM:
    return DailyGameFSM(phase_for_day(repo=repo, day=day))
