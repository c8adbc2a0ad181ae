from __future__ import annotations

from .simulation import AnswerOutcome, Simulation

DIGITS = "0123456789"


class InputDispatcher:
    """Typed-answer buffer in front of a :class:`Simulation`.

    Accepts digits and a single decimal point up to ``max_length`` characters.
    :meth:`submit` parses the buffer and hands the number to the simulation;
    unparsable text (a lone ``.``) is dropped without penalty. While the run
    is over, submitting restarts it instead.
    """

    def __init__(self, simulation: Simulation, *, max_length: int = 10) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be > 0")
        self._sim = simulation
        self._max_length = int(max_length)
        self._text = ""

    @property
    def text(self) -> str:
        return self._text

    def display(self) -> str:
        return self._text or "_"

    def press(self, char: str) -> bool:
        """Append one character. Returns True if it was accepted."""

        if self._sim.game_over:
            return False
        if len(char) != 1 or (char not in DIGITS and char != "."):
            return False
        if char == "." and "." in self._text:
            return False
        if len(self._text) >= self._max_length:
            return False
        self._text += char
        return True

    def backspace(self) -> None:
        self._text = self._text[:-1]

    def clear(self) -> None:
        self._text = ""

    def submit(self) -> AnswerOutcome | None:
        if self._sim.game_over:
            self._text = ""
            self._sim.start_game()
            return None

        raw = self._text
        self._text = ""
        if not raw:
            return None
        try:
            value = float(raw)
        except ValueError:
            return None
        return self._sim.submit_answer(value)
