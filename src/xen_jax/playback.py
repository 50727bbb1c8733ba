"""Argument handling for ``play()`` and ``print()`` and the collaborator interfaces they call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from . import coercion
from .errors import XenTypeCoercionError, XenUnsupportedError
from .tuning import MIDDLE_C_HZ, Cents, ETInterval, FreqRatio, Frequency
from .values import Waveshape, XenResult, is_list, is_number

# ETs below this many Hz are heard as intervals above the running base, not as pitches.
RELATIVE_ET_THRESHOLD_HZ = 20


class Playback(Protocol):
    def __call__(self, freqs: Sequence[float], waveshape: str | None = None) -> None:
        ...


class Printer(Protocol):
    def __call__(self, *results: XenResult) -> None:
        ...


def unsupported_playback(freqs: Sequence[float], waveshape: str | None = None) -> None:
    raise XenUnsupportedError("play() is not supported in this implementation.")


def unsupported_printer(*results: XenResult) -> None:
    raise XenUnsupportedError("print() is not supported in this implementation.")


@dataclass
class PlaybackRequest:
    """Ordered Hz values and the optional waveshape name collected from ``play()`` arguments."""

    freqs: list[float] = field(default_factory=list)
    waveshape: str | None = None
    _base: Frequency | None = None

    def add_fixed(self, value: object) -> None:
        pitch = coercion.freq(value)
        self.freqs.append(pitch.hz)
        if self._base is None:
            self._base = pitch

    def add_relative(self, interval: object) -> None:
        if self._base is None:
            # no fixed pitch yet: sound middle C and build on it
            self._base = Frequency(MIDDLE_C_HZ)
            self.freqs.append(self._base.hz)
        self.freqs.append(self._base.note_above(interval).hz)

    def extend(self, args: Sequence[object]) -> "PlaybackRequest":
        for arg in args:
            if isinstance(arg, Waveshape):
                self.waveshape = arg.value
            elif is_list(arg):
                self.extend(arg)
            elif isinstance(arg, ETInterval):
                if coercion.freq(arg).hz < RELATIVE_ET_THRESHOLD_HZ:
                    self.add_relative(arg)
                else:
                    self.add_fixed(arg)
            elif is_number(arg) or isinstance(arg, Frequency):
                self.add_fixed(arg)
            elif isinstance(arg, (Cents, FreqRatio)):
                self.add_relative(arg)
            else:
                raise XenTypeCoercionError("Ambiguous or incorrect call to play().", *args)
        return self


def collect(args: Sequence[object]) -> PlaybackRequest:
    return PlaybackRequest().extend(args)


def play(playback: Playback, *args: object) -> None:
    request = collect(args)
    playback(request.freqs, request.waveshape)


def print_values(printer: Printer, *args: object) -> None:
    printer(*(XenResult.of(value) for value in args))
