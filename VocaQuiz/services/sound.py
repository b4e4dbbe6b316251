import numpy as np
import sounddevice as sd
from kivy.logger import Logger

from VocaQuiz import config

# (frequency Hz, duration s) pro Ton
CUES = {
    "correct": ((880.0, 0.08), (1318.5, 0.14)),
    "wrong": ((220.0, 0.12), (174.6, 0.20)),
    "click": ((1500.0, 0.025),),
    "level_up": ((523.3, 0.09), (659.3, 0.09), (784.0, 0.09), (1046.5, 0.22)),
}


def synth_cue(notes, sr: int = config.SOUND_SAMPLE_RATE, volume: float = config.SOUND_VOLUME) -> np.ndarray:
    parts = []
    for freq, dur in notes:
        t = np.arange(int(sr * dur), dtype=np.float32) / sr
        tone = np.sin(2 * np.pi * freq * t)
        # kurzes Ein-/Ausblenden gegen Knackser
        fade = min(len(t) // 4, int(sr * 0.005))
        if fade > 0:
            env = np.ones_like(tone)
            env[:fade] = np.linspace(0.0, 1.0, fade)
            env[-fade:] = np.linspace(1.0, 0.0, fade)
            tone *= env
        parts.append(tone)
    if not parts:
        return np.zeros(0, dtype=np.float32)
    return (np.concatenate(parts) * volume).astype(np.float32)


class SoundService:
    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._sr = config.SOUND_SAMPLE_RATE
        self._buffers = {name: synth_cue(notes, self._sr) for name, notes in CUES.items()}

    def play(self, name: str):
        if not self.enabled:
            return
        buf = self._buffers.get(name)
        if buf is None or buf.size == 0:
            return
        try:
            sd.play(buf, self._sr, blocking=False)
        except Exception as e:
            Logger.debug(f"Sound: cue {name} not played: {e}")

    def play_correct(self):
        self.play("correct")

    def play_wrong(self):
        self.play("wrong")

    def play_click(self):
        self.play("click")

    def play_level_up(self):
        self.play("level_up")
