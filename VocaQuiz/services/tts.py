import threading
import numpy as np
import sounddevice as sd
from kivy.logger import Logger

from VocaQuiz import config
from VocaQuiz.models.answers import speakable_text


class TTSService:
    def __init__(self, model_name: str = config.TTS_MODEL):
        self._ready = False
        self._loading = False
        self._failed = False
        self._engine = None
        self._speaker = None
        self._sr = 22050
        self._model_name = model_name
        self._generation = 0
        self._pending: str | None = None

    @property
    def is_supported(self) -> bool:
        return not self._failed

    def init_async(self):
        if self._ready or self._loading or self._failed:
            return
        self._loading = True
        def worker():
            try:
                from TTS.api import TTS
                eng = TTS(model_name=self._model_name, gpu=False)
                speakers = getattr(eng, "speakers", []) or []
                self._engine = eng
                idx = config.TTS_SPEAKER_INDEX
                self._speaker = speakers[idx] if len(speakers) > idx else (speakers[0] if speakers else None)
                synth = getattr(eng, "synthesizer", None)
                self._sr = getattr(synth, "output_sample_rate", 22050)
                self._ready = True
                Logger.info(f"TTS: model {self._model_name} ready")
            except Exception as e:
                self._failed = True
                Logger.warning(f"TTS: speech synthesis unavailable: {e}")
            finally:
                self._loading = False
            pending, self._pending = self._pending, None
            if self._ready and pending:
                self.speak(pending)
        threading.Thread(target=worker, daemon=True).start()

    def speak(self, text: str | None):
        text = speakable_text(text or "")
        if not text or self._failed:
            return
        if not self._ready:
            # wird nach dem Laden nachgeholt
            self._pending = text
            self.init_async()
            return
        self.stop()
        self._generation += 1
        generation = self._generation
        def worker():
            try:
                wav = self._engine.tts(text, speaker=self._speaker)
                # inzwischen neueres Wort angefordert
                if generation != self._generation:
                    return
                wav = np.asarray(wav, dtype=np.float32)
                wav *= 2.0
                wav = np.clip(wav, -1.0, 1.0)
                wav = wav[: int(len(wav) * 0.95)]
                sd.play(wav, self._sr, blocking=False)
            except Exception as e:
                Logger.warning(f"TTS: speaking {text!r} failed: {e}")
        threading.Thread(target=worker, daemon=True).start()

    def stop(self):
        self._generation += 1
        try:
            sd.stop()
        except Exception as e:
            Logger.debug(f"TTS: stop failed: {e}")
