from kivy.clock import Clock
from kivy.logger import Logger
import threading
import time
import numpy as np
import sounddevice as sd

from VocaQuiz import config


class STTService:
    """
    Continuous speech recognition on the default microphone.

    ``start_listening`` opens an input stream and re-transcribes the audio
    captured so far every few seconds (interim result); ``stop_listening``
    closes the stream and delivers the final transcript. Callbacks are
    always invoked on the Kivy main thread.
    """

    def __init__(self, model_size: str = config.STT_MODEL_SIZE, sr: int = config.STT_SAMPLE_RATE):
        self._ready = False
        self._loading = False
        self._model = None
        self._sr = sr
        self._model_size = model_size
        self._supported = None
        self._stream = None
        self._chunks: list[np.ndarray] = []
        self._chunks_lock = threading.Lock()
        self._listening = False
        self._session = 0
        self._on_interim = None
        self._on_final = None
        self._on_error = None
        self.error: str | None = None

    @property
    def is_supported(self) -> bool:
        if self._supported is None:
            try:
                sd.query_devices(kind="input")
                self._supported = True
            except Exception as e:
                Logger.warning(f"STT: no input device: {e}")
                self._supported = False
        return self._supported

    @property
    def is_listening(self) -> bool:
        return self._listening

    def init_async(self):
        if self._ready or self._loading:
            return
        self._loading = True
        def worker():
            try:
                import whisper
                self._model = whisper.load_model(self._model_size)
                self._ready = True
                Logger.info(f"STT: whisper model {self._model_size} ready")
            except Exception as e:
                self._ready = False
                self._supported = False
                Logger.warning(f"STT: loading model failed: {e}")
            finally:
                self._loading = False
        threading.Thread(target=worker, daemon=True).start()

    def _transcribe(self, audio: np.ndarray) -> str:
        if audio.size == 0:
            return ""
        m = float(np.max(np.abs(audio)) + 1e-9)
        audio = (audio / m).astype(np.float32)
        res = self._model.transcribe(audio, language="en", fp16=False)
        return (res.get("text") or "").strip()

    def _snapshot_audio(self) -> np.ndarray:
        with self._chunks_lock:
            if not self._chunks:
                return np.zeros(0, dtype=np.float32)
            return np.concatenate(self._chunks).flatten().astype(np.float32)

    def _fail(self, message: str):
        self.error = message
        self._listening = False
        Logger.warning(f"STT: {message}")
        cb = self._on_error
        if cb:
            Clock.schedule_once(lambda dt: cb(message), 0)

    def start_listening(self, on_interim=None, on_final=None, on_error=None):
        if self._listening:
            return
        self._session += 1
        self._on_interim, self._on_final, self._on_error = on_interim, on_final, on_error
        self.error = None
        if not self.is_supported:
            self._fail("Speech recognition is not supported on this device.")
            return
        if not self._ready:
            self.init_async()
            self._fail("Model is loading. Please tap 'Speak' again.")
            return
        with self._chunks_lock:
            self._chunks = []

        def _on_audio(indata, frames, t, status):
            with self._chunks_lock:
                self._chunks.append(indata.copy())

        try:
            self._stream = sd.InputStream(samplerate=self._sr, channels=1, dtype="float32", callback=_on_audio)
            self._stream.start()
        except Exception as e:
            self._stream = None
            self._fail(f"Microphone error: {e}")
            return
        self._listening = True
        threading.Thread(target=self._interim_loop, args=(self._session,), daemon=True).start()

    def _interim_loop(self, session: int):
        while self._listening and self._session == session:
            time.sleep(config.STT_INTERIM_INTERVAL)
            if not self._listening or self._session != session:
                break
            try:
                text = self._transcribe(self._snapshot_audio())
            except Exception as e:
                Logger.warning(f"STT: interim transcription failed: {e}")
                continue
            cb = self._on_interim
            if cb and self._listening:
                Clock.schedule_once(lambda dt, t=text: cb(t), 0)

    def stop_listening(self, discard: bool = False):
        """Stop capturing; with ``discard`` no further callbacks are delivered."""
        if discard:
            self._on_interim = self._on_final = self._on_error = None
        if not self._listening:
            return
        self._listening = False
        stream, self._stream = self._stream, None
        try:
            if stream is not None:
                stream.stop()
                stream.close()
        except Exception as e:
            Logger.warning(f"STT: closing stream failed: {e}")

        session = self._session
        def worker():
            try:
                text = self._transcribe(self._snapshot_audio())
            except Exception as e:
                if self._session == session:
                    self._fail(f"Transcription failed: {e}")
                return
            # neue Aufnahme gestartet: altes Ergebnis verwerfen
            if self._session != session:
                return
            Logger.debug(f"STT: final transcript {text!r}")
            cb = self._on_final
            if cb:
                Clock.schedule_once(lambda dt: cb(text), 0)
        threading.Thread(target=worker, daemon=True).start()
