from kivy.uix.boxlayout import BoxLayout
from kivy.uix.popup import Popup
from kivy.uix.label import Label
from kivy.core.window import Window
from kivy.graphics import Color, Rectangle
from kivy.clock import Clock
from kivy.logger import Logger
from VocaQuiz import config
from VocaQuiz.models.catalog import load_catalog
from VocaQuiz.models.quiz_store import QuizStore
from VocaQuiz.persistence.progress_store import ProgressStore
from VocaQuiz.services.tts import TTSService
from VocaQuiz.services.stt import STTService
from VocaQuiz.services.sound import SoundService
from .selector import LessonSelectorScreen
from .preview import PreviewScreen
from .quiz import QuizScreen
from .result import ResultScreen


class VocaQuizRoot(LessonSelectorScreen, PreviewScreen, QuizScreen, ResultScreen, BoxLayout):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.orientation = 'vertical'

        self.theme = {
            "bg": (0.07, 0.08, 0.10, 1),
            "surface": (0.12, 0.14, 0.18, 1),
            "text": (0.95, 0.98, 1, 1),
            "muted": (0.78, 0.82, 0.88, 1),
            "primary": (0.20, 0.52, 0.90, 1),
            "success": (0.25, 0.65, 0.38, 1),
            "warning": (0.93, 0.65, 0.25, 1),
            "danger": (0.85, 0.32, 0.35, 1),
            "accent": (0.55, 0.32, 0.75, 1),
            "closeButton": (0.5, 0.5, 0.5, 1),
        }
        with self.canvas.before:
            Color(*self.theme["bg"])
            self.rect = Rectangle(size=Window.size, pos=self.pos)
        self.bind(size=self._update_rect, pos=self._update_rect)

        # Daten laden
        self.catalog = load_catalog(config.CATALOG_FILE)
        self.quiz = QuizStore()

        # Persistenz
        config.DATA_DIR.mkdir(parents=True, exist_ok=True)
        self._store = ProgressStore(self.quiz, config.PROGRESS_FILE)
        self._store.load()
        self.quiz.set_persist_hook(lambda _q: self._store.save_async())
        self.quiz.bind(self._on_quiz_event)

        # Services
        self.tts = TTSService()
        self.stt = STTService()
        self.sound = SoundService(enabled=bool(config.get_pref("sound", "enabled", True)))
        Clock.schedule_once(lambda dt: self.tts.init_async(), 0)
        Clock.schedule_once(lambda dt: self.stt.init_async(), 1.0)

        Window.bind(on_key_down=self._on_key_down)
        self.render()

    def _update_rect(self, instance, value):
        self.rect.pos = instance.pos
        self.rect.size = instance.size

    def render(self):
        builders = {
            "idle": self._build_lesson_selector,
            "preview": self._build_preview,
            "quiz": self._build_quiz,
            "finished": self._build_result,
        }
        view = self.quiz.view
        self.clear_widgets()
        self.add_widget(builders[view]())
        Logger.debug(f"VocaQuiz: view {view}")

    def _on_quiz_event(self, event, payload):
        if event == "level_up":
            self.sound.play_level_up()
            self._toast(f"Level up! You reached LV.{payload}")
        elif event == "badge_earned":
            self._toast(f"{payload.icon} Badge earned: {payload.name}")

    def _toast(self, message, duration: float = 2.0):
        popup = Popup(title='VocaQuiz', content=Label(text=message), size_hint=(0.7, 0.25))
        popup.open()
        Clock.schedule_once(lambda *_: popup.dismiss(), duration)

    def _on_key_down(self, window, key, scancode, codepoint, modifiers):
        if self.quiz.view != "quiz":
            return False
        return self._quiz_key_down(key, codepoint)

    # ---- Services delegations ----
    def _speak(self, text: str | None):
        try:
            self.tts.speak(text)
        except Exception as e:
            Logger.warning(f"TTS: {e}")

    def shutdown(self):
        self.stt.stop_listening(discard=True)
        self.tts.stop()
        self._store.save_sync()
        self._store.backup_if_changed()
