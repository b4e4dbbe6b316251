from kivy.uix.boxlayout import BoxLayout
from kivy.uix.gridlayout import GridLayout
from kivy.uix.scrollview import ScrollView
from kivy.uix.label import Label
from kivy.metrics import dp
from VocaQuiz.ui.widgets import RoundedButton as Button, WrappedLabel
from VocaQuiz.models.state import QuizMode
from VocaQuiz import config

MODE_LABELS = (
    (QuizMode.KOREAN_TO_ENGLISH, "Meaning → Word"),
    (QuizMode.ENGLISH_TO_KOREAN, "Word → Meaning"),
    (QuizMode.SPELLING, "Spelling"),
    (QuizMode.SPEAKING, "Speaking"),
)


class PreviewScreen:
    def _build_preview(self):
        s = self.quiz.session
        root = BoxLayout(orientation='vertical', spacing=10, padding=16)

        top = BoxLayout(size_hint=(1, None), height=dp(48), spacing=8)
        back_btn = Button(text="<", font_size='22sp', size_hint=(None, 1), width=dp(56), background_color=self.theme["closeButton"])
        back_btn.bind(on_release=lambda *_: self._back_home())
        top.add_widget(back_btn)
        top.add_widget(Label(
            text=f"Unit {s.active_unit.unit_number} · Lesson {s.active_lesson.lesson_number} · {len(s.question_set)} words",
            font_size='20sp', color=self.theme["text"]))
        root.add_widget(top)

        sv = ScrollView(size_hint=(1, 1))
        grid = GridLayout(cols=1, spacing=6, size_hint_y=None, padding=(0, 6))
        grid.bind(minimum_height=grid.setter('height'))
        for entry in s.question_set:
            row = BoxLayout(size_hint_y=None, height=dp(72), spacing=8)
            txt = BoxLayout(orientation='vertical')
            txt.add_widget(Label(text=f"[b]{entry.word}[/b]   {entry.meaning}", markup=True, font_size='20sp',
                                 halign='left', color=self.theme["text"]))
            txt.add_widget(WrappedLabel(text=entry.definition, font_size='14sp', color=self.theme["muted"]))
            row.add_widget(txt)
            if self.tts.is_supported:
                say_btn = Button(text="♪", font_size='22sp', size_hint=(None, 1), width=dp(56), background_color=self.theme["primary"])
                say_btn.bind(on_release=lambda _b, w=entry.word: self._speak(w))
                row.add_widget(say_btn)
            grid.add_widget(row)
        sv.add_widget(grid)
        root.add_widget(sv)

        modes = GridLayout(cols=2, spacing=8, size_hint=(1, None), height=dp(120))
        last_mode = config.get_pref("quiz", "mode", QuizMode.KOREAN_TO_ENGLISH.value)
        for mode, label in MODE_LABELS:
            if mode == QuizMode.SPEAKING and not self.stt.is_supported:
                continue
            color = self.theme["primary"] if mode.value == last_mode else self.theme["surface"]
            btn = Button(text=label, font_size='18sp', background_color=color, color=self.theme["text"])
            btn.bind(on_release=lambda _b, m=mode: self._start_from_preview(m))
            modes.add_widget(btn)
        root.add_widget(modes)
        return root

    def _start_from_preview(self, mode):
        s = self.quiz.session
        config.put_pref("quiz", mode=mode.value)
        self.sound.play_click()
        self.quiz.start_quiz(s.active_unit, s.active_lesson, mode)
        self.render()

    def _back_home(self):
        self.sound.play_click()
        self.quiz.reset_quiz()
        self.render()
