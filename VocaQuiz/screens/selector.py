from kivy.uix.boxlayout import BoxLayout
from kivy.uix.gridlayout import GridLayout
from kivy.uix.scrollview import ScrollView
from kivy.uix.popup import Popup
from kivy.uix.label import Label
from kivy.metrics import dp
from VocaQuiz.ui.widgets import RoundedButton as Button, ProgressStrip
from VocaQuiz.models import gamification
from VocaQuiz.models.state import QuizMode
from VocaQuiz import config


class LessonSelectorScreen:
    def _build_lesson_selector(self):
        q = self.quiz
        root = BoxLayout(orientation='vertical', spacing=12, padding=16)

        title = Label(text=f"[b]{self.catalog.title or 'VocaQuiz'}[/b]", markup=True, font_size='30sp',
                      size_hint=(1, None), height=dp(48), color=self.theme["text"])
        root.add_widget(title)
        root.add_widget(self._build_level_header())

        # Wiederholen nur anbieten, wenn es Fehler gibt
        mistakes = len(q.persistent_mistakes)
        if mistakes:
            review_btn = Button(text=f"Review mistakes ({mistakes} words)", font_size='20sp',
                                size_hint=(1, None), height=dp(56), background_color=self.theme["warning"])
            review_btn.bind(on_release=lambda *_: self._start_review())
            root.add_widget(review_btn)

        if not self.catalog.units:
            root.add_widget(Label(text="No lessons found. Check res/catalog.json.", color=self.theme["muted"]))
            return root

        sv = ScrollView(size_hint=(1, 1))
        grid = GridLayout(cols=1, spacing=8, size_hint_y=None, padding=(0, 6))
        grid.bind(minimum_height=grid.setter('height'))
        for unit in self.catalog.units:
            grid.add_widget(Label(text=f"Unit {unit.unit_number}", font_size='22sp', size_hint_y=None,
                                  height=dp(40), halign='left', color=self.theme["text"]))
            row = GridLayout(cols=2, spacing=8, size_hint_y=None)
            row.bind(minimum_height=row.setter('height'))
            for lesson in unit.lessons:
                best = q.best_score(unit.unit_number, lesson.lesson_number)
                label = f"Lesson {lesson.lesson_number}  ·  {len(lesson.vocabulary)} words"
                if best is not None:
                    label += f"  ·  best {best}%"
                btn = Button(text=label, font_size='18sp', size_hint_y=None, height=dp(64),
                             background_color=self.theme["surface"], color=self.theme["text"])
                btn.bind(on_release=lambda _b, u=unit, l=lesson: self._open_preview(u, l))
                row.add_widget(btn)
            grid.add_widget(row)
        sv.add_widget(grid)
        root.add_widget(sv)

        bottom = BoxLayout(size_hint=(1, None), height=dp(48), spacing=8)
        badges_btn = Button(text="Badges", font_size='18sp', background_color=self.theme["accent"])
        badges_btn.bind(on_release=lambda *_: self.open_badges_popup())
        clear_review_btn = Button(text="Clear review list", font_size='18sp', background_color=self.theme["closeButton"],
                                  disabled=not mistakes)
        clear_review_btn.bind(on_release=lambda *_: self._confirm("Clear all review words?", self._clear_review))
        clear_hist_btn = Button(text="Clear history", font_size='18sp', background_color=self.theme["closeButton"],
                                disabled=not q.history)
        clear_hist_btn.bind(on_release=lambda *_: self._confirm("Delete the whole quiz history?", self._clear_history))
        sound_btn = Button(text="Sound: on" if self.sound.enabled else "Sound: off", font_size='18sp',
                           background_color=self.theme["surface"], color=self.theme["text"])
        sound_btn.bind(on_release=lambda b: self._toggle_sound(b))
        bottom.add_widget(badges_btn); bottom.add_widget(sound_btn)
        bottom.add_widget(clear_review_btn); bottom.add_widget(clear_hist_btn)
        root.add_widget(bottom)
        return root

    def _build_level_header(self):
        q = self.quiz
        t = gamification.level_title(q.level)
        in_level, pct = gamification.level_progress(q.xp, q.level)
        box = BoxLayout(orientation='vertical', size_hint=(1, None), height=dp(70), spacing=4)
        box.add_widget(Label(
            text=f"{t.icon} LV.{q.level} {t.title}   ·   {q.xp} XP   ·   🔥 {q.streak} days",
            font_size='18sp', color=self.theme["text"], size_hint=(1, None), height=dp(36)))
        box.add_widget(ProgressStrip(value=pct, size_hint=(1, None), height=dp(10), bar_color=self.theme["warning"]))
        box.add_widget(Label(text=f"{in_level} / {config.XP_PER_LEVEL} XP to next level", font_size='13sp',
                             color=self.theme["muted"], size_hint=(1, None), height=dp(20)))
        return box

    def _open_preview(self, unit, lesson):
        self.sound.play_click()
        self.quiz.start_preview(unit, lesson)
        self.render()

    def _start_review(self):
        self.sound.play_click()
        self.quiz.start_review_quiz(QuizMode.SPELLING)
        self.render()

    def _toggle_sound(self, btn):
        self.sound.enabled = not self.sound.enabled
        config.put_pref("sound", enabled=self.sound.enabled)
        btn.text = "Sound: on" if self.sound.enabled else "Sound: off"
        self.sound.play_click()

    def _clear_review(self):
        self.quiz.clear_review_list()
        self.render()

    def _clear_history(self):
        self.quiz.clear_history()
        self.render()

    def open_badges_popup(self):
        earned = set(self.quiz.earned_badges)
        grid = GridLayout(cols=1, spacing=6, size_hint_y=None, padding=8)
        grid.bind(minimum_height=grid.setter('height'))
        for b in gamification.BADGES:
            have = b.id in earned
            grid.add_widget(Label(
                text=f"{b.icon if have else '🔒'}  [b]{b.name}[/b]  -  {b.description}",
                markup=True, font_size='18sp', size_hint_y=None, height=dp(40),
                color=self.theme["text"] if have else self.theme["muted"]))
        sv = ScrollView(); sv.add_widget(grid)
        Popup(title=f"Badges ({len(earned)}/{len(gamification.BADGES)})", content=sv, size_hint=(0.9, 0.7)).open()

    def _confirm(self, message, on_yes):
        root = BoxLayout(orientation='vertical', spacing=10, padding=12)
        root.add_widget(Label(text=message, color=self.theme["text"]))
        bar = BoxLayout(size_hint=(1, 0.35), spacing=8)
        popup = Popup(title="Confirm", content=root, size_hint=(0.7, 0.35), auto_dismiss=True)
        no_btn = Button(text="Cancel", background_color=self.theme["closeButton"])
        yes_btn = Button(text="OK", background_color=self.theme["danger"])
        no_btn.bind(on_release=lambda *_: popup.dismiss())
        yes_btn.bind(on_release=lambda *_: (popup.dismiss(), on_yes()))
        bar.add_widget(no_btn); bar.add_widget(yes_btn)
        root.add_widget(bar)
        popup.open()
