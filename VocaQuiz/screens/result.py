from kivy.uix.boxlayout import BoxLayout
from kivy.uix.gridlayout import GridLayout
from kivy.uix.scrollview import ScrollView
from kivy.uix.label import Label
from kivy.metrics import dp
from VocaQuiz.ui.widgets import RoundedButton as Button, ProgressStrip, ScoreChart
from VocaQuiz.models import gamification
from VocaQuiz import config


class ResultScreen:
    def _build_result(self):
        q = self.quiz
        result = q.last_result or (q.history[0] if q.history else None)
        root = BoxLayout(orientation='vertical', spacing=10, padding=16)
        if result is None:
            # Quiz per next_question ohne Abschluss verlassen
            root.add_widget(Label(text="No result available.", color=self.theme["muted"]))
            home_btn = Button(text="Home", size_hint=(1, None), height=dp(56), background_color=self.theme["closeButton"])
            home_btn.bind(on_release=lambda *_: self._go_home())
            root.add_widget(home_btn)
            return root

        if result.percentage == 100:
            color = self.theme["success"]
        elif result.percentage >= config.HIGH_SCORE_THRESHOLD:
            color = self.theme["primary"]
        else:
            color = self.theme["warning"]
        root.add_widget(Label(text=f"[b]{result.percentage}%[/b]", markup=True, font_size='64sp',
                              size_hint=(1, None), height=dp(90), color=color))

        t = gamification.level_title(q.level)
        stats = GridLayout(cols=2, spacing=4, size_hint=(1, None), height=dp(185))
        def _row(lbl, val):
            stats.add_widget(Label(text=lbl, font_size='18sp', color=self.theme["muted"]))
            stats.add_widget(Label(text=str(val), font_size='18sp', color=self.theme["text"]))
        _row("Correct", f"{result.correct_answers} / {result.total_questions}")
        _row("Time", f"{result.duration_seconds // 60}:{result.duration_seconds % 60:02d}")
        _row("XP", f"+{result.xp_gained}  (LV.{q.level} {t.icon} {t.title})")
        _row("Streak", f"{q.streak} days")
        new_badges = " ".join(f"{b.icon} {b.name}" for b in q.last_badges)
        _row("Badges", f"{len(q.earned_badges)} / {len(gamification.BADGES)}" + (f"  (+ {new_badges})" if new_badges else ""))
        root.add_widget(stats)

        _, pct = gamification.level_progress(q.xp, q.level)
        root.add_widget(ProgressStrip(value=pct, size_hint=(1, None), height=dp(10), bar_color=self.theme["warning"]))

        recent = list(reversed(q.history[:10]))
        if len(recent) > 1:
            chart = ScoreChart(size_hint=(1, None), height=dp(140),
                               values=[h.percentage for h in recent],
                               labels=[h.date[5:10] for h in recent],
                               bar_colors=[self.theme["success"] if h.percentage >= config.HIGH_SCORE_THRESHOLD else self.theme["danger"] for h in recent])
            root.add_widget(chart)

        if q.session_wrong_answers:
            root.add_widget(Label(text=f"Words to review ({len(q.session_wrong_answers)})", font_size='18sp',
                                  size_hint=(1, None), height=dp(32), color=self.theme["text"]))
            sv = ScrollView(size_hint=(1, 1))
            grid = GridLayout(cols=1, spacing=4, size_hint_y=None)
            grid.bind(minimum_height=grid.setter('height'))
            for entry in q.session_wrong_answers:
                btn = Button(text=f"{entry.word}  ·  {entry.meaning}", font_size='17sp', size_hint_y=None,
                             height=dp(44), background_color=self.theme["surface"], color=self.theme["text"])
                btn.bind(on_release=lambda _b, w=entry.word: self._speak(w))
                grid.add_widget(btn)
            sv.add_widget(grid)
            root.add_widget(sv)
        else:
            root.add_widget(Label(text="No mistakes!", color=self.theme["muted"]))

        bar = BoxLayout(size_hint=(1, None), height=dp(56), spacing=8)
        home_btn = Button(text="Home", font_size='20sp', background_color=self.theme["closeButton"])
        home_btn.bind(on_release=lambda *_: self._go_home())
        retry_btn = Button(text="Retry", font_size='20sp', background_color=self.theme["primary"])
        retry_btn.bind(on_release=lambda *_: self._retry())
        bar.add_widget(home_btn); bar.add_widget(retry_btn)
        root.add_widget(bar)
        return root

    def _go_home(self):
        self.sound.play_click()
        self.quiz.reset_quiz()
        self.render()

    def _retry(self):
        self.sound.play_click()
        self.quiz.retry_quiz()
        if not self.quiz.is_quiz_active:
            # Review-Liste inzwischen leer
            self.quiz.reset_quiz()
        self.render()
