from kivy.uix.boxlayout import BoxLayout
from kivy.uix.label import Label
from kivy.uix.textinput import TextInput
from kivy.clock import Clock
from kivy.metrics import dp
from VocaQuiz.ui.widgets import RoundedButton as Button, ProgressStrip, WrappedLabel
from VocaQuiz.models import answers
from VocaQuiz.models.state import QuizMode
from VocaQuiz import config


class QuizScreen:
    def _build_quiz(self):
        q = self.quiz
        entry = q.current_question
        mode = q.mode
        self._begin_question()

        root = BoxLayout(orientation='vertical', spacing=14, padding=16)
        n = len(q.question_set)
        root.add_widget(ProgressStrip(value=q.current_index / n * 100 if n else 0,
                                      size_hint=(1, None), height=dp(6)))

        header = BoxLayout(size_hint=(1, None), height=dp(44))
        exit_btn = Button(text="X", font_size='20sp', size_hint=(None, 1), width=dp(48), background_color=self.theme["closeButton"])
        exit_btn.bind(on_release=lambda *_: self._confirm_exit())
        header.add_widget(exit_btn)
        header.add_widget(Label(text=f"{q.current_index + 1} / {n}", font_size='18sp', color=self.theme["muted"]))
        root.add_widget(header)

        qrow = BoxLayout(size_hint=(1, 0.3), spacing=8)
        qrow.add_widget(WrappedLabel(text=answers.question_text(entry, mode), font_size='44sp', bold=True,
                                     color=self.theme["text"]))
        if mode == QuizMode.ENGLISH_TO_KOREAN and self.tts.is_supported:
            say_btn = Button(text="♪", font_size='24sp', size_hint=(None, None), size=(dp(56), dp(56)),
                             background_color=self.theme["primary"])
            say_btn.bind(on_release=lambda *_: self._speak(entry.word))
            qrow.add_widget(say_btn)
        root.add_widget(qrow)

        answer_box = BoxLayout(orientation='vertical', spacing=8, size_hint=(1, 0.45))
        if mode == QuizMode.SPEAKING:
            self._build_speaking_area(answer_box, entry)
        elif answers.is_typing_mode(entry, mode):
            self._build_typing_area(answer_box, entry)
        else:
            self._build_options_area(answer_box, entry, mode)
        root.add_widget(answer_box)

        self.feedback_label = WrappedLabel(text="", markup=True, font_size='20sp', size_hint=(1, None), height=dp(60),
                                           color=self.theme["text"])
        root.add_widget(self.feedback_label)

        self.quiz_next_btn = Button(text="Next", font_size='22sp', size_hint=(1, None), height=dp(56),
                                    background_color=self.theme["success"], disabled=True)
        self.quiz_next_btn.bind(on_release=lambda *_: self._next_question())
        root.add_widget(self.quiz_next_btn)

        if mode == QuizMode.ENGLISH_TO_KOREAN:
            Clock.schedule_once(lambda dt: self._speak(entry.word), 0)
        return root

    def _begin_question(self):
        self._question_token = getattr(self, "_question_token", 0) + 1
        self._answered = False
        self._options = []
        self._option_buttons = []
        self._transcript = ""

    def _is_current(self, token, entry) -> bool:
        return token == self._question_token and entry is self.quiz.current_question

    # ---- answer areas ----
    def _build_typing_area(self, box, entry):
        self.answer_input = TextInput(hint_text="Type your answer...", multiline=False, font_size='30sp',
                                      size_hint=(1, None), height=dp(64), halign='center')
        self.answer_input.bind(on_text_validate=lambda *_: self._submit_typed(entry))
        box.add_widget(self.answer_input)
        check_btn = Button(text="Check", font_size='20sp', size_hint=(1, None), height=dp(52),
                           background_color=self.theme["primary"])
        check_btn.bind(on_release=lambda *_: self._submit_typed(entry))
        box.add_widget(check_btn)
        self._typing_check_btn = check_btn
        Clock.schedule_once(lambda dt: setattr(self.answer_input, "focus", True), 0.05)

    def _build_options_area(self, box, entry, mode):
        self._options = answers.build_options(entry, self.quiz.question_set, mode)
        for i, opt in enumerate(self._options, start=1):
            btn = Button(text=f"{i}.  {opt}", font_size='20sp', background_color=self.theme["surface"],
                         color=self.theme["text"])
            btn.bind(on_release=lambda _b, o=opt: self._submit_option(entry, o))
            self._option_buttons.append((opt, btn))
            box.add_widget(btn)

    def _build_speaking_area(self, box, entry):
        self.transcript_label = WrappedLabel(text="Tap 'Speak' and say the word.", font_size='22sp',
                                             color=self.theme["muted"])
        box.add_widget(self.transcript_label)
        self.record_btn = Button(text="Speak", font_size='22sp', size_hint=(1, None), height=dp(60),
                                 background_color=self.theme["danger"])
        self.record_btn.bind(on_release=lambda *_: self._toggle_recording(entry))
        box.add_widget(self.record_btn)
        skip_btn = Button(text="I can't say it", font_size='18sp', size_hint=(1, None), height=dp(48),
                          background_color=self.theme["closeButton"])
        skip_btn.bind(on_release=lambda *_: self._skip_speaking(entry))
        box.add_widget(skip_btn)

    # ---- submission ----
    def _submit_typed(self, entry):
        if self._answered:
            return
        text = self.answer_input.text
        if not text.strip():
            return
        correct = answers.is_typed_match(text, entry.word)
        self.answer_input.readonly = True
        self._typing_check_btn.disabled = True
        self._finish_answer(entry, correct)
        if not correct:
            Clock.schedule_once(lambda dt: self._speak(entry.word), config.WRONG_ANSWER_SPEAK_DELAY)

    def _submit_option(self, entry, option):
        if self._answered:
            return
        mode = self.quiz.mode
        correct = answers.is_choice_match(option, entry, mode)
        target = answers.choice_target(entry, mode)
        for opt, btn in self._option_buttons:
            btn.disabled = True
            if opt == target:
                btn.set_fill(self.theme["success"])
            elif opt == option:
                btn.set_fill(self.theme["danger"])
        self._finish_answer(entry, correct)

    def _toggle_recording(self, entry):
        if self._answered:
            return
        if self.stt.is_listening:
            self.record_btn.text = "..."
            self.record_btn.disabled = True
            self.stt.stop_listening()
            return
        self._transcript = ""
        self.record_btn.text = "Stop"
        self.transcript_label.text = "Listening ..."
        token = self._question_token

        def on_interim(text):
            if self._is_current(token, entry) and not self._answered:
                self.transcript_label.text = text or "Listening ..."

        def on_final(text):
            if not self._is_current(token, entry):
                return
            self._transcript = text
            self.transcript_label.text = text or "(nothing heard)"
            self.record_btn.disabled = False
            self.record_btn.text = "Speak"
            if text:
                self._finish_answer(entry, answers.is_spoken_match(text, entry.word))

        def on_error(message):
            if not self._is_current(token, entry):
                return
            self.transcript_label.text = message
            self.record_btn.disabled = False
            self.record_btn.text = "Speak"

        self.stt.start_listening(on_interim=on_interim, on_final=on_final, on_error=on_error)

    def _skip_speaking(self, entry):
        if self._answered:
            return
        if self.stt.is_listening:
            self.stt.stop_listening(discard=True)
            self.record_btn.text = "Speak"
        self.record_btn.disabled = True
        self._finish_answer(entry, False)

    def _finish_answer(self, entry, correct: bool):
        if self._answered:
            return
        self._answered = True
        self.quiz.submit_answer(correct, entry)
        if correct:
            self.sound.play_correct()
            self.feedback_label.text = "[color=5fd38a]Correct![/color]"
        else:
            self.sound.play_wrong()
            self.feedback_label.text = f"[color=e0585c]Answer:[/color] {entry.word}  ·  {entry.meaning}"
        self.quiz_next_btn.disabled = False

    def _next_question(self):
        if not self._answered:
            return
        self.stt.stop_listening(discard=True)
        self.tts.stop()
        # letzte Frage beendet die Sitzung (Historie, XP, Abzeichen)
        self.quiz.next_question()
        self.render()

    def _confirm_exit(self):
        def _exit():
            self.stt.stop_listening(discard=True)
            self.quiz.reset_quiz()
            self.render()
        self._confirm("Quit the quiz and go back?", _exit)

    def _quiz_key_down(self, key, codepoint):
        if key == 27:
            self._confirm_exit()
            return True
        if key in (13, 32) and self._answered:
            self._next_question()
            return True
        if not self._answered and self._options and codepoint and codepoint.isdigit():
            i = int(codepoint)
            if 1 <= i <= len(self._options):
                self._submit_option(self.quiz.current_question, self._options[i - 1])
                return True
        return False
