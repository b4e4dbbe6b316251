from kivy.app import App
from kivy.core.window import Window
from kivy.logger import Logger
from VocaQuiz.screens.main import VocaQuizRoot


class VocaQuizApp(App):
    title = "VocaQuiz"

    def build(self):
        Window.size = (800, 1000)
        self.root_view = VocaQuizRoot()
        return self.root_view

    def on_stop(self):
        # final synchron speichern + Backup nur bei Änderungen
        try:
            self.root_view.shutdown()
        except OSError as e:
            Logger.error(f"Progress: final save failed: {e}")


def main():
    VocaQuizApp().run()


if __name__ == "__main__":
    main()
