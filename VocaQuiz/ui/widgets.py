from kivy.uix.button import Button
from kivy.uix.label import Label
from kivy.uix.widget import Widget
from kivy.properties import NumericProperty, ListProperty, StringProperty, BooleanProperty
from kivy.graphics import Color, Rectangle, RoundedRectangle, Line, PushMatrix, PopMatrix, Translate
from kivy.core.text import Label as CoreLabel


class RoundedButton(Button):
    corner_radius = NumericProperty(12)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.background_normal = ""
        self.background_down = ""
        self._fill = list(self.background_color)
        # Kivy-Hintergrund aus, wir zeichnen selbst
        self.background_color = (0, 0, 0, 0)
        with self.canvas.before:
            self._color_instr = Color(*self._fill)
            self._rect = RoundedRectangle(pos=self.pos, size=self.size, radius=[self.corner_radius])
        self.bind(pos=self._update_canvas, size=self._update_canvas, state=self._update_canvas,
                  disabled=self._update_canvas, corner_radius=self._update_canvas)

    def set_fill(self, rgba):
        self._fill = list(rgba)
        self._update_canvas()

    def _update_canvas(self, *_):
        r, g, b, a = self._fill
        if self.state == "down":
            r, g, b = r * 0.8, g * 0.8, b * 0.8
        if self.disabled:
            a = a * 0.4
        self._color_instr.rgba = (r, g, b, a)
        self._rect.pos = self.pos
        self._rect.size = self.size
        self._rect.radius = [self.corner_radius]


class WrappedLabel(Label):
    def __init__(self, **kwargs):
        kwargs.setdefault("halign", "center")
        kwargs.setdefault("valign", "middle")
        super().__init__(**kwargs)
        self.bind(size=lambda *_: setattr(self, "text_size", (self.width - 12, None)))


class ProgressStrip(Widget):
    value = NumericProperty(0)          # 0..100
    bar_color = ListProperty([0.20, 0.52, 0.90, 1])
    track_color = ListProperty([0.12, 0.14, 0.18, 1])

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        cb = self._redraw
        self.bind(pos=cb, size=cb, value=cb, bar_color=cb, track_color=cb)

    def _redraw(self, *_):
        self.canvas.clear()
        frac = max(0.0, min(float(self.value) / 100.0, 1.0))
        with self.canvas:
            Color(*self.track_color)
            RoundedRectangle(pos=self.pos, size=self.size, radius=[self.height / 2])
            if frac > 0:
                Color(*self.bar_color)
                RoundedRectangle(pos=self.pos, size=(self.width * frac, self.height), radius=[self.height / 2])


class ScoreChart(Widget):
    """Percentages of recent sessions, oldest left."""
    labels = ListProperty([])
    values = ListProperty([])
    bar_colors = ListProperty([])
    bar_color = ListProperty([0.30, 0.60, 1.00, 1.0])
    label_color = ListProperty([0.95, 0.98, 1.00, 1.0])
    axis_color = ListProperty([0.70, 0.70, 0.80, 0.6])
    label_sp = NumericProperty(14)
    padding = ListProperty([36, 28, 12, 20])
    show_values = BooleanProperty(True)
    value_format = StringProperty("{:.0f}%")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        cb = self._redraw
        self.bind(pos=cb, size=cb, labels=cb, values=cb, bar_colors=cb, label_sp=cb, padding=cb, show_values=cb)

    def _text(self, text, font_size):
        lbl = CoreLabel(text=str(text), font_size=font_size)
        lbl.refresh()
        return lbl.texture

    def _redraw(self, *_):
        self.canvas.clear()
        with self.canvas:
            PushMatrix(); Translate(self.x, self.y)
            l, b, r, t = self.padding
            x0, y0 = l, b
            x1, y1 = self.width - r, self.height - t
            w = max(1, x1 - x0); h = max(1, y1 - y0)

            Color(*self.axis_color)
            Line(points=[x0, y0, x1, y0], width=1)
            Line(points=[x0, y0, x0, y1], width=1)

            n = len(self.values)
            if n:
                slot = w / n
                bar_w = slot * 0.6
                for i, v in enumerate(self.values):
                    cx = x0 + i * slot + slot / 2.0
                    bh = (max(0.0, min(float(v), 100.0)) / 100.0) * (h - 2)
                    col = self.bar_colors[i] if i < len(self.bar_colors) else self.bar_color
                    Color(*col)
                    Rectangle(pos=(cx - bar_w / 2.0, y0), size=(bar_w, bh))
                    Color(*self.label_color)
                    if self.show_values:
                        tex = self._text(self.value_format.format(v), self.label_sp)
                        Rectangle(texture=tex, pos=(cx - tex.width / 2.0, y0 + bh + 2), size=tex.size)
                    if i < len(self.labels):
                        tex = self._text(self.labels[i], self.label_sp)
                        Rectangle(texture=tex, pos=(cx - tex.width / 2.0, y0 - tex.height - 4), size=tex.size)
            PopMatrix()
