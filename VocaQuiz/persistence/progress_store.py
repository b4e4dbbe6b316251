from __future__ import annotations
from pathlib import Path
import json
import datetime as _dt
import os
import shutil
import threading

from kivy.logger import Logger

from VocaQuiz import config
from VocaQuiz.models import gamification
from VocaQuiz.models.state import HistoryEntry, ProgressState, QuizMode, VocabularyEntry

SNAPSHOT_VERSION = 1


class ProgressStore:
    def __init__(self, quiz, path: Path):
        self.quiz = quiz
        self.path = Path(path)
        self._save_scheduled = False
        self._lock = threading.Lock()

    # ---- Snapshot build/apply ----
    def build_snapshot(self) -> dict:
        p = self.quiz.progress
        return {
            "version": SNAPSHOT_VERSION,
            "persistent_mistakes": [w.to_dict() for w in p.persistent_mistakes.values()],
            "history": [h.to_dict() for h in p.history],
            "xp": p.xp,
            "level": p.level,
            "streak": p.streak,
            "last_study_date": p.last_study_date,
            "earned_badges": list(p.earned_badges),
        }

    def apply_snapshot(self, data: dict):
        if not isinstance(data, dict):
            data = {}
        p = ProgressState()

        for item in data.get("persistent_mistakes", []) or []:
            if not isinstance(item, dict):
                continue
            word = item.get("word")
            meaning = item.get("meaning")
            if not isinstance(word, str) or not word.strip() or not isinstance(meaning, str):
                continue
            if word not in p.persistent_mistakes:
                p.persistent_mistakes[word] = VocabularyEntry(
                    word=word, meaning=meaning, definition=str(item.get("definition", "") or "")
                )

        history = []
        for item in data.get("history", []) or []:
            entry = self._history_from_dict(item)
            if entry is not None:
                history.append(entry)
        p.history = history[: config.HISTORY_LIMIT]

        xp = data.get("xp", 0)
        p.xp = xp if isinstance(xp, int) and not isinstance(xp, bool) and xp >= 0 else 0
        # Level wird immer aus XP abgeleitet
        p.level = gamification.level_for_xp(p.xp)

        streak = data.get("streak", 0)
        p.streak = streak if isinstance(streak, int) and not isinstance(streak, bool) and streak >= 0 else 0

        lsd = data.get("last_study_date")
        p.last_study_date = lsd if isinstance(lsd, str) and gamification.to_local_date(lsd) else None

        badges = []
        for b in data.get("earned_badges", []) or []:
            if isinstance(b, str) and b in gamification.BADGES_BY_ID and b not in badges:
                badges.append(b)
        p.earned_badges = badges

        self.quiz.progress = p

    def _history_from_dict(self, item) -> HistoryEntry | None:
        if not isinstance(item, dict):
            return None
        try:
            return HistoryEntry(
                id=str(item["id"]),
                date=str(item["date"]),
                unit_number=None if item.get("unit_number") is None else int(item["unit_number"]),
                lesson_number=None if item.get("lesson_number") is None else int(item["lesson_number"]),
                mode=QuizMode(item.get("mode")),
                total_questions=int(item.get("total_questions", 0)),
                correct_answers=int(item.get("correct_answers", 0)),
                percentage=int(item.get("percentage", 0)),
                duration_seconds=int(item.get("duration_seconds", 0)),
                xp_gained=int(item.get("xp_gained", 0) or 0),
            )
        except (KeyError, TypeError, ValueError):
            return None

    # ---- IO ----
    def _write(self, data: dict):
        tmp_path = self.path.with_suffix(".tmp")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, separators=(",", ":"), sort_keys=True)
            os.replace(tmp_path, self.path)

    def save_async(self, *_):
        from kivy.clock import Clock
        if self._save_scheduled:
            return
        self._save_scheduled = True
        Clock.schedule_once(lambda dt: self._do_save_async(), config.SAVE_DEBOUNCE)

    def _do_save_async(self):
        from kivy.clock import Clock
        data = self.build_snapshot()
        tmp_path = self.path.with_suffix(".tmp")

        def worker():
            try:
                self._write(data)
            except OSError as e:
                Logger.warning(f"Progress: async save failed: {e}")
                tmp_path.unlink(missing_ok=True)
            finally:
                Clock.schedule_once(lambda *_: setattr(self, "_save_scheduled", False), 0)

        threading.Thread(target=worker, daemon=True).start()

    def save_sync(self):
        self._write(self.build_snapshot())
        self._save_scheduled = False

    def load(self) -> bool:
        if not self.path.exists():
            return False
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            Logger.warning(f"Progress: could not read {self.path}: {e}")
            return False
        self.apply_snapshot(data)
        Logger.info(
            f"Progress: loaded xp={self.quiz.progress.xp} streak={self.quiz.progress.streak} "
            f"history={len(self.quiz.progress.history)}"
        )
        return True

    # ---- Backups ----
    def _canonical_str(self, o) -> str:
        if isinstance(o, dict):
            o = {k: v for k, v in o.items() if k != "version"}
        return json.dumps(o, ensure_ascii=False, separators=(",", ":"), sort_keys=True)

    def backup_if_changed(self) -> Path | None:
        path = self.path
        if not path.exists():
            return None
        backup_dir = path.with_name(config.BACKUP_DIR_NAME)
        backup_dir.mkdir(parents=True, exist_ok=True)
        pattern = f"{path.stem}_*{path.suffix}"
        candidates = sorted(backup_dir.glob(pattern), key=lambda p: p.stat().st_mtime)
        last_backup = candidates[-1] if candidates else None

        current_str = self._canonical_str(self.build_snapshot())
        prev_str = None
        if last_backup is not None:
            try:
                with open(last_backup, "r", encoding="utf-8") as f:
                    prev_str = self._canonical_str(json.load(f))
            except (OSError, ValueError):
                prev_str = None

        if prev_str == current_str:
            return None
        ts = _dt.datetime.now().strftime("%Y-%m-%d_%H-%M-%S-%f")
        backup = backup_dir / f"{path.stem}_{ts}{path.suffix}"
        shutil.copy2(path, backup)
        Logger.info(f"Progress: backup written to {backup}")
        return backup
