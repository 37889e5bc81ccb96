"""
Unit tests for ProfileStore.

Run against MemoryStorage with a fixed clock, so nothing touches disk.
"""

import json

import pytest

from src.core.catalog import Difficulty, SkillCategory
from src.core.events import ProgressEvent
from src.core.storage import MemoryStorage, StorageQuotaError
from src.progress.models import LearnerProfile, SRSEntry
from src.progress.store import ActivityStats, ProfileStore
from src.progress.validation import sanitize


def stored(store: ProfileStore) -> dict:
    return json.loads(store.storage.get(store.storage_key))


# ========================================
# Load / Save
# ========================================


class TestLoad:
    def test_empty_storage_gives_default_profile(self, store, reporter):
        assert store.profile.player_name == "Student"
        assert store.profile.progress.level == 1
        assert reporter.error_count == 0

    def test_round_trip_through_storage(self, store, memory_storage, clock):
        store.record_attempt("alphabet", "ಅ", True)

        reloaded = ProfileStore(memory_storage, clock=clock)
        assert reloaded.profile.profile_id == store.profile.profile_id
        assert reloaded.get_skill("alphabet").correct_attempts == 1

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", '{"version": "1.1.0", "skills": 5}'])
    def test_corrupt_data_gives_default_profile(self, raw, clock):
        storage = MemoryStorage()
        storage.set(ProfileStore.DEFAULT_STORAGE_KEY, raw)

        store = ProfileStore(storage, clock=clock)

        assert store.profile.progress.games_played == 0
        assert store.reporter.error_count == 1

    def test_unknown_version_gives_default_profile(self, clock):
        storage = MemoryStorage()
        data = sanitize(LearnerProfile.create())
        data["version"] = "7.0.0"
        storage.set(ProfileStore.DEFAULT_STORAGE_KEY, json.dumps(data))

        store = ProfileStore(storage, clock=clock)

        assert store.profile.profile_id != data["profileId"]
        assert "7.0.0" in store.reporter.recent_errors[0].message

    def test_custom_storage_key(self, memory_storage, clock):
        store = ProfileStore(memory_storage, storage_key="other", clock=clock)
        store.save()
        assert memory_storage.keys() == ["other"]


class TestSave:
    def test_save_writes_camel_case_json(self, store):
        assert store.save() is True
        data = stored(store)
        assert data["version"] == "1.1.0"
        assert set(data["skills"]) == {c.value for c in SkillCategory}

    def test_save_stamps_last_played(self, store, clock):
        clock.advance(days=2)
        store.save()
        assert store.profile.last_played == clock.current

    def test_save_emits_event(self, store, recorder):
        recorder.listen(ProgressEvent.SAVED)
        store.save()
        [payload] = recorder.payloads(ProgressEvent.SAVED)
        assert payload["profile_id"] == store.profile.profile_id
        assert payload["bytes"] > 0

    def test_quota_failure_keeps_session(self, clock, reporter):
        store = ProfileStore(MemoryStorage(quota_bytes=100), reporter=reporter, clock=clock)

        skill = store.record_attempt("alphabet", "ಅ", True)

        assert skill.total_attempts == 1
        assert store.get_skill("alphabet").total_attempts == 1
        assert store.save() is False
        assert reporter.recent_errors[-1].error_type == StorageQuotaError.__name__

    def test_invalid_profile_is_not_written(self, store, reporter):
        store.save()
        before = store.storage.get(store.storage_key)
        store.profile.skills[SkillCategory.READING].correct_attempts = 10

        assert store.save() is False
        assert store.storage.get(store.storage_key) == before
        assert "correctAttempts" in reporter.recent_errors[-1].message


class TestReset:
    def test_reset_replaces_profile(self, store, recorder):
        recorder.listen(ProgressEvent.RESET)
        store.record_activity_completion("AksharaPopScene", 120)
        old_id = store.profile.profile_id

        profile = store.reset()

        assert profile.progress.games_played == 0
        assert stored(store)["profileId"] == profile.profile_id
        assert recorder.payloads(ProgressEvent.RESET) == [{"profile_id": profile.profile_id}]
        assert profile.profile_id != old_id
        assert profile.game_history == {}


# ========================================
# Skill Ledger
# ========================================


class TestRecordAttempt:
    def test_counters_and_accuracy(self, store):
        for correct in [True, False, True, True]:
            store.record_attempt(SkillCategory.ALPHABET, "ಅ", correct)

        skill = store.get_skill(SkillCategory.ALPHABET)
        assert skill.total_attempts == 4
        assert skill.correct_attempts == 3
        assert skill.accuracy == 0.75

    def test_seen_items_tracked_once(self, store):
        store.record_attempt("alphabet", "ಅ", True)
        store.record_attempt("alphabet", "ಅ", False)
        store.record_attempt("alphabet", "ಆ", True)
        assert store.get_skill("alphabet").seen_items == ["ಅ", "ಆ"]

    def test_counter_invariant_holds_throughout(self, store):
        for i in range(30):
            skill = store.record_attempt("words", f"w{i % 4}", i % 3 != 0)
            assert 0 <= skill.correct_attempts <= skill.total_attempts
            assert skill.accuracy == skill.correct_attempts / skill.total_attempts

    def test_persists_each_attempt(self, store):
        store.record_attempt("reading", "ಕಥೆ", True)
        assert stored(store)["skills"]["reading"]["totalAttempts"] == 1

    def test_unknown_category_is_ignored(self, store):
        assert store.record_attempt("cooking", "x", True) is None
        assert store.get_skill("cooking") is None
        assert all(s.total_attempts == 0 for s in store.profile.skills.values())

    @pytest.mark.parametrize(
        "attempts,correct,level",
        [(9, 9, 0), (10, 7, 1), (30, 24, 2), (50, 45, 3), (50, 40, 2)],
    )
    def test_level_thresholds(self, store, attempts, correct, level):
        for i in range(attempts):
            store.record_attempt("alphabet", "ಅ", i < correct)
        assert store.get_skill("alphabet").level == level

    def test_level_never_drops(self, store):
        for _ in range(10):
            store.record_attempt("alphabet", "ಅ", True)
        assert store.get_skill("alphabet").level == 1

        for _ in range(10):
            store.record_attempt("alphabet", "ಅ", False)
        assert store.get_skill("alphabet").accuracy == 0.5
        assert store.get_skill("alphabet").level == 1


class TestMarkItemMastered:
    def test_idempotent(self, store):
        assert store.mark_item_mastered("alphabet", "ಅ") is True
        assert store.mark_item_mastered("alphabet", "ಅ") is False
        assert store.get_skill("alphabet").mastered_items == ["ಅ"]

    def test_letter_and_word_events(self, store, recorder):
        recorder.listen(ProgressEvent.LETTER_MASTERED, ProgressEvent.WORD_MASTERED)

        store.mark_item_mastered("alphabet", "ಅ")
        store.mark_item_mastered("vocabulary", "ಮನೆ")
        store.mark_item_mastered("vocabulary", "ಮನೆ")

        assert recorder.names() == ["letter:mastered", "word:mastered"]
        assert recorder.payloads(ProgressEvent.WORD_MASTERED) == [
            {"item": "ಮನೆ", "category": "vocabulary", "total_mastered": 1}
        ]

    def test_unknown_category(self, store):
        assert store.mark_item_mastered("cooking", "x") is False


# ========================================
# Activity History
# ========================================


class TestActivityCompletion:
    def test_best_and_average_score(self, store):
        store.record_activity_completion("Game", 100)
        record = store.record_activity_completion("Game", 200)

        assert record.best_score == 200
        assert record.average_score == 150
        assert record.plays == 2
        assert store.get_activity_stats("Game") is record

    def test_unknown_activity_updates_history_only(self, store):
        store.record_activity_completion("Game", 100, {"totalAttempts": 5, "correctAttempts": 5})
        assert all(s.total_attempts == 0 for s in store.profile.skills.values())
        assert store.profile.progress.games_played == 1

    def test_catalog_activity_folds_stats_into_category(self, store):
        stats = ActivityStats(total_attempts=10, correct_attempts=8, play_time=90)
        store.record_activity_completion("FruitBasketScene", 120, stats)

        skill = store.get_skill("vocabulary")
        assert (skill.total_attempts, skill.correct_attempts) == (10, 8)
        assert skill.level == 1
        assert store.profile.progress.total_play_time == 90

    @pytest.mark.parametrize(
        "scene,category",
        [("CompoundWordsScene", "words"), ("StorySequencerScene", "sentences"), ("MarketShoppingScene", "vocabulary")],
    )
    def test_word_sentence_and_culture_scenes_fold_stats(self, store, scene, category):
        store.record_activity_completion(scene, 80, {"totalAttempts": 6, "correctAttempts": 5})
        assert store.get_skill(category).total_attempts == 6

    def test_stats_cannot_break_counter_invariant(self, store):
        store.record_activity_completion("EchoGameScene", 50, {"total_attempts": 2, "correct_attempts": 7})
        skill = store.get_skill("listening")
        assert skill.correct_attempts == skill.total_attempts == 2

    def test_progress_totals_and_stars(self, store):
        store.record_activity_completion("AksharaPopScene", 160)
        store.record_activity_completion("AksharaPopScene", 60)

        progress = store.profile.progress
        assert progress.games_played == 2
        assert progress.total_score == 220
        assert progress.total_stars == 4
        assert store.get_activity_stats("AksharaPopScene").stars == 3

    @pytest.mark.parametrize("score,stars", [(0, 0), (49, 0), (50, 1), (100, 2), (150, 3), (999, 3)])
    def test_calculate_stars(self, score, stars):
        assert ProfileStore.calculate_stars(score) == stars

    def test_negative_score_recorded_as_zero(self, store):
        record = store.record_activity_completion("Game", -40)
        assert record.best_score == 0
        assert store.profile.progress.total_score == 0

    def test_fractional_score_truncated(self, store, reporter):
        record = store.record_activity_completion("AksharaPopScene", 120.5)

        assert record.best_score == 120
        assert store.profile.progress.total_score == 120
        assert store.record_attempt("alphabet", "ಅ", True) is not None
        assert store.save() is True
        assert reporter.error_count == 0

    def test_missing_history_is_none(self, store):
        assert store.get_activity_stats("NeverPlayedScene") is None

    def test_emits_game_recorded(self, store, recorder):
        recorder.listen(ProgressEvent.GAME_RECORDED)
        store.record_activity_completion("LetterMatchScene", 110)
        assert recorder.payloads(ProgressEvent.GAME_RECORDED) == [
            {"activity_id": "LetterMatchScene", "score": 110, "stars": 2, "plays": 1, "best_score": 110}
        ]

    def test_non_numeric_stats_count_as_zero(self):
        stats = ActivityStats.from_mapping({"totalAttempts": "many", "playTime": 30})
        assert stats == ActivityStats(total_attempts=0, correct_attempts=0, play_time=30)


# ========================================
# Achievements, SRS State, Reports
# ========================================


class TestAchievements:
    def test_unlock_twice_keeps_one(self, store, recorder, clock):
        recorder.listen(ProgressEvent.ACHIEVEMENT_UNLOCKED)

        assert store.unlock_achievement("first_game") is True
        assert store.unlock_achievement("first_game") is False

        assert len(store.profile.achievements) == 1
        assert store.profile.achievements[0].unlocked_at == clock.current
        assert store.has_achievement("first_game")
        assert len(recorder.received) == 1


class TestSRSState:
    def test_missing_entry_is_none(self, store):
        assert store.get_srs_entry("ಅ") is None

    def test_update_persists(self, store, engine):
        entry = engine.scheduler.initialize("ಅ", 4, store.now())
        store.update_srs_entry("ಅ", entry)

        assert store.get_srs_entry("ಅ") == entry
        assert stored(store)["srsData"]["ಅ"]["interval"] == 4

    def test_invalid_entry_rolled_back(self, store, reporter, clock):
        bad = SRSEntry.model_construct(ease_factor=0.5, interval=1, review_count=1, next_review=clock.current)

        assert store.update_srs_entry("ಅ", bad) is False
        assert store.get_srs_entry("ಅ") is None
        assert "update_srs_entry" in reporter.recent_errors[-1].message

        # Later mutations still save
        assert store.record_attempt("alphabet", "ಅ", True) is not None
        assert store.save() is True
        assert "ಅ" not in stored(store)["srsData"]


class TestReports:
    def test_strengths_and_weaknesses(self, store):
        for i in range(11):
            store.record_attempt("alphabet", "ಅ", True)
            store.record_attempt("words", "w", i < 3)
        for _ in range(10):
            store.record_attempt("reading", "r", False)

        report = store.get_strengths_weaknesses()
        assert [s.category for s in report.strengths] == [SkillCategory.ALPHABET]
        assert [s.category for s in report.weaknesses] == [SkillCategory.WORDS]

    def test_profile_summary(self, store):
        store.mark_item_mastered("alphabet", "ಅ")
        store.mark_item_mastered("alphabet", "ಆ")
        store.mark_item_mastered("vocabulary", "ಮನೆ")
        store.record_activity_completion("AksharaPopScene", 150)

        summary = store.get_profile_summary()
        assert summary.letters_learned == 2
        assert summary.words_learned == 1
        assert summary.total_stars == 3
        assert summary.games_played == 1


class TestSettings:
    def test_player_name_sanitized(self, store):
        assert store.set_player_name("  <i>Asha</i> ") == "Asha"
        assert store.set_player_name("<br>") == "Student"

    def test_difficulty(self, store):
        assert store.set_difficulty("advanced") is True
        assert store.profile.settings.difficulty is Difficulty.ADVANCED
        assert store.set_difficulty("impossible") is False
        assert store.profile.settings.difficulty is Difficulty.ADVANCED


class TestExportImport:
    def test_export_then_import_into_new_store(self, store, clock, recorder):
        store.record_attempt("alphabet", "ಅ", True)
        store.unlock_achievement("first_game")
        text = store.export_profile()

        other = ProfileStore(MemoryStorage(), events=recorder.bus, clock=clock)
        recorder.listen(ProgressEvent.IMPORTED)

        assert other.import_profile(text) is True
        assert other.profile.profile_id == store.profile.profile_id
        assert other.has_achievement("first_game")
        assert recorder.names() == ["progress:imported"]

    @pytest.mark.parametrize("text", ["not json", "[]", '{"version": "1.1.0", "skills": {}}', '{"version": "0.1.0"}'])
    def test_bad_import_keeps_profile(self, store, text):
        store.record_attempt("alphabet", "ಅ", True)
        profile_id = store.profile.profile_id

        assert store.import_profile(text) is False
        assert store.profile.profile_id == profile_id
        assert store.get_skill("alphabet").total_attempts == 1
