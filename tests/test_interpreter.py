"""
Tests for the voice command interpreter.
"""

import pytest

from news_assistant.assistant.interpreter import (
    Control,
    ControlCommand,
    MatchWeights,
    SelectByFuzzyMatch,
    SelectByNumber,
    Unrecognized,
    VoiceCommandInterpreter,
    normalize,
    word_overlap,
)

TITLES = [
    "Giá vàng hôm nay tăng mạnh",
    "Ông Trump gặp lãnh đạo Iran",
    "Đường sắt cao tốc Bắc Nam khởi công",
    "Thái Lan mở cửa du lịch",
    "Cảnh sát bắt nhóm trộm xe",
]


@pytest.fixture
def interpreter():
    return VoiceCommandInterpreter()


class TestControlCommands:
    """Control keywords win over everything else."""

    @pytest.mark.parametrize("count", [0, 1, 5, 50])
    def test_stop_regardless_of_article_count(self, interpreter, count):
        assert interpreter.interpret("dừng", count) == Control(ControlCommand.STOP)

    @pytest.mark.parametrize(
        "text,command",
        [
            ("Dừng lại", ControlCommand.STOP),
            ("tạm dừng", ControlCommand.STOP),
            ("pause", ControlCommand.STOP),
            ("tiếp tục", ControlCommand.CONTINUE),
            ("play", ControlCommand.CONTINUE),
            ("tin tiếp theo", ControlCommand.NEXT),
            ("next", ControlCommand.NEXT),
            ("bài trước", ControlCommand.PREVIOUS),
            ("previous", ControlCommand.PREVIOUS),
            ("đọc lại", ControlCommand.REPEAT),
            ("repeat", ControlCommand.REPEAT),
        ],
    )
    def test_synonyms(self, interpreter, text, command):
        assert interpreter.interpret(text, TITLES) == Control(command)

    def test_control_beats_number(self, interpreter):
        """A control keyword stops evaluation before the number patterns."""
        assert interpreter.interpret("dừng tin số 2", 5) == Control(ControlCommand.STOP)

    def test_punctuation_from_recognizer(self, interpreter):
        assert interpreter.interpret("Dừng.", 5) == Control(ControlCommand.STOP)


class TestNumberSelection:
    def test_tin_so(self, interpreter):
        assert interpreter.interpret("tin số 3", 5) == SelectByNumber(2)

    def test_bai_so(self, interpreter):
        assert interpreter.interpret("bài số 1", 5) == SelectByNumber(0)

    def test_bare_number(self, interpreter):
        assert interpreter.interpret("3", 5) == SelectByNumber(2)

    def test_english_patterns(self, interpreter):
        assert interpreter.interpret("news 4", 5) == SelectByNumber(3)
        assert interpreter.interpret("Article number 2", 5) == SelectByNumber(1)

    def test_number_words(self, interpreter):
        assert interpreter.interpret("tin số ba", 5) == SelectByNumber(2)
        assert interpreter.interpret("news number two", 5) == SelectByNumber(1)

    @pytest.mark.parametrize(
        "text,index",
        [
            ("tin số mười một", 10),
            ("tin số mười lăm", 14),
            ("bài số hai mươi", 19),
            ("tin số hai mươi mốt", 20),
            ("news twenty-one", 20),
            ("article number twelve", 11),
        ],
    )
    def test_compound_numerals(self, interpreter, text, index):
        assert interpreter.interpret(text, 25) == SelectByNumber(index)

    def test_year_after_ten_is_not_a_unit(self, interpreter):
        assert interpreter.interpret("tin số mười năm nay", 25) == SelectByNumber(9)

    def test_trailing_period(self, interpreter):
        assert interpreter.interpret("Tin số 3.", 5) == SelectByNumber(2)

    def test_upper_bound_inclusive(self, interpreter):
        assert interpreter.interpret("tin số 5", 5) == SelectByNumber(4)

    def test_out_of_range_with_count_only(self, interpreter):
        """9 of 5: no numeric selection and no titles to match against."""
        assert isinstance(interpreter.interpret("tin số 9", 5), Unrecognized)

    def test_zero_is_out_of_range(self, interpreter):
        assert isinstance(interpreter.interpret("tin số 0", 5), Unrecognized)

    def test_out_of_range_falls_through_to_fuzzy(self, interpreter):
        action = interpreter.interpret("tin số 9 giá vàng", TITLES)
        assert isinstance(action, SelectByFuzzyMatch)
        assert action.index == 0


class TestFuzzyMatch:
    def test_keyword_match(self, interpreter):
        action = interpreter.interpret("trump", TITLES)
        assert isinstance(action, SelectByFuzzyMatch)
        assert action.index == 1
        assert action.score > 3

    def test_keyword_variant(self, interpreter):
        """Unaccented variant from the keyword table still finds the title."""
        action = interpreter.interpret("duong sat", TITLES)
        assert isinstance(action, SelectByFuzzyMatch)
        assert action.index == 2

    def test_no_overlap_is_unrecognized(self, interpreter):
        action = interpreter.interpret("xyz qwerty", TITLES)
        assert action == Unrecognized("xyz qwerty")

    def test_tie_goes_to_first_article(self, interpreter):
        titles = ["Giá vàng tăng", "Giá vàng tăng"]
        action = interpreter.interpret("giá vàng", titles)
        assert isinstance(action, SelectByFuzzyMatch)
        assert action.index == 0

    def test_threshold_is_configurable(self):
        strict = VoiceCommandInterpreter(MatchWeights(min_score=100.0))
        assert isinstance(strict.interpret("trump", TITLES), Unrecognized)

    def test_score_title_components(self, interpreter):
        # overlap 1/6 * 10 + keyword "trump" 5 + word bonus 2
        score = interpreter.score_title("trump", TITLES[1])
        assert score == pytest.approx(10 / 6 + 5 + 2)


class TestHelpers:
    def test_empty_text(self, interpreter):
        assert isinstance(interpreter.interpret("   ", TITLES), Unrecognized)

    def test_normalize(self):
        assert normalize("  Tin  Số 3! ") == "tin số 3"

    def test_word_overlap_substring_either_way(self):
        assert word_overlap("giá vàng", "giá vàng tăng") == pytest.approx(2 / 3)
        assert word_overlap("vàng", "") == 0.0

    def test_rule_order(self, interpreter):
        assert [name for name, _ in interpreter.rules] == ["control", "number", "fuzzy"]
