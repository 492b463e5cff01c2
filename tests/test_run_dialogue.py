import pytest

from run_dialogue import parse_args


def test_parse_args_defaults() -> None:
    args = parse_args([])
    assert args.person == "Qin Shi Huang"
    assert args.grade == "Middle School (Grade 6-8)"
    assert args.language == "English"
    assert args.insights is False


def test_parse_args_rejects_unknown_language() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--language", "Klingon"])
