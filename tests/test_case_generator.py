"""
Tests for procedural case generation.
"""
import pytest

from case_generator import generate_case, normalize_category
from errors import StoryNotFound


def test_same_seed_same_case(stories):
    first = generate_case(stories, 0, "medium", seed=1234)
    second = generate_case(stories, 0, "medium", seed=1234)
    assert first == second
    assert first.seed == 1234


def test_missing_seed_is_derived(stories):
    case = generate_case(stories, 0)
    assert isinstance(case.seed, int)
    assert case.seed > 0


def test_story_index_out_of_range(stories):
    with pytest.raises(StoryNotFound):
        generate_case(stories, 2, seed=1)
    with pytest.raises(StoryNotFound):
        generate_case(stories, -1, seed=1)


def test_unknown_difficulty_falls_back_to_medium(stories):
    odd = generate_case(stories, 0, "impossible", seed=5)
    medium = generate_case(stories, 0, "medium", seed=5)
    assert odd.difficulty == "medium"
    assert odd == medium


def test_one_store_offer_per_category_in_first_seen_order(stories):
    case = generate_case(stories, 0, seed=77)
    categories = [offer.category for offer in case.store_offers]
    assert categories == ["background", "timeline", "physical", "other"]
    assert len(set(categories)) == len(categories)


def test_initial_flagged_and_overflow_clues_are_never_sold(stories):
    for seed in range(1, 30):
        case = generate_case(stories, 0, "easy", seed=seed)
        offered = {offer.clue.id for offer in case.store_offers}
        initial = {clue.id for clue in case.initial_clues}
        assert "s6" not in offered
        assert "s6" in initial
        assert len(offered & {"s1", "s2"}) == 1
        # the background clue that was not offered joins the initial candidates
        assert ({"s1", "s2"} - offered) <= initial


@pytest.mark.parametrize("difficulty, expected", [("easy", 4), ("medium", 2), ("hard", 1)])
def test_initial_clue_count_scales_with_difficulty(stories, difficulty, expected):
    case = generate_case(stories, 0, difficulty, seed=9)
    assert len(case.initial_clues) == expected


@pytest.mark.parametrize("difficulty, expected", [("easy", 2), ("medium", 3), ("hard", 4)])
def test_quiz_size_scales_with_difficulty_and_final_is_last(stories, difficulty, expected):
    case = generate_case(stories, 0, difficulty, seed=9)
    assert len(case.quiz) == expected
    assert case.quiz[-1].id == "qf"


def test_quiz_answers_are_rendered_like_options(stories):
    case = generate_case(stories, 0, "hard", seed=21)
    for question in case.quiz:
        assert question.answer in question.options
    assert case.quiz[-1].answer == "Cole"


def test_story_with_only_a_final_question(stories):
    case = generate_case(stories, 1, "easy", seed=3)
    assert [q.id for q in case.quiz] == ["qf"]
    assert case.total_stories == 2


def test_rendered_content(stories):
    case = generate_case(stories, 0, "easy", seed=8)
    place = case.context["place"]
    assert case.narrative == f"{case.victim} died in the {place}."
    assert case.location is None
    assert case.statement_entries[0].speaker == "Cole"
    assert case.solution.summary == "Cole did it."
    assert case.solution.details == (f"In the {place}.",)
    assert case.contradiction_rules[0].conflict == "Cole lied."
    assert [s.id for s in case.suspects] == ["a", "b"]
    assert case.suspects[1].occupation == "Chauffeur"


def test_micro_events_default_title_and_phase(stories):
    case = generate_case(stories, 0, "easy", seed=8)
    micro = next(c for c in case.initial_clues if c.id == "m1")
    assert micro.title == "Micro Event"
    assert micro.phase == "before"


def test_public_view_hides_answers_and_solution(stories):
    view = generate_case(stories, 0, seed=4).public_view()
    assert "quiz" not in view
    assert "solution" not in view
    assert "context" not in view


def test_normalize_category():
    assert normalize_category(" Timeline ") == "timeline"
    assert normalize_category("forensics") == "other"
    assert normalize_category(None) == "other"
