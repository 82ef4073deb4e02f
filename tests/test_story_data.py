"""
Tests for the built-in story pool and the JSON pool loader.
"""
import json

import pytest

from case_generator import generate_case
from config import FINAL_QUIZ_TAG
from errors import PoolNotLoaded
from story_data import BUILTIN_STORIES, load_story_pool


@pytest.fixture(scope="module")
def builtin():
    return load_story_pool()


def test_builtin_pool_loads(builtin):
    assert len(builtin) == len(BUILTIN_STORIES) == 3
    assert len({story.id for story in builtin}) == 3


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
@pytest.mark.parametrize("seed", [1, 2024, 987654321])
def test_builtin_stories_render_completely(builtin, difficulty, seed):
    for index in range(len(builtin)):
        case = generate_case(builtin, index, difficulty, seed)
        texts = [case.narrative, case.solution.summary, *case.solution.details]
        texts += [clue.text for clue in case.initial_clues]
        texts += [offer.clue.text for offer in case.store_offers]
        texts += [q.question for q in case.quiz]
        for text in texts:
            assert "{{" not in text and "${" not in text
        assert all(q.answer in q.options for q in case.quiz)
        assert FINAL_QUIZ_TAG in case.quiz[-1].tags
        assert case.store_offers


def test_builtin_culprit_answer_names_a_suspect(builtin):
    case = generate_case(builtin, 0, "hard", seed=31)
    names = {suspect.name for suspect in case.suspects}
    assert case.quiz[-1].answer in names


def test_load_from_json_accepts_camel_case(tmp_path):
    path = tmp_path / "pool.json"
    path.write_text(json.dumps({"stories": [{
        "id": "json-story",
        "title": "From JSON",
        "variables": {"victim": ["Ada"]},
        "templates": {
            "descriptionBeats": [{"text": "{{victim}} is gone."}],
            "quizQuestions": [{"id": "q", "question": "Who?", "options": ["Ada"], "answer": "{{victim}}"}],
        },
    }]}), encoding="utf-8")

    stories = load_story_pool(path)
    assert stories[0].id == "json-story"
    case = generate_case(stories, 0, seed=1)
    assert case.narrative == "Ada is gone."


def test_missing_file(tmp_path):
    with pytest.raises(PoolNotLoaded):
        load_story_pool(tmp_path / "absent.json")


@pytest.mark.parametrize("content", ["{broken", '{"stories": []}', '[1, 2]', '{"stories": [{"id": "no-title"}]}'])
def test_invalid_pool_files(tmp_path, content):
    path = tmp_path / "pool.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(PoolNotLoaded):
        load_story_pool(path)
