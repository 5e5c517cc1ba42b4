import pytest

from domain.errors import ExternalServiceError
from domain.models import ALLOWED_TAGS
from services.tagging import TagInferrer, build_tag_prompt, parse_tags


class TestParseTags:
    def test_keeps_allowed_in_order(self):
        assert parse_tags("Coffee, cafe/bakery") == ["coffee", "cafe/bakery"]

    def test_drops_unknown_and_duplicates(self):
        assert parse_tags("bar, nightlife, BAR , club") == ["bar", "club"]

    def test_truncates_to_three(self):
        assert parse_tags("bar, club, coffee, restaurant") == ["bar", "club", "coffee"]

    @pytest.mark.parametrize("content", [None, "", "   ", "I am not sure."])
    def test_nothing_usable(self, content):
        assert parse_tags(content) == []


def test_prompt_lists_vocabulary_and_city():
    prompt = build_tag_prompt("Blue Bottle Coffee", "Oakland")
    assert '"Blue Bottle Coffee" in or near Oakland' in prompt
    for tag in ALLOWED_TAGS:
        assert tag in prompt


def test_prompt_without_city():
    assert "in or near" not in build_tag_prompt("Colosseum", "  ")


def test_infer_tags_uses_model(fake_model):
    fake_model.tags_response = " viewpoint, activity location \n"
    tags = TagInferrer(fake_model).infer_tags("Space Needle", "Seattle")
    assert tags == ["viewpoint", "activity location"]
    assert len(fake_model.tag_prompts) == 1


def test_infer_tags_swallows_failures(fake_model):
    fake_model.tags_error = ExternalServiceError("OPENAI_API_KEY is not set")
    assert TagInferrer(fake_model).infer_tags("Space Needle") == []


def test_infer_tags_handles_unexpected_exceptions(fake_model):
    fake_model.tags_error = RuntimeError("socket closed")
    assert TagInferrer(fake_model).infer_tags("Space Needle") == []
