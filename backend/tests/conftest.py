import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


class FakeModel:
    """Stands in for the OpenAI client: canned text or a raised error per call type."""

    def __init__(self, extract_response="", tags_response="", extract_error=None, tags_error=None):
        self.extract_response = extract_response
        self.tags_response = tags_response
        self.extract_error = extract_error
        self.tags_error = tags_error
        self.extract_calls = []
        self.tag_prompts = []

    def extract(self, images, system_prompt, instruction):
        self.extract_calls.append({"images": list(images), "system": system_prompt, "instruction": instruction})
        if self.extract_error:
            raise self.extract_error
        return self.extract_response

    def infer_tags(self, prompt):
        self.tag_prompts.append(prompt)
        if self.tags_error:
            raise self.tags_error
        return self.tags_response


@pytest.fixture
def fake_model():
    return FakeModel()
