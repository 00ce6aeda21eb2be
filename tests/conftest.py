import copy

import pytest

from services.storage import InMemoryStore


class FakeChat:
    def __init__(self, llm, system_instruction):
        self.llm = llm
        self.system_instruction = system_instruction
        self.sent = []

    def send_message_stream(self, text):
        self.sent.append(text)
        for fragment in self.llm.chat_fragments:
            if isinstance(fragment, Exception):
                raise fragment
            yield fragment


class FakeLLM:
    """Stands in for GeminiClient/OllamaClient."""

    model_name = "fake-model"

    def __init__(self, json_response=None, error=None, chat_fragments=None):
        self.json_response = json_response
        self.error = error
        self.chat_fragments = chat_fragments or []
        self.prompts = []
        self.schemas = []
        self.chats = []

    def generate_json(self, prompt, schema):
        self.prompts.append(prompt)
        self.schemas.append(schema)
        if self.error is not None:
            raise self.error
        return copy.deepcopy(self.json_response)

    def start_chat(self, system_instruction):
        chat = FakeChat(self, system_instruction)
        self.chats.append(chat)
        return chat


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def sample_analysis():
    return {
        "jobTitle": "Senior Frontend Engineer",
        "matchScore": 42,
        "marketSummary": "Demand for senior frontend engineers remains strong.",
        "topSkillsRequired": [
            {"name": "React", "frequency": 95},
            {"name": "TypeScript", "frequency": 88},
            {"name": "Communication", "frequency": 70},
        ],
        "gaps": [
            {
                "skillName": "System Design",
                "userLevel": "Beginner",
                "marketRequirement": "Design scalable frontend architectures",
                "importance": "Critical",
                "gapDescription": "Senior roles expect ownership of architecture decisions.",
            }
        ],
        "learningPath": [
            {
                "stepNumber": 1,
                "topic": "Frontend System Design",
                "description": "Learn to design large frontend applications.",
                "resources": [
                    {
                        "title": "Frontend System Design Course",
                        "type": "Course",
                        "provider": "Frontend Masters",
                        "estimatedDuration": "6 hours",
                        "description": "Architecture patterns for web apps.",
                    }
                ],
            },
            {
                "stepNumber": 2,
                "topic": "TypeScript Generics",
                "description": "Deepen type-level programming skills.",
                "resources": [],
            },
        ],
    }


@pytest.fixture
def fake_llm_factory():
    return FakeLLM
