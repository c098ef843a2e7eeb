"""Fakes shared by the pipeline and router tests."""


class FakeGenerationClient:
    """
    Stands in for GenerationClient. json_responses are consumed in order;
    an exception instance is raised instead of returned, a callable is called with the prompt.
    """

    def __init__(self, json_responses=None, text_response="## Notes"):
        self.json_responses = list(json_responses or [])
        self.text_response = text_response
        self.prompts = []

    async def generate_json(self, prompt, schema, *, system=None, schema_name="response", temperature=0.4):
        self.prompts.append(prompt)
        if not self.json_responses:
            raise AssertionError("FakeGenerationClient ran out of responses")
        response = self.json_responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(prompt)
        return response

    async def generate_text(self, prompt, *, system=None, temperature=0.6):
        self.prompts.append(prompt)
        if isinstance(self.text_response, BaseException):
            raise self.text_response
        return self.text_response

    async def aclose(self):
        pass


async def no_sleep(_seconds):
    return None


def make_questions(n, prefix="Q"):
    """n valid text-keyed items as the model would return them."""
    return [
        {
            "question": f"{prefix}{i}: which option is right?",
            "options": [f"right {i}", f"wrong {i}a", f"wrong {i}b", f"wrong {i}c"],
            "correct_answer": f"right {i}",
            "explanation": "Because it is.",
        }
        for i in range(n)
    ]
